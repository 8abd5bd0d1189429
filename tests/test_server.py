import pytest
from aiohttp import test_utils

from loggertools.server import create_app
from loggertools.testinfo import ReliabilityTest

BODY = '{"cycles": 1000, "delay":"1s", "timeout":"60s"}'


@pytest.mark.asyncio
async def test_records_an_error_when_there_are_no_workers():
    app = create_app(runner_timeout=0.001)
    async with test_utils.TestClient(test_utils.TestServer(app)) as client:
        response = await client.post("/foo", data=BODY)
        assert response.status == 404
        response = await client.post("/tests", data=BODY)
        assert response.status == 500
        assert await response.text() == "you don't have any connections"


@pytest.mark.asyncio
async def test_creates_a_test_when_workers_are_available():
    app = create_app(runner_timeout=1.0)
    async with test_utils.TestClient(test_utils.TestServer(app)) as client:
        worker = await client.ws_connect("/workers")
        response = await client.post("/tests", data=BODY)
        assert response.status == 201

        sent = ReliabilityTest.from_json(await worker.receive_str(timeout=3))
        assert sent.cycles == 1000
        assert sent.write_cycles == 1000
        await worker.close()