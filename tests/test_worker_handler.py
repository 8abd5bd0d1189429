import asyncio

import pytest
from aiohttp import test_utils, web

from loggertools.testinfo import ReliabilityTest
from loggertools.worker_handler import NoWorkersError, WorkerHandler


def _app(handler):
    app = web.Application()
    app.router.add_route("GET", "/", handler.handle)
    return app


async def _wait_for(predicate, timeout=3.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_forwards_tests_to_a_client():
    handler = WorkerHandler()
    async with test_utils.TestClient(test_utils.TestServer(_app(handler))) as client:
        ws = await client.ws_connect("/")
        await _wait_for(lambda: handler.conn_count() == 1)

        written = await handler.run(ReliabilityTest())
        assert written == 1
        received = ReliabilityTest.from_json(await ws.receive_str(timeout=3))
        assert received.cycles == 0
        await ws.close()


@pytest.mark.asyncio
async def test_forwards_tests_to_multiple_clients():
    handler = WorkerHandler()
    async with test_utils.TestClient(test_utils.TestServer(_app(handler))) as client:
        ws_a = await client.ws_connect("/")
        ws_b = await client.ws_connect("/")
        await _wait_for(lambda: handler.conn_count() == 2)

        assert await handler.run(ReliabilityTest(id=7)) == 2
        assert ReliabilityTest.from_json(await ws_a.receive_str(timeout=3)).id == 7
        assert ReliabilityTest.from_json(await ws_b.receive_str(timeout=3)).id == 7
        await ws_a.close()
        await ws_b.close()


@pytest.mark.asyncio
async def test_shards_the_number_of_cycles_for_each_worker():
    handler = WorkerHandler()
    async with test_utils.TestClient(test_utils.TestServer(_app(handler))) as client:
        sockets = [await client.ws_connect("/") for _ in range(3)]
        await _wait_for(lambda: handler.conn_count() == 3)

        assert await handler.run(ReliabilityTest(cycles=1000)) == 3
        total = 0
        for ws in sockets:
            total += ReliabilityTest.from_json(await ws.receive_str(timeout=3)).write_cycles
        assert total == 1000
        for ws in sockets:
            await ws.close()


@pytest.mark.asyncio
async def test_does_not_write_to_closed_clients():
    handler = WorkerHandler()
    async with test_utils.TestClient(test_utils.TestServer(_app(handler))) as client:
        ws_a = await client.ws_connect("/")
        ws_b = await client.ws_connect("/")
        await _wait_for(lambda: handler.conn_count() == 2)

        await ws_a.close()
        await _wait_for(lambda: handler.conn_count() == 1)

        for _ in range(10):
            assert await handler.run(ReliabilityTest()) == 1
        messages = [await ws_b.receive_str(timeout=3) for _ in range(10)]
        assert len(messages) == 10
        await ws_b.close()


@pytest.mark.asyncio
async def test_with_no_connections_returns_an_error():
    handler = WorkerHandler()
    with pytest.raises(NoWorkersError):
        await handler.run(ReliabilityTest())
    assert handler.conn_count() == 0


@pytest.mark.asyncio
async def test_plain_request_is_rejected():
    handler = WorkerHandler()
    async with test_utils.TestClient(test_utils.TestServer(_app(handler))) as client:
        response = await client.get("/")
        assert response.status == 400
        assert handler.conn_count() == 0