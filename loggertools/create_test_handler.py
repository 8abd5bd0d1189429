"""HTTP endpoint that starts a reliability test on the worker cluster."""

import asyncio
import inspect
import json
import logging
import time
from datetime import datetime, timezone

from aiohttp import web

from loggertools.testinfo import ReliabilityTest

_log = logging.getLogger(__name__)


def build_test(body):
    """Decode a test request body and stamp it with an id and start time.

    Raises ValueError when the body is not a valid test description.
    """
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    data, _ = json.JSONDecoder().raw_decode(text.lstrip())
    test = ReliabilityTest.from_dict(data)
    test.id = time.time_ns()
    test.start_time = datetime.now(timezone.utc)
    return test


def is_valid(test):
    """A test needs a non-zero number of cycles and a non-zero timeout."""
    return test.cycles != 0 and test.timeout != 0


class CreateTestHandler:
    """Accepts POSTed tests and hands them to ``runner`` until it succeeds.

    ``runner_timeout`` is in seconds; ``runner.run`` may be a plain or an
    async function and signals failure by raising.
    """

    def __init__(self, runner, runner_timeout):
        self._runner = runner
        self._runner_timeout = runner_timeout

    async def _attempt_run(self, test):
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._runner_timeout
        while True:
            try:
                result = self._runner.run(test)
                if inspect.isawaitable(result):
                    await result
                return
            except Exception:
                if loop.time() >= deadline:
                    raise
            await asyncio.sleep(0)

    async def handle(self, request):
        if request.method != "POST":
            return web.Response(status=405)

        body = await request.read()
        try:
            test = build_test(body)
        except ValueError as exc:
            _log.info("failed to decode request body: %s", exc)
            return web.Response(status=400)

        if not is_valid(test):
            return web.Response(status=400)

        try:
            await self._attempt_run(test)
        except Exception as exc:
            return web.Response(status=500, text=str(exc))

        return web.Response(status=201, text=test.to_json(), content_type="application/json")