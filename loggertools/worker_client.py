"""Enrols a worker with the control server and runs the tests it sends."""

import asyncio
import inspect
import logging

import aiohttp

from loggertools.testinfo import ReliabilityTest

_log = logging.getLogger(__name__)


class WorkerClient:
    """Holds a websocket to the control server and runs each received test.

    ``runner.run(test)`` may be a plain or an async function; every test is
    started in its own task.
    """

    def __init__(self, addr, skip_verify, runner):
        self._addr = addr
        self._skip_verify = skip_verify
        self._runner = runner
        self._tasks = set()

    async def _dispatch(self, test):
        try:
            result = await asyncio.to_thread(self._runner.run, test)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            _log.info("test run failed: %s", exc)

    async def _read(self, ws):
        async for message in ws:
            if message.type not in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                break
            try:
                test = ReliabilityTest.from_json(message.data)
            except (ValueError, TypeError):
                break
            _log.info("test received from control server")
            task = asyncio.create_task(self._dispatch(test))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def run(self, stop=None):
        """Serve tests until ``stop`` (an asyncio.Event) is set or the server leaves.

        Raises aiohttp.ClientError when the control server cannot be reached.
        """
        options = {"ssl": False} if self._skip_verify else {}
        async with aiohttp.ClientSession() as session:
            async with session.ws_connect(self._addr, **options) as ws:
                _log.info("connected to control server")
                reader = asyncio.create_task(self._read(ws))
                waiters = {reader}
                if stop is not None:
                    waiters.add(asyncio.create_task(stop.wait()))
                try:
                    await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
                finally:
                    for task in waiters:
                        task.cancel()
                    await asyncio.gather(*waiters, return_exceptions=True)
                    await ws.close()