"""Websocket endpoint that keeps worker connections and hands them tests."""

import logging

from aiohttp import web

_log = logging.getLogger(__name__)


class NoWorkersError(Exception):
    """Raised when a test is run with no worker connected."""


class WorkerHandler:
    """Tracks connected workers and sends each of them started tests."""

    def __init__(self):
        self._conns = {}

    def conn_count(self):
        return len(self._conns)

    async def run(self, test):
        """Send ``test`` to every worker; return how many writes succeeded.

        The cycles are split so that all workers together write
        ``test.cycles`` logs, the last worker taking the remainder.
        """
        conns = list(self._conns.values())
        if not conns:
            raise NoWorkersError("you don't have any connections")

        test.write_cycles, remainder = divmod(test.cycles, len(conns))
        written = 0
        for position, conn in enumerate(conns):
            if position == len(conns) - 1:
                test.write_cycles += remainder
            try:
                await conn.send_str(test.to_json())
            except (OSError, RuntimeError) as exc:
                _log.info("Failed emit test: %s", exc)
                continue
            written += 1
        return written

    async def handle(self, request):
        """Accept a worker's websocket and hold it until it closes."""
        ws = web.WebSocketResponse()
        if not ws.can_prepare(request).ok:
            _log.info("failed to upgrade request to WS")
            return web.Response(status=400)
        await ws.prepare(request)

        key = id(ws)
        self._conns[key] = ws
        _log.info("worker has connected")
        try:
            async for _ in ws:
                pass
        finally:
            self._conns.pop(key, None)
            _log.info("worker has been removed")
            await ws.close()
        return ws