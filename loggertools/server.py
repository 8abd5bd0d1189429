"""Control server of the reliability test: accepts tests and workers."""

import logging
import os

from aiohttp import web

from loggertools.create_test_handler import CreateTestHandler
from loggertools.worker_handler import WorkerHandler

_log = logging.getLogger(__name__)


def create_app(runner_timeout=5.0):
    """Build the application serving ``/tests`` and ``/workers``."""
    workers = WorkerHandler()
    tests = CreateTestHandler(workers, runner_timeout)
    app = web.Application()
    app.router.add_route("*", "/tests", tests.handle)
    app.router.add_route("*", "/workers", workers.handle)
    return app


def main(argv=None):
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)
    port = os.environ.get("PORT", "")
    _log.info("server started on :%s", port)
    web.run_app(create_app(), port=int(port or 0), print=None)