"""Counts POST requests received within a recent time window."""

import logging
import os
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from loggertools.durations import parse_duration

_log = logging.getLogger(__name__)


class PostTracker:
    """Records the times of POST requests and counts the recent ones."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._posts = []

    def count_post(self):
        with self._lock:
            self._posts.append(self._clock())

    def get_counts(self, in_last):
        """Count posts newer than ``in_last`` seconds, dropping older ones."""
        with self._lock:
            threshold = self._clock() - in_last
            for index, moment in enumerate(self._posts):
                if moment > threshold:
                    self._posts = self._posts[index:]
                    return len(self._posts)
            return 0


def main(argv=None):
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)
    _log.info("Starting Post Counter...")
    tracker = PostTracker()
    try:
        window = parse_duration(os.environ.get("DURATION", "")) / 1e9
    except ValueError:
        window = 60.0

    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            length = int(self.headers.get("Content-Length") or 0)
            if length:
                self.rfile.read(length)
            if self.command == "POST":
                tracker.count_post()
                body = b""
            else:
                body = str(tracker.get_counts(window)).encode()
            self.send_response(200)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)

        do_GET = do_POST = do_PUT = do_DELETE = _handle

        def log_message(self, format, *args):
            _log.debug("%s %s", self.address_string(), format % args)

    port = int(os.environ.get("PORT", "0") or 0)
    try:
        ThreadingHTTPServer(("", port), Handler).serve_forever()
    finally:
        _log.info("Closing Post Counter.")