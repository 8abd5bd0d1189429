"""A tiny HTTP server exposing a Prometheus counter named after the instance."""

import logging
import os
import re
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

_log = logging.getLogger(__name__)

METRICS_TEMPLATE = """
# HELP {name}_node_timex_pps_calibration_total Pulse per second count of calibration intervals.
# TYPE {name}_node_timex_pps_calibration_total counter
{name}_node_timex_pps_calibration_total 1
"""

INSTANCES = ("a", "b", "c", "d")

_INT = re.compile(r"[+-]?[0-9]+")


def metrics_text(instance_index):
    """Return the metrics page for the given instance index.

    Raises ValueError when the index is not a non-negative integer.
    """
    text = str(instance_index)
    if not _INT.fullmatch(text):
        raise ValueError(f"invalid instance index {text!r}")
    index = int(text)
    if index < 0:
        raise ValueError(f"instance index {index} out of range")
    return METRICS_TEMPLATE.format(name=INSTANCES[index % len(INSTANCES)])


class _Handler(BaseHTTPRequestHandler):
    def _reply(self, status, body):
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _handle(self):
        length = int(self.headers.get("Content-Length") or 0)
        if length:
            self.rfile.read(length)
        if urlsplit(self.path).path == "/metrics":
            try:
                body = metrics_text(os.environ.get("CF_INSTANCE_INDEX", "")).encode()
            except ValueError as exc:
                _log.error("failed to render metrics: %s", exc)
                self._reply(500, b"")
                return
            self._reply(200, body)
        else:
            self._reply(200, b"Hello World")

    do_GET = do_POST = do_PUT = do_DELETE = _handle

    def log_message(self, format, *args):
        _log.debug("%s %s", self.address_string(), format % args)


def _serve(port):
    ThreadingHTTPServer(("", port), _Handler).serve_forever()


def main(argv=None):
    port = int(os.environ.get("PORT", "0") or 0)
    threading.Thread(target=_serve, args=(port,), daemon=True).start()
    _serve(8081)