"""An HTTP server that logs every request and its body."""

import logging
import os
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

_log = logging.getLogger(__name__)

_METHOD_STATUS = {"POST": HTTPStatus.CREATED}


def status_for_method(method):
    """POST requests get 201 Created, everything else 200 OK."""
    return _METHOD_STATUS.get(method, HTTPStatus.OK)


def should_log_requests(environ):
    """Requests are logged unless SKIP_REQUEST_LOGGING is ``true``."""
    return environ.get("SKIP_REQUEST_LOGGING", "") != "true"


def main(argv=None):
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)
    _log.info("Starting Post Printer...")
    log_requests = should_log_requests(os.environ)

    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            if log_requests:
                _log.info(
                    "Request: method=%s path=%s proto=%s headers=%s client=%s",
                    self.command, self.path, self.request_version,
                    dict(self.headers.items()), self.client_address,
                )
            length = int(self.headers.get("Content-Length") or 0)
            try:
                data = self.rfile.read(length) if length else b""
            except OSError as exc:
                _log.info("Error reading body: %s", exc)
                return
            _log.info("Body: %s", data.decode("utf-8", "replace"))
            self.send_response(status_for_method(self.command))
            self.send_header("Content-Length", "0")
            self.end_headers()

        do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _handle

        def log_message(self, format, *args):
            _log.debug("%s %s", self.address_string(), format % args)

    port = int(os.environ.get("PORT", "0") or 0)
    try:
        ThreadingHTTPServer(("", port), Handler).serve_forever()
    finally:
        _log.info("Closing Post Printer.")