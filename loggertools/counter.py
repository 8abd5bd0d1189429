"""A bounded store of per-test message counts served over HTTP."""

import json
import logging
import os
import threading
from collections import deque
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

_log = logging.getLogger(__name__)


def _count_field(entry, name):
    value = entry.get(name, 0)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field {name!r} must be a non-negative integer")
    return value


def _message_count(entry):
    if entry is None:
        return ("", 0, 0)
    if not isinstance(entry, dict):
        raise ValueError("count entry must be an object")
    ident = entry.get("id", "")
    if ident is None:
        ident = ""
    if not isinstance(ident, str):
        raise ValueError("field 'id' must be a string")
    return (ident, _count_field(entry, "primeCount"), _count_field(entry, "msgCount"))


def get_id(path):
    """Return the last path segment, the id of a count."""
    return path.split("/")[-1]


class Counter:
    """Keeps the most recent ``size`` count entries."""

    def __init__(self, size):
        self._counts = deque(maxlen=size)
        self._lock = threading.Lock()

    def set_counts(self, body):
        """Store the entries of a JSON array; raises ValueError on bad input."""
        text = body.decode() if isinstance(body, bytes) else body
        text = text.lstrip()
        try:
            data, _ = json.JSONDecoder().raw_decode(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        if data is None:
            data = []
        if not isinstance(data, list):
            raise ValueError("expected a JSON array")
        entries = [_message_count(item) for item in data]
        with self._lock:
            self._counts.extend(entries)

    def _lookup(self, path, index):
        ident = get_id(path)
        count = 0
        with self._lock:
            for entry in self._counts:
                if entry[0] == ident:
                    count = entry[index]
        return str(count)

    def get(self, path):
        """Return the message count for the id at the end of ``path``."""
        return self._lookup(path, 2)

    def get_prime(self, path):
        """Return the prime count for the id at the end of ``path``."""
        return self._lookup(path, 1)

    def handle(self, method, path, body):
        """Route a request; return ``(status, body_bytes)``."""
        if path.startswith("/get/"):
            return 200, self.get(path).encode()
        if path.startswith("/get-prime/"):
            return 200, self.get_prime(path).encode()
        if path.startswith("/set/"):
            try:
                self.set_counts(body)
            except ValueError as exc:
                _log.info("Failed to unmarshal JSON request body: %s", exc)
                return 400, b""
            return 200, b""
        _log.info("404 - %s", path)
        return 404, b""


def main(argv=None):
    if os.environ.get("VERBOSE") == "true":
        logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)
    counter = Counter(100)

    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            status, reply = counter.handle(self.command, urlsplit(self.path).path, body)
            self.send_response(status)
            self.send_header("Content-Length", str(len(reply)))
            self.end_headers()
            self.wfile.write(reply)

        do_GET = do_POST = do_PUT = do_DELETE = _handle

        def log_message(self, format, *args):
            _log.debug("%s %s", self.address_string(), format % args)

    port = os.environ.get("PORT", "")
    _log.info("Listening on %s", port)
    ThreadingHTTPServer(("", int(port or 0)), Handler).serve_forever()