"""Simple log load generators: big messages, constant rate and fixed interval."""

import argparse
import json
import logging
import os
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

from loggertools.durations import parse_duration
from loggertools.ratelimit import RateLimiter

_log = logging.getLogger(__name__)


class _NotFoundHandler(BaseHTTPRequestHandler):
    def _reply(self):
        self.send_response(404)
        self.end_headers()

    do_GET = do_POST = do_PUT = do_DELETE = do_HEAD = _reply

    def log_message(self, format, *args):
        pass


def _serve_forever(port):
    ThreadingHTTPServer(("", port), _NotFoundHandler).serve_forever()


def build_message(megabytes):
    """Return a string of ``megabytes`` MiB of asterisks."""
    return "*" * (megabytes * 1024 * 1024)


def _atoi(text):
    stripped = text[1:] if text[:1] in "+-" else text
    if not stripped.isdigit() or not stripped.isascii():
        raise ValueError(f"invalid integer {text!r}")
    return int(text)


def parse_app_name(name):
    """Read ``(rate, min_length)`` from a name such as ``constlogger-100-50``."""
    rate, min_length = 1000, 0
    parts = name.split("-")
    if len(parts) > 1:
        try:
            rate = _atoi(parts[1])
        except ValueError as exc:
            raise ValueError(
                f"failed to parse rate from application name (constlogger-RATE): {exc}"
            ) from exc
    if len(parts) > 2:
        try:
            min_length = _atoi(parts[2])
        except ValueError as exc:
            raise ValueError(
                "failed to parse minimum log length from application name "
                f"(constlogger-RATE-LENGTH): {exc}"
            ) from exc
    return rate, min_length


def const_log_line(total, min_length):
    """Build log line number ``total``, padded so line plus newline is ``min_length``."""
    message = f"msg {total}"
    pad = max(0, min_length - len(message) - 2)
    return f"{message} {'-' * pad}"


def _write_big_logs(message, frequency):
    while True:
        _log.info(message)
        time.sleep(frequency)


def biglogger_main(argv=None):
    parser = argparse.ArgumentParser(prog="biglogger")
    parser.add_argument("--size", type=int, default=1, help="size in MB of log message")
    parser.add_argument("--frequency", type=parse_duration, default=60_000_000_000,
                        help="frequency of logging")
    parser.add_argument("--port", type=int, default=8080, help="port of the http server")
    args = parser.parse_args(argv)
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)

    threading.Thread(
        target=_write_big_logs,
        args=(build_message(args.size), args.frequency / 1e9),
        daemon=True,
    ).start()
    _serve_forever(args.port)


def constlogger_main(argv=None):
    try:
        app = json.loads(os.environ.get("VCAP_APPLICATION", ""))
    except json.JSONDecodeError as exc:
        raise ValueError(f"failed to parse VCAP_APPLICATION: {exc}") from exc
    if not isinstance(app, dict) or not isinstance(app.get("application_name", ""), str):
        raise ValueError("failed to parse VCAP_APPLICATION: unexpected structure")

    rate, min_length = parse_app_name(app.get("application_name", ""))
    limiter = RateLimiter(rate)

    port = int(os.environ.get("PORT", "0") or 0)
    threading.Thread(target=_serve_forever, args=(port,), daemon=True).start()

    print(f"logging {rate} msgs/sec that are at least {min_length} bytes long", flush=True)
    total = 0
    while True:
        total += 1
        print(const_log_line(total, min_length), flush=True)
        limiter.take()


def logemitter_main(argv=None):
    try:
        interval = parse_duration(os.environ.get("EMIT_INTERVAL", ""))
    except ValueError:
        interval = 6_000_000
    if interval <= 0:
        raise ValueError("non-positive interval")
    period = interval / 1e9
    next_tick = time.monotonic() + period
    while True:
        time.sleep(max(0.0, next_tick - time.monotonic()))
        next_tick += period
        print("LogEmitter: emitting log", flush=True)


if __name__ == "__main__":
    sys.exit(biglogger_main())