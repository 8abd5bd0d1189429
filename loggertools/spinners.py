"""HTTP-triggered log spinners writing batches of log lines to stdout."""

import json
import logging
import math
import os
import re
import sys
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, urlsplit

from loggertools.durations import format_duration, parse_duration
from loggertools.ratelimit import RateLimiter

DEFAULT_TEXT = "LogSpinner Log Message"
_log = logging.getLogger(__name__)
_INT = re.compile(r"[+-]?[0-9]+")


def _atoi(text):
    if not _INT.fullmatch(text or ""):
        return 0
    return int(text)


def _duration_or(text, default):
    try:
        return parse_duration(text or "")
    except ValueError:
        return default


def _rate_text(count, elapsed):
    if elapsed == 0:
        return "+Inf" if count else "NaN"
    rate = count / elapsed
    return "+Inf" if math.isinf(rate) else f"{rate:f}"


def logspinner_params(form):
    """Return ``(cycles, delay_ns, text)`` from request form values."""
    cycles = _atoi(form.get("cycles", "")) or 10
    delay = _duration_or(form.get("delay"), 1_000_000_000)
    text = form.get("text", "") or DEFAULT_TEXT
    return cycles, delay, text


def lograter_params(form):
    """Return ``(rate, duration_ns, text)`` from request form values."""
    rate = _atoi(form.get("rate", "")) or 100
    duration = _duration_or(form.get("duration"), 1_000_000_000)
    text = form.get("text", "") or DEFAULT_TEXT
    return rate, duration, text


def jsonspinner_params(form, now_ns):
    """Return ``(cycles, delay_ns, id, mode)``; the id defaults to ``now_ns``."""
    cycles = _atoi(form.get("cycles", "")) or 10
    delay = _duration_or(form.get("delay"), 1_000_000_000)
    log_id = form.get("id", "") or str(now_ns)
    mode = "primeCount" if form.get("primer", "") == "true" else "msgCount"
    return cycles, delay, log_id, mode


def _quote(text):
    return json.dumps(text, ensure_ascii=False)


def json_payload(log_id, cycles, delay, mode, iteration):
    """Build one JSON log line of the json spinner."""
    return (
        f'{{"id":{_quote(log_id)},"cycles":{cycles},'
        f'"delay":{_quote(format_duration(delay))},{_quote(mode)}:1,"iteration":{iteration}}}'
    )


def run_logspinner(cycles, delay, text, out):
    """Write ``cycles`` numbered lines, sleeping ``delay`` ns between them."""
    start = time.monotonic_ns()
    for number in range(1, cycles + 1):
        out.write(f"msg {number} {text}\n")
        out.flush()
        time.sleep(delay / 1e9)
    elapsed = time.monotonic_ns() - start
    out.write(
        f"Duration {format_duration(elapsed)} TotalSent {cycles} "
        f"Rate {_rate_text(cycles, elapsed / 1e9)} \n"
    )
    out.flush()
    return cycles


def run_lograter(rate, duration, text, out):
    """Write lines at ``rate`` per second for ``duration`` ns; return the count."""
    end = time.monotonic_ns() + duration
    limiter = RateLimiter(rate)
    start = time.monotonic_ns()
    total = 0
    while time.monotonic_ns() < end:
        total += 1
        out.write(f"msg {total} {text}\n")
        out.flush()
        limiter.take()
    elapsed = time.monotonic_ns() - start
    out.write(
        f"Duration {format_duration(elapsed)} TotalSent {total} "
        f"Rate {_rate_text(total, elapsed / 1e9)} \n"
    )
    out.flush()
    return total


def run_jsonspinner(cycles, delay, log_id, mode, out):
    """Write ``cycles`` JSON payloads, sleeping ``delay`` ns between them."""
    start = time.monotonic_ns()
    for iteration in range(1, cycles + 1):
        out.write(json_payload(log_id, cycles, delay, mode, iteration) + "\n")
        out.flush()
        time.sleep(delay / 1e9)
    elapsed = time.monotonic_ns() - start
    _log.info(
        "Duration %s TotalSent %d Rate %s",
        format_duration(elapsed), cycles, _rate_text(cycles, elapsed / 1e9),
    )
    return cycles


def _serve(respond):
    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            form = {k: v[0] for k, v in
                    parse_qs(urlsplit(self.path).query, keep_blank_values=True).items()}
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            ctype = self.headers.get("Content-Type", "")
            if self.command in ("POST", "PUT", "PATCH") and ctype.startswith(
                "application/x-www-form-urlencoded"
            ):
                posted = parse_qs(body.decode("utf-8", "replace"), keep_blank_values=True)
                form.update({k: v[0] for k, v in posted.items()})
            reply = respond(form).encode()
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(reply)))
            self.end_headers()
            self.wfile.write(reply)

        do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = _handle

        def log_message(self, format, *args):
            pass

    port = int(os.environ.get("PORT", "0") or 0)
    print("listening...", flush=True)
    ThreadingHTTPServer(("", port), Handler).serve_forever()


def _background(target, *args):
    threading.Thread(target=target, args=args, daemon=True).start()


def logspinner_main(argv=None):
    def respond(form):
        cycles, delay, text = logspinner_params(form)
        _background(run_logspinner, cycles, delay, text, sys.stdout)
        return f"cycles {cycles}, delay {format_duration(delay)}, text {text}\n"

    _serve(respond)


def lograter_main(argv=None):
    def respond(form):
        rate, duration, text = lograter_params(form)
        _background(run_lograter, rate, duration, text, sys.stdout)
        return f"rate {rate}, duration {format_duration(duration)}, text {text}\n"

    _serve(respond)


def jsonspinner_main(argv=None):
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO)

    def respond(form):
        cycles, delay, log_id, mode = jsonspinner_params(form, time.time_ns())
        _background(run_jsonspinner, cycles, delay, log_id, mode, sys.stdout)
        return f"cycles {cycles}, delay {format_duration(delay)}, id {log_id}, mode {mode}\n"

    _serve(respond)