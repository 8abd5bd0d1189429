"""A syslog-over-HTTPS drain that tallies JSON counts from RFC 5424 messages."""

import json
import logging
import os
import re
import sys
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import requests

from loggertools.durations import parse_duration

_log = logging.getLogger(__name__)

_HEADER = re.compile(rb"<(\d{1,3})>1 (\S+) (\S+) (\S+) (\S+) (\S+) ")
_TIME = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})"
)


def _parse_time(text):
    if text == "-":
        return None
    match = _TIME.fullmatch(text)
    if not match:
        raise ValueError(f"invalid timestamp {text!r}")
    base, frac, zone = match.groups()
    micro = (frac or "").ljust(6, "0")[:6]
    zone = "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(f"{base}.{micro}{zone}")


def _format_time(moment):
    if moment is None:
        return "-"
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.isoformat(timespec="microseconds")
    if moment.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def _field(value):
    return value if value else "-"


def _unfield(raw):
    text = raw.decode("utf-8")
    return "" if text == "-" else text


@dataclass
class SyslogMessage:
    """An RFC 5424 syslog message."""

    priority: int = 0
    timestamp: datetime = None
    hostname: str = ""
    app_name: str = ""
    process_id: str = ""
    message_id: str = ""
    structured_data: str = ""
    message: bytes = field(default=b"")

    def to_bytes(self):
        header = " ".join([
            f"<{self.priority}>1",
            _format_time(self.timestamp),
            _field(self.hostname),
            _field(self.app_name),
            _field(self.process_id),
            _field(self.message_id),
            _field(self.structured_data),
        ]).encode()
        if self.message:
            return header + b" " + self.message
        return header


def _structured_end(data, pos):
    if data[pos:pos + 1] == b"-":
        return pos + 1
    if data[pos:pos + 1] != b"[":
        raise ValueError("invalid structured data")
    while data[pos:pos + 1] == b"[":
        in_quote = False
        pos += 1
        while True:
            if pos >= len(data):
                raise ValueError("unterminated structured data")
            char = data[pos:pos + 1]
            if in_quote and char == b"\\":
                pos += 2
                continue
            if char == b'"':
                in_quote = not in_quote
            elif char == b"]" and not in_quote:
                pos += 1
                break
            pos += 1
    return pos


def parse_rfc5424(data):
    """Parse an RFC 5424 message; raises ValueError when it is malformed."""
    match = _HEADER.match(data)
    if not match:
        raise ValueError("malformed RFC 5424 header")
    priority = int(match.group(1))
    if priority > 191:
        raise ValueError("priority out of range")
    try:
        timestamp = _parse_time(match.group(2).decode("ascii"))
        end = _structured_end(data, match.end())
        structured = data[match.end():end].decode("utf-8")
        hostname, app, proc, msgid = (_unfield(match.group(i)) for i in range(3, 7))
    except UnicodeDecodeError as exc:
        raise ValueError(f"invalid header encoding: {exc}") from exc
    rest = data[end:]
    if rest and not rest.startswith(b" "):
        raise ValueError("expected space before message")
    return SyslogMessage(
        priority=priority,
        timestamp=timestamp,
        hostname=hostname,
        app_name=app,
        process_id=proc,
        message_id=msgid,
        structured_data="" if structured == "-" else structured,
        message=rest[1:],
    )


def _count(value, name):
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"field {name!r} must be a non-negative integer")
    return value


class DrainHandler:
    """Accumulates prime and message counts per id."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters = {}

    def handle(self, body):
        """Process one request body and return the HTTP status."""
        if not body:
            _log.info("Empty body")
            return 400

        sys.stdout.write("Received: " + body.decode("utf-8", "replace"))
        sys.stdout.flush()

        try:
            message = parse_rfc5424(body)
        except ValueError as exc:
            _log.info("Failed to unmarshal (via RFC-5424) message: %s", exc)
            return 400

        try:
            data = json.loads(message.message)
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            ident = data.get("id") or ""
            if not isinstance(ident, str):
                raise ValueError("field 'id' must be a string")
            prime = _count(data.get("primeCount"), "primeCount")
            msgs = _count(data.get("msgCount"), "msgCount")
        except (ValueError, UnicodeDecodeError) as exc:
            _log.info("Failed to unmarshal (via JSON) message (%r): %s", message.message, exc)
            return 200

        with self._lock:
            counts = self._counters.setdefault(ident, [0, 0])
            counts[0] += prime
            counts[1] += msgs
        return 200

    def fetch_counters(self):
        """Return a snapshot of the counts as a list of dicts."""
        with self._lock:
            return [
                {"id": ident, "primeCount": prime, "msgCount": msgs}
                for ident, (prime, msgs) in self._counters.items()
            ]


def report_counts(handler, url, interval, stop):
    """Post the counts to ``url + "/set/"`` every ``interval`` seconds until stopped."""
    target = url + "/set/"
    while not stop.wait(interval):
        counts = handler.fetch_counters()
        payload = json.dumps(counts) if counts else "null"
        _log.info("Posting %s", payload)
        try:
            response = requests.post(
                target, data=payload, headers={"Content-Type": "application/json"}, timeout=30
            )
        except requests.RequestException as exc:
            _log.info("Failed to write count: %s", exc)
            continue
        if response.status_code != 200:
            _log.info("Failed to write count: expected 200 got %d", response.status_code)


def main(argv=None):
    logging.basicConfig(format="%(asctime)s %(message)s", level=logging.INFO, stream=sys.stderr)
    env_interval = os.environ.get("INTERVAL", "")
    try:
        interval = parse_duration(env_interval) / 1e9
    except ValueError:
        if env_interval:
            raise
        interval = 1.0

    handler = DrainHandler()
    counter_url = os.environ.get("COUNTER_URL", "")
    if counter_url:
        threading.Thread(
            target=report_counts,
            args=(handler, counter_url, interval, threading.Event()),
            daemon=True,
        ).start()

    class Handler(BaseHTTPRequestHandler):
        def _handle(self):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            self.send_response(handler.handle(body))
            self.send_header("Content-Length", "0")
            self.end_headers()

        do_GET = do_POST = do_PUT = _handle

        def log_message(self, format, *args):
            pass

    port = int(os.environ.get("PORT", "0") or 0)
    ThreadingHTTPServer(("", port), Handler).serve_forever()