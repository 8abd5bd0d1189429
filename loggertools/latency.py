"""Bookkeeping for log latency tests: send times, results and their summary."""

import json
import re
import threading
import time
import uuid
from dataclasses import dataclass
from urllib.parse import urlsplit

DEFAULT_SAMPLE_SIZE = 10
MESSAGE_PREFIX = "loggregator-latency-test-"
DONE_SENDING_GRACE = 5_000_000_000

_INT = re.compile(r"[+-]?[0-9]+")


@dataclass
class LatencyResults:
    """Summary of a latency test; seconds are -1 when nothing arrived."""

    avg_seconds: float
    max_seconds: float
    logs_received: int
    logs_expected: int

    def to_dict(self):
        return {
            "avg_seconds": self.avg_seconds,
            "max_seconds": self.max_seconds,
            "logs_received": self.logs_received,
            "logs_expected": self.logs_expected,
        }


class LatencyRecorder:
    """Tracks when test messages were sent and how long they took to arrive.

    All times are integer nanoseconds since the epoch.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._send_times = {}
        self._done_sending = None
        self._results = {}

    @property
    def results(self):
        """A copy of the latencies recorded so far, by message."""
        with self._lock:
            return dict(self._results)

    def record_send(self, message, when=None):
        with self._lock:
            self._send_times[message] = time.time_ns() if when is None else when

    def mark_done(self, when=None):
        with self._lock:
            self._done_sending = time.time_ns() if when is None else when

    def record_result(self, message, end):
        """Record the latency of ``message``; return whether it was recorded."""
        with self._lock:
            if message in self._results:
                return False
            start = self._send_times.get(message)
            if start is None:
                return False
            self._results[message] = end - start
            return True

    def past_done_sending(self, timestamp):
        """Whether ``timestamp`` is more than five seconds after sending finished."""
        with self._lock:
            done = self._done_sending
        return done is not None and timestamp > done + DONE_SENDING_GRACE


def sample_size(query, maximum=None):
    """Read the ``samples`` query value, falling back to the default size."""
    text = query.get("samples", "")
    if not text:
        return DEFAULT_SAMPLE_SIZE
    if not _INT.fullmatch(text):
        return DEFAULT_SAMPLE_SIZE
    size = int(text)
    if size < 1 or (maximum is not None and size > maximum):
        return DEFAULT_SAMPLE_SIZE
    return size


def _mean_ns(durations):
    total = sum(durations)
    quotient = abs(total) // len(durations)
    return -quotient if total < 0 else quotient


def compute_average(results):
    """Mean latency in nanoseconds; raises ValueError when there are none."""
    if not results:
        raise ValueError("No results.")
    return _mean_ns(list(results.values()))


def compute_test_results(results, sample_quantity):
    summary = LatencyResults(-1, -1, len(results), sample_quantity)
    if not results:
        return summary
    durations = list(results.values())
    summary.avg_seconds = _mean_ns(durations) / 1e9
    summary.max_seconds = max(0, *durations) / 1e9
    return summary


def read_input(environ, require_websocket=False):
    """Return ``(addr, token, location, origin)`` from the environment.

    ``origin`` is the http(s) counterpart of a ws(s) target, or None when a
    websocket target is not required.
    """
    target = environ.get("TARGET_URL", "")
    if not target:
        raise ValueError("empty target url")
    token = environ.get("TOKEN", "")
    if not token:
        raise ValueError("empty token")
    port = environ.get("PORT", "")
    if not port:
        raise ValueError("empty port")
    try:
        location = urlsplit(target)
    except ValueError as exc:
        raise ValueError(f"invalid target url: {exc}") from exc

    origin = None
    if require_websocket:
        scheme = {"ws": "http", "wss": "https"}.get(location.scheme)
        if scheme is None:
            raise ValueError("target url requires a scheme of ws or wss")
        origin = location._replace(scheme=scheme).geturl()
    return ":" + port, token, location.geturl(), origin


def app_id(environ):
    """The application id from VCAP_APPLICATION."""
    try:
        data = json.loads(environ.get("VCAP_APPLICATION", ""))
    except json.JSONDecodeError as exc:
        raise ValueError(str(exc)) from exc
    if data is not None and not isinstance(data, dict):
        raise ValueError("VCAP_APPLICATION is not a JSON object")
    ident = (data or {}).get("application_id")
    if not isinstance(ident, str):
        raise ValueError("can not type assert app id")
    return ident


def generate_random_message():
    return MESSAGE_PREFIX + str(uuid.uuid4())