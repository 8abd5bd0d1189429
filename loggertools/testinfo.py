"""Description of a reliability test exchanged between server and workers."""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from loggertools.durations import format_duration, parse_duration

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME = re.compile(
    r"(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})"
)


def _parse_time(text):
    match = _TIME.fullmatch(text)
    if not match:
        raise ValueError(f"invalid time {text!r}")
    base, frac, zone = match.groups()
    micro = (frac or "").ljust(6, "0")[:6]
    zone = "+00:00" if zone == "Z" else zone
    return datetime.fromisoformat(f"{base}.{micro}{zone}")


def _format_time(moment):
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    if moment.microsecond:
        text += f".{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset()
    if offset == timedelta(0):
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


def _int_field(data, name, *, unsigned):
    value = data.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {name!r} must be an integer")
    if unsigned and value < 0:
        raise ValueError(f"field {name!r} must not be negative")
    return value


def _duration_field(data, name):
    value = data.get(name)
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"field {name!r} is not a duration")
    return parse_duration(str(value))


@dataclass
class ReliabilityTest:
    """A test run: how many logs to write and how long to wait for them."""

    id: int = 0
    cycles: int = 0
    write_cycles: int = 0
    delay: int = 0
    timeout: int = 0
    start_time: datetime = field(default=ZERO_TIME)

    def to_dict(self):
        return {
            "id": self.id,
            "cycles": self.cycles,
            "write_cycles": self.write_cycles,
            "delay": format_duration(self.delay),
            "timeout": format_duration(self.timeout),
            "start_time": _format_time(self.start_time),
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValueError("test description must be a JSON object")
        start = data.get("start_time")
        if start is None:
            start_time = ZERO_TIME
        elif isinstance(start, str):
            start_time = _parse_time(start)
        else:
            raise ValueError("field 'start_time' must be a string")
        return cls(
            id=_int_field(data, "id", unsigned=False),
            cycles=_int_field(data, "cycles", unsigned=True),
            write_cycles=_int_field(data, "write_cycles", unsigned=True),
            delay=_duration_field(data, "delay"),
            timeout=_duration_field(data, "timeout"),
            start_time=start_time,
        )

    def to_json(self):
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text):
        return cls.from_dict(json.loads(text))