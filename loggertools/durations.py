"""Parsing and formatting of duration strings such as ``1h30m`` or ``250ms``."""

import re

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_PART = re.compile(r"(\d*)(?:\.(\d*))?(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text):
    """Parse a duration string into integer nanoseconds.

    Raises ValueError when the text is not a valid duration.
    """
    s = text
    negative = False
    if s and s[0] in "+-":
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return 0
    if not s:
        raise ValueError(f"invalid duration {text!r}")

    total = 0
    pos = 0
    while pos < len(s):
        match = _PART.match(s, pos)
        if not match:
            raise ValueError(f"invalid duration {text!r}")
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise ValueError(f"invalid duration {text!r}")
        scale = _UNITS[unit]
        total += int(whole or "0") * scale
        if frac:
            total += int(frac) * scale // 10 ** len(frac)
        pos = match.end()
    return -total if negative else total


def _with_fraction(value, precision):
    whole, rem = divmod(value, 10**precision)
    if not rem:
        return str(whole)
    return f"{whole}." + str(rem).zfill(precision).rstrip("0")


def format_duration(nanoseconds):
    """Render integer nanoseconds in the compact ``1h2m3.5s`` form."""
    if nanoseconds == 0:
        return "0s"
    sign = "-" if nanoseconds < 0 else ""
    value = abs(nanoseconds)
    if value < 1_000_000_000:
        if value < 1_000:
            text = f"{value}ns"
        elif value < 1_000_000:
            text = _with_fraction(value, 3) + "µs"
        else:
            text = _with_fraction(value, 6) + "ms"
        return sign + text

    seconds, frac = divmod(value, 1_000_000_000)
    text = _with_fraction((seconds % 60) * 1_000_000_000 + frac, 9) + "s"
    minutes = seconds // 60
    if minutes:
        text = f"{minutes % 60}m" + text
        hours = minutes // 60
        if hours:
            text = f"{hours}h" + text
    return sign + text