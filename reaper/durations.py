# reaper/durations.py
# Parse Go-style duration strings ("1h", "90m", "1h30m", "1.5h", "300ms") into timedelta.

from __future__ import annotations
from datetime import timedelta
import re

from .errors import DurationError

# seconds per unit; longest suffixes first so "ms" wins over "m"
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_UNIT_ALT = "|".join(re.escape(u) for u in _UNIT_SECONDS)
_PART = rf"(?:\d+(?:\.\d*)?|\.\d+)(?:{_UNIT_ALT})"
_FULL_RE = re.compile(rf"^([+-]?)((?:{_PART})+)$")
_PART_RE = re.compile(rf"(\d+(?:\.\d*)?|\.\d+)({_UNIT_ALT})")


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration the way Kubernetes tooling writes them: an optional sign
    followed by one or more <number><unit> pairs, units ns/us/ms/s/m/h.
    A bare "0" is accepted. Surrounding whitespace is ignored.

    Raises DurationError on anything else (including an empty string).
    """
    if not isinstance(value, str):
        raise DurationError(f"invalid duration {value!r}: not a string")
    s = value.strip()
    if s in ("0", "+0", "-0"):
        return timedelta(0)
    m = _FULL_RE.match(s)
    if not m:
        raise DurationError(f"invalid duration {value!r}")

    sign, body = m.group(1), m.group(2)
    total = 0.0
    for number, unit in _PART_RE.findall(body):
        total += float(number) * _UNIT_SECONDS[unit]
    if sign == "-":
        total = -total
    try:
        return timedelta(seconds=total)
    except OverflowError as e:
        raise DurationError(f"invalid duration {value!r}: out of range") from e


def format_duration(td: timedelta) -> str:
    """Compact rendering for log lines: 3d4h, 2h5m, 45s."""
    total = int(td.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    if days:
        return f"{sign}{days}d{hours}h"
    if hours:
        return f"{sign}{hours}h{minutes}m"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


__all__ = ["parse_duration", "format_duration"]
