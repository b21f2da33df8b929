"""Common time utilities."""

from __future__ import annotations

import datetime as dt
import re

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|us|µs|ns|h|m|s)")

_UNIT_SECONDS: dict[str, float] = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(text: str) -> dt.timedelta:
    """Parse a Go-style duration string such as ``1h``, ``1h30m`` or ``500ms``.

    A bare ``0`` is accepted as a zero duration.

    Raises
    ------
    ValueError
        If the text is empty, negative or contains unknown units.

    Examples
    --------
    >>> parse_duration("1h30m")
    datetime.timedelta(seconds=5400)
    >>> parse_duration("0")
    datetime.timedelta(0)

    """
    raw = text.strip()
    if raw == "0":
        return dt.timedelta(0)
    if not raw:
        msg = "duration must not be empty"
        raise ValueError(msg)

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(raw):
        if match.start() != position:
            break
        value, unit = match.groups()
        total += float(value) * _UNIT_SECONDS[unit]
        position = match.end()

    if position != len(raw):
        msg = f"invalid duration: {text!r}"
        raise ValueError(msg)
    return dt.timedelta(seconds=total)


def format_duration(value: dt.timedelta) -> str:
    """Render a timedelta in the compact form accepted by :func:`parse_duration`."""
    seconds = int(value.total_seconds())
    if seconds == 0:
        return "0s"
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return "".join(parts)
