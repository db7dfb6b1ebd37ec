"""Duration literals such as ``"5s"``, ``"1h30m"`` or ``"250ms"``.

The grammar is the one used for every timeout and period in the SAPI
configuration file: an optional sign followed by one or more
``<decimal><unit>`` pairs. A bare ``"0"`` is the only unit-less literal.
"""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Dict

_NANOS_PER_UNIT: Dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]+)")

_US_PER_SECOND = 1_000_000
_US_PER_MINUTE = 60 * _US_PER_SECOND
_US_PER_HOUR = 60 * _US_PER_MINUTE


def parse_duration(text: str) -> timedelta:
    """Parse a duration literal into a timedelta.

    Sub-microsecond remainders are truncated toward zero.
    """
    if not isinstance(text, str):
        raise ValueError(f"duration must be a string, got {type(text).__name__}")
    raw = text.strip()
    if not raw:
        raise ValueError("duration is empty")

    negative = False
    body = raw
    if body[0] in "+-":
        negative = body[0] == "-"
        body = body[1:]
    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration {text!r}")

    nanos = 0
    pos = 0
    while pos < len(body):
        match = _COMPONENT.match(body, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        whole, frac, unit = match.groups()
        frac = frac or ""
        if not whole and not frac:
            raise ValueError(f"invalid duration {text!r}")
        multiplier = _NANOS_PER_UNIT.get(unit)
        if multiplier is None:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        nanos += int(whole or "0") * multiplier
        if frac:
            nanos += int(frac) * multiplier // (10 ** len(frac))
        pos = match.end()

    micros = nanos // 1_000
    return timedelta(microseconds=-micros if negative else micros)


def format_duration(value: timedelta) -> str:
    """Render a timedelta in the compact literal form accepted by parse_duration."""
    total_us = value // timedelta(microseconds=1)
    if total_us == 0:
        return "0s"
    sign = "-" if total_us < 0 else ""
    rem = abs(total_us)

    hours, rem = divmod(rem, _US_PER_HOUR)
    minutes, rem = divmod(rem, _US_PER_MINUTE)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")

    if rem:
        seconds, micros = divmod(rem, _US_PER_SECOND)
        if not micros:
            parts.append(f"{seconds}s")
        elif seconds or parts:
            parts.append(f"{seconds}.{micros:06d}".rstrip("0") + "s")
        elif micros % 1_000 == 0:
            parts.append(f"{micros // 1_000}ms")
        elif micros >= 1_000:
            parts.append(f"{micros // 1_000}.{micros % 1_000:03d}".rstrip("0") + "ms")
        else:
            parts.append(f"{micros}us")

    return sign + "".join(parts)


__all__ = ["parse_duration", "format_duration"]
