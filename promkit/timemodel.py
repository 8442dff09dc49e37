"""Millisecond timestamps and the compact duration format used in configuration."""

from __future__ import annotations

import json
import math
import re
import time as _time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

_NANOS_PER_TICK = 1_000_000
_TICKS_PER_SECOND = 1_000
_DOT_PRECISION = 3

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT32_MIN = -(1 << 31)
_INT32_MAX = (1 << 31) - 1
_UINT64_MAX = (1 << 64) - 1

_INT_RE = re.compile(r"[+-]?[0-9]+")
_DIGITS = frozenset("0123456789")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_NANOSECOND = 1
_MILLISECOND = 1_000_000 * _NANOSECOND
_SECOND = 1_000 * _MILLISECOND
_MINUTE = 60 * _SECOND
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_WEEK = 7 * _DAY
_YEAR = 365 * _DAY

# Units must appear from biggest to smallest, so "1m1d" is rejected rather
# than read as one month and one day.
_UNITS: dict[str, tuple[int, int]] = {
    "ms": (7, _MILLISECOND),
    "s": (6, _SECOND),
    "m": (5, _MINUTE),
    "h": (4, _HOUR),
    "d": (3, _DAY),
    "w": (2, _WEEK),
    "y": (1, _YEAR),
}

_MS_PER_SECOND = 1000
_DURATION_FORMAT = (
    ("y", _MS_PER_SECOND * 60 * 60 * 24 * 365, True),
    ("w", _MS_PER_SECOND * 60 * 60 * 24 * 7, True),
    ("d", _MS_PER_SECOND * 60 * 60 * 24, False),
    ("h", _MS_PER_SECOND * 60 * 60, False),
    ("m", _MS_PER_SECOND * 60, False),
    ("s", _MS_PER_SECOND, False),
    ("ms", 1, False),
)


def _as_str(text: str | bytes | bytearray) -> str:
    if isinstance(text, (bytes, bytearray)):
        return bytes(text).decode("utf-8")
    return text


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _trunc_mod(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _parse_int(s: str, bits: int) -> int:
    if not _INT_RE.fullmatch(s):
        raise ValueError(f"invalid syntax: {_quote(s)}")
    value = int(s)
    low, high = (_INT64_MIN, _INT64_MAX) if bits == 64 else (_INT32_MIN, _INT32_MAX)
    if not low <= value <= high:
        raise ValueError(f"value out of range: {_quote(s)}")
    return value


def _format_float(value: float) -> str:
    """Shortest decimal text that reads back as the same float, never in exponent form."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    if text.endswith(".0"):
        text = text[:-2]
    return text


class Time(int):
    """Milliseconds since the Unix epoch, leap seconds excluded."""

    def __repr__(self) -> str:
        return f"Time({int(self)})"

    def __str__(self) -> str:
        return _format_float(int(self) / _TICKS_PER_SECOND)

    def __format__(self, spec: str) -> str:
        return str(self) if not spec else int.__format__(self, spec)

    def equal(self, other: int) -> bool:
        return int(self) == int(other)

    def before(self, other: int) -> bool:
        return int(self) < int(other)

    def after(self, other: int) -> bool:
        return int(self) > int(other)

    def add(self, d: int | timedelta) -> Time:
        """Return this time shifted by a duration given in nanoseconds."""
        if isinstance(d, timedelta):
            d = (d // timedelta(microseconds=1)) * 1000
        return Time(int(self) + _trunc_div(int(d), _NANOS_PER_TICK))

    def sub(self, other: int) -> Duration:
        return Duration((int(self) - int(other)) * _NANOS_PER_TICK)

    def to_datetime(self) -> datetime:
        return _EPOCH + timedelta(milliseconds=int(self))

    def unix(self) -> int:
        return _trunc_div(int(self), _TICKS_PER_SECOND)

    def unix_nano(self) -> int:
        return int(self) * _NANOS_PER_TICK

    def to_json(self) -> str:
        return str(self)

    @classmethod
    def from_json(cls, text: str | bytes) -> Time:
        s = _as_str(text)
        parts = s.split(".")
        if len(parts) == 1:
            return cls(_parse_int(parts[0], 64) * _TICKS_PER_SECOND)
        if len(parts) == 2:
            whole, frac = parts
            v = _parse_int(whole, 64) * _TICKS_PER_SECOND
            frac = frac[:_DOT_PRECISION].ljust(_DOT_PRECISION, "0")
            va = _parse_int(frac, 32)
            # A value like -0.1 loses its sign in the integer part.
            if whole.startswith("-") and v + va > 0:
                return cls(-(v + va))
            return cls(v + va)
        raise ValueError(f"invalid time {_quote(s)}")


EARLIEST = Time(_INT64_MIN)
LATEST = Time(_INT64_MAX)


@dataclass(frozen=True)
class Interval:
    """The span between two timestamps."""

    start: Time
    end: Time


def now() -> Time:
    return time_from_unix_nano(_time.time_ns())


def time_from_unix(t: int) -> Time:
    return Time(t * _TICKS_PER_SECOND)


def time_from_unix_nano(t: int) -> Time:
    return Time(_trunc_div(t, _NANOS_PER_TICK))


class Duration(int):
    """A span of time in nanoseconds, written in the compact "1d2h" form."""

    def __repr__(self) -> str:
        return f"Duration({int(self)})"

    def __str__(self) -> str:
        ms = _trunc_div(int(self), _MILLISECOND)
        if ms == 0:
            return "0s"
        out = []
        for unit, mult, exact in _DURATION_FORMAT:
            # Years and weeks only when they divide evenly: 90d reads better than 12w6d.
            if exact and ms % mult != 0:
                continue
            v = _trunc_div(ms, mult)
            if v > 0:
                out.append(f"{v}{unit}")
                ms -= v * mult
        return "".join(out)

    def __format__(self, spec: str) -> str:
        return str(self) if not spec else int.__format__(self, spec)

    def to_json(self) -> str:
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> Duration:
        value = json.loads(_as_str(text))
        if not isinstance(value, str):
            raise ValueError("duration must be a JSON string")
        return parse_duration(value)

    def to_text(self) -> str:
        return str(self)

    @classmethod
    def from_text(cls, text: str | bytes) -> Duration:
        return parse_duration(_as_str(text))


def parse_duration(s: str) -> Duration:
    """Parse a duration, taking a year as 365d, a week as 7d and a day as 24h."""
    if s == "0":
        return Duration(0)
    if s == "":
        raise ValueError("empty duration string")

    orig = s
    invalid = f"not a valid duration string: {_quote(orig)}"
    total = 0
    last_pos = 0
    while s:
        if s[0] not in _DIGITS:
            raise ValueError(invalid)
        i = 0
        while i < len(s) and s[i] in _DIGITS:
            i += 1
        v = int(s[:i])
        if v > _UINT64_MAX:
            raise ValueError(invalid)
        s = s[i:]

        i = 0
        while i < len(s) and s[i] not in _DIGITS:
            i += 1
        if i == 0:
            raise ValueError(invalid)
        unit_name, s = s[:i], s[i:]
        unit = _UNITS.get(unit_name)
        if unit is None:
            raise ValueError(f"unknown unit {_quote(unit_name)} in duration {_quote(orig)}")
        pos, mult = unit
        if pos <= last_pos:
            raise ValueError(invalid)
        last_pos = pos
        if v > (1 << 63) // mult:
            raise ValueError("duration out of range")
        total += v * mult
        if total > _INT64_MAX:
            raise ValueError("duration out of range")
    return Duration(total)