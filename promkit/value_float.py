"""Float sample values and timestamp/value pairs with their JSON forms."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field

from .timemodel import EARLIEST, Time, _as_str, _format_float

_DECIMAL_RE = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
)
_INF_RE = re.compile(r"[+-]?(?:inf|infinity)", re.IGNORECASE)
_NAN_RE = re.compile(r"nan", re.IGNORECASE)


def format_float(value: float) -> str:
    """Format a float as the shortest exact decimal, with NaN, +Inf and -Inf spelled out."""
    return _format_float(float(value))


def _parse_float(s: str) -> float:
    if _NAN_RE.fullmatch(s):
        return math.nan
    if _INF_RE.fullmatch(s):
        return -math.inf if s.startswith("-") else math.inf
    if not _DECIMAL_RE.fullmatch(s):
        raise ValueError(f"invalid syntax: {json.dumps(s, ensure_ascii=False)}")
    value = float(s)
    if math.isinf(value):
        raise ValueError(f"value out of range: {json.dumps(s, ensure_ascii=False)}")
    return value


class _RawNumber(str):
    """The undecoded text of a JSON number."""


def _decode_raw(text: str | bytes):
    def reject(name: str):
        raise ValueError(f"invalid JSON constant {name}")

    return json.loads(
        _as_str(text),
        parse_int=_RawNumber,
        parse_float=_RawNumber,
        parse_constant=reject,
    )


class SampleValue(float):
    """The value of a sample at a given time."""

    def __repr__(self) -> str:
        return f"SampleValue({float(self)!r})"

    def __str__(self) -> str:
        return format_float(self)

    def __format__(self, spec: str) -> str:
        return str(self) if not spec else float.__format__(self, spec)

    def equal(self, other: float) -> bool:
        """True if both values are equal or both are NaN."""
        if float(self) == float(other):
            return True
        return math.isnan(self) and math.isnan(other)

    def to_json(self) -> str:
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleValue:
        s = _as_str(text)
        if len(s) < 2 or s[0] != '"' or s[-1] != '"':
            raise ValueError("sample value must be a quoted string")
        return cls(_parse_float(s[1:-1]))


@dataclass(frozen=True)
class SamplePair:
    """A sample value together with its timestamp."""

    timestamp: Time = field(default_factory=lambda: Time(0))
    value: SampleValue = field(default_factory=lambda: SampleValue(0))

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", Time(self.timestamp))
        object.__setattr__(self, "value", SampleValue(self.value))

    def __str__(self) -> str:
        return f"{self.value} @[{self.timestamp}]"

    def equal(self, other: SamplePair) -> bool:
        return self is other or (
            self.value.equal(other.value) and self.timestamp.equal(other.timestamp)
        )

    def to_json(self) -> str:
        return f"[{self.timestamp.to_json()},{self.value.to_json()}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> SamplePair:
        return cls._from_decoded(_decode_raw(text))

    @classmethod
    def _from_decoded(cls, items) -> SamplePair:
        if not isinstance(items, list):
            raise ValueError("sample pair must be a JSON array")
        timestamp = Time(0)
        value = SampleValue(0)
        if items:
            raw = items[0]
            if not isinstance(raw, _RawNumber):
                raise ValueError("timestamp must be a JSON number")
            timestamp = Time.from_json(raw)
        if len(items) > 1:
            raw = items[1]
            if not isinstance(raw, str) or isinstance(raw, _RawNumber):
                raise ValueError("sample value must be a quoted string")
            value = SampleValue.from_json(json.dumps(raw))
        return cls(timestamp, value)


ZERO_SAMPLE_PAIR = SamplePair(EARLIEST, SampleValue(0))