"""Native histogram samples, their buckets and their JSON forms."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal

from .timemodel import Time, _as_str, _parse_int
from .value_float import _RawNumber, _decode_raw, _parse_float, format_float


def _format_g(value: float) -> str:
    """Shortest-digit %g formatting: exponent form when the exponent is below -4 or at least 6."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    text = "".join(str(d) for d in digits)
    nd = len(text)
    dp = nd + exponent
    exp = dp - 1
    prefix = "-" if sign else ""
    if exp < -4 or exp >= 6:
        mantissa = text[0] + ("." + text[1:] if nd > 1 else "")
        exp_sign = "-" if exp < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"
    if dp <= 0:
        return f"{prefix}0.{'0' * -dp}{text}"
    if dp >= nd:
        return f"{prefix}{text}{'0' * (dp - nd)}"
    return f"{prefix}{text[:dp]}.{text[dp:]}"


def _format_f(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:f}"


def _float_from_decoded(raw, what: str) -> float:
    if not isinstance(raw, str) or isinstance(raw, _RawNumber):
        raise ValueError(f"{what} must be a quoted string")
    return _parse_float(raw)


def _time_from_decoded(raw) -> Time:
    if not isinstance(raw, _RawNumber):
        raise ValueError("timestamp must be a JSON number")
    return Time.from_json(raw)


class FloatString(float):
    """A float that travels through JSON as a quoted string."""

    def __repr__(self) -> str:
        return f"FloatString({float(self)!r})"

    def __str__(self) -> str:
        return format_float(self)

    def __format__(self, spec: str) -> str:
        return str(self) if not spec else float.__format__(self, spec)

    def to_json(self) -> str:
        return f'"{self}"'

    @classmethod
    def from_json(cls, text: str | bytes) -> FloatString:
        s = _as_str(text)
        if len(s) < 2 or s[0] != '"' or s[-1] != '"':
            raise ValueError("float value must be a quoted string")
        return cls(_parse_float(s[1:-1]))


@dataclass(frozen=True)
class HistogramBucket:
    """One bucket; boundaries 0..3 select which ends are inclusive."""

    boundaries: int = 0
    lower: FloatString = field(default_factory=lambda: FloatString(0))
    upper: FloatString = field(default_factory=lambda: FloatString(0))
    count: FloatString = field(default_factory=lambda: FloatString(0))

    def __post_init__(self) -> None:
        object.__setattr__(self, "boundaries", int(self.boundaries))
        object.__setattr__(self, "lower", FloatString(self.lower))
        object.__setattr__(self, "upper", FloatString(self.upper))
        object.__setattr__(self, "count", FloatString(self.count))

    def __str__(self) -> str:
        lower_inclusive = self.boundaries in (1, 3)
        upper_inclusive = self.boundaries in (0, 3)
        return "".join(
            (
                "[" if lower_inclusive else "(",
                f"{_format_g(self.lower)},{_format_g(self.upper)}",
                "]" if upper_inclusive else ")",
                f":{self.count}",
            )
        )

    def equal(self, other: HistogramBucket) -> bool:
        return self is other or (
            self.boundaries == other.boundaries
            and float(self.lower) == float(other.lower)
            and float(self.upper) == float(other.upper)
            and float(self.count) == float(other.count)
        )

    def to_json(self) -> str:
        return (
            f"[{self.boundaries},{self.lower.to_json()},"
            f"{self.upper.to_json()},{self.count.to_json()}]"
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> HistogramBucket:
        return cls._from_decoded(_decode_raw(text))

    @classmethod
    def _from_decoded(cls, items) -> HistogramBucket:
        if not isinstance(items, list):
            raise ValueError("histogram bucket must be a JSON array")
        if len(items) != 4:
            raise ValueError(f"wrong number of fields: {len(items)} != 4")
        raw_boundaries, raw_lower, raw_upper, raw_count = items
        boundaries = 0
        if raw_boundaries is not None:
            if not isinstance(raw_boundaries, _RawNumber):
                raise ValueError("bucket boundaries must be a JSON number")
            boundaries = _parse_int(raw_boundaries, 32)

        def float_field(raw) -> float:
            return 0.0 if raw is None else _float_from_decoded(raw, "float value")

        return cls(
            boundaries,
            float_field(raw_lower),
            float_field(raw_upper),
            float_field(raw_count),
        )


def buckets_equal(a, b) -> bool:
    """Compare two bucket lists element by element."""
    a = a or []
    b = b or []
    if len(a) != len(b):
        return False
    return all(x.equal(y) for x, y in zip(a, b))


@dataclass
class SampleHistogram:
    """A native histogram: total count, sum and buckets."""

    count: FloatString = field(default_factory=lambda: FloatString(0))
    sum: FloatString = field(default_factory=lambda: FloatString(0))
    buckets: list[HistogramBucket] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.count = FloatString(self.count)
        self.sum = FloatString(self.sum)
        self.buckets = list(self.buckets or [])

    def __str__(self) -> str:
        buckets = " ".join(str(b) for b in self.buckets)
        return (
            f"Count: {_format_f(self.count)}, Sum: {_format_f(self.sum)}, "
            f"Buckets: [{buckets}]"
        )

    def equal(self, other: SampleHistogram | None) -> bool:
        if other is None:
            return False
        return self is other or (
            float(self.count) == float(other.count)
            and float(self.sum) == float(other.sum)
            and buckets_equal(self.buckets, other.buckets)
        )

    def to_json(self) -> str:
        if self.buckets:
            buckets = "[" + ",".join(b.to_json() for b in self.buckets) + "]"
        else:
            buckets = "null"
        return (
            f'{{"count":{self.count.to_json()},"sum":{self.sum.to_json()},'
            f'"buckets":{buckets}}}'
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleHistogram:
        return cls._from_decoded(_decode_raw(text))

    @classmethod
    def _from_decoded(cls, obj) -> SampleHistogram:
        if not isinstance(obj, dict):
            raise ValueError("histogram must be a JSON object")
        raw_count = obj.get("count")
        raw_sum = obj.get("sum")
        raw_buckets = obj.get("buckets")
        count = 0.0 if raw_count is None else _float_from_decoded(raw_count, "float value")
        total = 0.0 if raw_sum is None else _float_from_decoded(raw_sum, "float value")
        buckets: list[HistogramBucket] = []
        if raw_buckets is not None:
            if not isinstance(raw_buckets, list):
                raise ValueError("histogram buckets must be a JSON array")
            buckets = [HistogramBucket._from_decoded(item) for item in raw_buckets]
        return cls(count, total, buckets)


@dataclass
class SampleHistogramPair:
    """A histogram together with its timestamp."""

    timestamp: Time = field(default_factory=lambda: Time(0))
    histogram: SampleHistogram | None = None

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)

    def __str__(self) -> str:
        return f"{self.histogram} @[{self.timestamp}]"

    def equal(self, other: SampleHistogramPair) -> bool:
        if self is other:
            return True
        if self.histogram is None:
            return other.histogram is None and self.timestamp.equal(other.timestamp)
        return self.histogram.equal(other.histogram) and self.timestamp.equal(
            other.timestamp
        )

    def to_json(self) -> str:
        if self.histogram is None:
            raise ValueError("histogram is nil")
        return f"[{self.timestamp.to_json()},{self.histogram.to_json()}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleHistogramPair:
        return cls._from_decoded(_decode_raw(text))

    @classmethod
    def _from_decoded(cls, items) -> SampleHistogramPair:
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ValueError("histogram pair must be a JSON array")
        if len(items) != 2:
            raise ValueError(f"wrong number of fields: {len(items)} != 2")
        raw_time, raw_histogram = items
        timestamp = Time(0) if raw_time is None else _time_from_decoded(raw_time)
        if raw_histogram is None:
            raise ValueError("histogram is null")
        return cls(timestamp, SampleHistogram._from_decoded(raw_histogram))