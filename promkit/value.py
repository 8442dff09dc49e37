"""Query result values: samples, streams, scalars, strings, vectors and matrices."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import cmp_to_key

from .timemodel import EARLIEST, Time
from .value_float import SamplePair, SampleValue, _RawNumber, _decode_raw, _parse_float
from .value_histogram import SampleHistogram, SampleHistogramPair
from .value_type import ValueType

_NAME_LABEL = "__name__"


def _json_string(s: str) -> str:
    return (
        json.dumps(s, ensure_ascii=False)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def _metric_json(metric: dict[str, str]) -> str:
    items = ",".join(
        f"{_json_string(k)}:{_json_string(v)}" for k, v in sorted(metric.items())
    )
    return "{" + items + "}"


def _metric_from_decoded(raw) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("metric must be a JSON object")
    for name, value in raw.items():
        if not isinstance(value, str) or isinstance(value, _RawNumber):
            raise ValueError(f"label value for {name!r} must be a string")
    return {str(k): str(v) for k, v in raw.items()}


def _metric_str(metric: dict[str, str]) -> str:
    name = metric.get(_NAME_LABEL)
    labels = sorted(
        f"{k}={json.dumps(v, ensure_ascii=False)}"
        for k, v in metric.items()
        if k != _NAME_LABEL
    )
    if not labels:
        return name if name is not None else "{}"
    return f"{name or ''}{{{', '.join(labels)}}}"


def _metric_before(a: dict[str, str], b: dict[str, str]) -> bool:
    if len(a) != len(b):
        return len(a) < len(b)
    for name in sorted(set(a) | set(b)):
        if name not in a:
            return True
        if name not in b:
            return False
        if a[name] != b[name]:
            return a[name] < b[name]
    return False


def _cmp_from_before(before):
    def compare(x, y) -> int:
        if before(x, y):
            return -1
        if before(y, x):
            return 1
        return 0

    return cmp_to_key(compare)


def _sample_before(a: Sample, b: Sample) -> bool:
    if _metric_before(a.metric, b.metric):
        return True
    if _metric_before(b.metric, a.metric):
        return False
    return a.timestamp.before(b.timestamp)


def _stream_before(a: SampleStream, b: SampleStream) -> bool:
    return _metric_before(a.metric, b.metric)


def _time_from_decoded(raw) -> Time:
    if not isinstance(raw, _RawNumber):
        raise ValueError("timestamp must be a JSON number")
    return Time.from_json(raw)


@dataclass
class Sample:
    """A value or a histogram for one metric at one time."""

    metric: dict[str, str] = field(default_factory=dict)
    value: SampleValue = field(default_factory=lambda: SampleValue(0))
    timestamp: Time = field(default_factory=lambda: Time(0))
    histogram: SampleHistogram | None = None

    def __post_init__(self) -> None:
        self.metric = dict(self.metric or {})
        self.value = SampleValue(self.value)
        self.timestamp = Time(self.timestamp)

    def __str__(self) -> str:
        if self.histogram is not None:
            pair = SampleHistogramPair(self.timestamp, self.histogram)
        else:
            pair = SamplePair(self.timestamp, self.value)
        return f"{_metric_str(self.metric)} => {pair}"

    def equal(self, other: Sample) -> bool:
        """Compare metric, then timestamp, then histogram or value."""
        if self is other:
            return True
        if self.metric != other.metric:
            return False
        if not self.timestamp.equal(other.timestamp):
            return False
        if self.histogram is not None:
            return self.histogram.equal(other.histogram)
        return self.value.equal(other.value)

    def to_json(self) -> str:
        metric = _metric_json(self.metric)
        if self.histogram is not None:
            pair = SampleHistogramPair(self.timestamp, self.histogram)
            return f'{{"metric":{metric},"histogram":{pair.to_json()}}}'
        pair = SamplePair(self.timestamp, self.value)
        return f'{{"metric":{metric},"value":{pair.to_json()}}}'

    @classmethod
    def from_json(cls, text: str | bytes) -> Sample:
        return cls._from_decoded(_decode_raw(text))

    @classmethod
    def _from_decoded(cls, obj) -> Sample:
        if not isinstance(obj, dict):
            raise ValueError("sample must be a JSON object")
        metric = _metric_from_decoded(obj.get("metric"))
        raw_value = obj.get("value")
        pair = SamplePair() if raw_value is None else SamplePair._from_decoded(raw_value)
        if "histogram" in obj:
            hist_pair = SampleHistogramPair._from_decoded(obj["histogram"])
            if hist_pair.histogram is not None:
                return cls(metric, SampleValue(0), hist_pair.timestamp, hist_pair.histogram)
        return cls(metric, pair.value, pair.timestamp)


ZERO_SAMPLE = Sample(timestamp=EARLIEST)


def samples_equal(a, b) -> bool:
    """True if both sequences hold pairwise equal samples."""
    if len(a) != len(b):
        return False
    return all(x.equal(y) for x, y in zip(a, b))


@dataclass
class SampleStream:
    """The values and histograms of one series."""

    metric: dict[str, str] = field(default_factory=dict)
    values: list[SamplePair] = field(default_factory=list)
    histograms: list[SampleHistogramPair] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.metric = dict(self.metric or {})
        self.values = list(self.values or [])
        self.histograms = list(self.histograms or [])

    def __str__(self) -> str:
        lines = [str(v) for v in self.values] + [str(h) for h in self.histograms]
        return f"{_metric_str(self.metric)} =>\n" + "\n".join(lines)

    def to_json(self) -> str:
        metric = _metric_json(self.metric)
        values = (
            "[" + ",".join(v.to_json() for v in self.values) + "]"
            if self.values
            else "null"
        )
        histograms = "[" + ",".join(h.to_json() for h in self.histograms) + "]"
        if self.histograms and self.values:
            return f'{{"metric":{metric},"values":{values},"histograms":{histograms}}}'
        if self.histograms:
            return f'{{"metric":{metric},"histograms":{histograms}}}'
        return f'{{"metric":{metric},"values":{values}}}'

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleStream:
        return cls._from_decoded(_decode_raw(text))

    @classmethod
    def _from_decoded(cls, obj) -> SampleStream:
        if not isinstance(obj, dict):
            raise ValueError("sample stream must be a JSON object")
        metric = _metric_from_decoded(obj.get("metric"))
        raw_values = obj.get("values") or []
        raw_histograms = obj.get("histograms") or []
        if not isinstance(raw_values, list) or not isinstance(raw_histograms, list):
            raise ValueError("values and histograms must be JSON arrays")
        values = [SamplePair._from_decoded(item) for item in raw_values]
        histograms = [SampleHistogramPair._from_decoded(item) for item in raw_histograms]
        return cls(metric, values, histograms)


@dataclass
class Scalar:
    """A scalar value evaluated at a timestamp."""

    value: SampleValue = field(default_factory=lambda: SampleValue(0))
    timestamp: Time = field(default_factory=lambda: Time(0))

    def __post_init__(self) -> None:
        self.value = SampleValue(self.value)
        self.timestamp = Time(self.timestamp)

    def __str__(self) -> str:
        return f"scalar: {self.value} @[{self.timestamp}]"

    def type(self) -> ValueType:
        return ValueType.SCALAR

    def to_json(self) -> str:
        return f"[{self.timestamp.to_json()},{_json_string(str(self.value))}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> Scalar:
        items = _decode_raw(text)
        if items is None:
            items = []
        if not isinstance(items, list):
            raise ValueError("scalar must be a JSON array")
        timestamp = Time(0)
        text_value = ""
        if items and items[0] is not None:
            timestamp = _time_from_decoded(items[0])
        if len(items) > 1 and items[1] is not None:
            if not isinstance(items[1], str) or isinstance(items[1], _RawNumber):
                raise ValueError("scalar value must be a JSON string")
            text_value = str(items[1])
        try:
            value = _parse_float(text_value)
        except ValueError as exc:
            raise ValueError(f"error parsing sample value: {exc}") from exc
        return cls(value, timestamp)


@dataclass
class String:
    """A string value evaluated at a timestamp."""

    value: str = ""
    timestamp: Time = field(default_factory=lambda: Time(0))

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)

    def __str__(self) -> str:
        return self.value

    def type(self) -> ValueType:
        return ValueType.STRING

    def to_json(self) -> str:
        return f"[{self.timestamp.to_json()},{_json_string(self.value)}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> String:
        items = _decode_raw(text)
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise ValueError("string value must be a JSON array")
        timestamp = Time(0)
        value = ""
        if items and items[0] is not None:
            timestamp = _time_from_decoded(items[0])
        if len(items) > 1 and items[1] is not None:
            if not isinstance(items[1], str) or isinstance(items[1], _RawNumber):
                raise ValueError("string value must be a JSON string")
            value = str(items[1])
        return cls(value, timestamp)


class Vector(list):
    """Samples that all share one timestamp."""

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self)

    def type(self) -> ValueType:
        return ValueType.VECTOR

    def equal(self, other) -> bool:
        return samples_equal(self, other)

    def sort(self) -> None:
        """Order by metric, then by timestamp."""
        super().sort(key=_cmp_from_before(_sample_before))

    def to_json(self) -> str:
        return "[" + ",".join(s.to_json() for s in self) + "]"

    @classmethod
    def from_json(cls, text: str | bytes) -> Vector:
        items = _decode_raw(text)
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise ValueError("vector must be a JSON array")
        return cls(Sample._from_decoded(item) for item in items)


class Matrix(list):
    """A list of time series."""

    def __str__(self) -> str:
        ordered = Matrix(self)
        ordered.sort()
        return "\n".join(str(ss) for ss in ordered)

    def type(self) -> ValueType:
        return ValueType.MATRIX

    def sort(self) -> None:
        """Order by metric."""
        super().sort(key=_cmp_from_before(_stream_before))

    def to_json(self) -> str:
        return "[" + ",".join(ss.to_json() for ss in self) + "]"

    @classmethod
    def from_json(cls, text: str | bytes) -> Matrix:
        items = _decode_raw(text)
        if items is None:
            return cls()
        if not isinstance(items, list):
            raise ValueError("matrix must be a JSON array")
        return cls(SampleStream._from_decoded(item) for item in items)