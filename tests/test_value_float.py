import math

import pytest

from promkit.timemodel import EARLIEST, Time
from promkit.value_float import (
    ZERO_SAMPLE_PAIR,
    SamplePair,
    SampleValue,
    format_float,
)


@pytest.mark.parametrize(
    "in1,in2,want",
    [
        (3.14, 3.14, True),
        (3.14, 3.1415, False),
        (math.inf, math.inf, True),
        (-math.inf, -math.inf, True),
        (math.inf, -math.inf, False),
        (42, math.inf, False),
        (42, math.nan, False),
        (math.nan, math.nan, True),
    ],
    ids=[
        "equal floats",
        "unequal floats",
        "positive infinities",
        "negative infinities",
        "different infinities",
        "number and infinity",
        "number and NaN",
        "NaNs",
    ],
)
def test_equal_values(in1, in2, want):
    assert SampleValue(in1).equal(SampleValue(in2)) is want


def test_sample_pair_json():
    value = SamplePair(Time(1234567), SampleValue(123.1))
    plain = '[1234.567,"123.1"]'

    encoded = value.to_json()
    assert encoded == plain

    decoded = SamplePair.from_json(encoded)
    assert decoded == value
    assert decoded.equal(value)


def test_sample_pair_from_bytes():
    decoded = SamplePair.from_json(b'[1234.567,"123.1"]')
    assert decoded.timestamp == Time(1234567)
    assert decoded.value == SampleValue(123.1)


def test_sample_pair_str():
    assert str(SamplePair(Time(1234567), SampleValue(123.1))) == "123.1 @[1234.567]"


def test_sample_pair_nan_equal():
    a = SamplePair(Time(1), SampleValue(math.nan))
    b = SamplePair(Time(1), SampleValue(math.nan))
    assert a.equal(b)


@pytest.mark.parametrize(
    "text",
    ['{"a":1}', '["1234.567","123.1"]', "[1234.567,123.1]", '[1234.567,"abc"]'],
)
def test_sample_pair_invalid(text):
    with pytest.raises(ValueError):
        SamplePair.from_json(text)


def test_zero_sample_pair():
    assert ZERO_SAMPLE_PAIR.equal(SamplePair(EARLIEST, SampleValue(0)))
    assert not ZERO_SAMPLE_PAIR.equal(SamplePair(Time(0), SampleValue(0)))


@pytest.mark.parametrize(
    "value,text",
    [(123.1, "123.1"), (123.12, "123.12"), (math.inf, "+Inf"), (-math.inf, "-Inf"), (456.0, "456")],
)
def test_format_float(value, text):
    assert format_float(value) == text
    assert SampleValue.from_json(f'"{text}"') == value


def test_format_float_nan_round_trip():
    assert math.isnan(SampleValue.from_json(SampleValue(math.nan).to_json()))


def test_sample_value_json_requires_quotes():
    with pytest.raises(ValueError, match="quoted string"):
        SampleValue.from_json("123.1")


def test_sample_value_json_rejects_garbage():
    with pytest.raises(ValueError):
        SampleValue.from_json('" 1"')