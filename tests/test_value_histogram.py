import pytest

from promkit.timemodel import Time
from promkit.value_histogram import (
    FloatString,
    HistogramBucket,
    SampleHistogram,
    SampleHistogramPair,
    buckets_equal,
)

HIST_JSON = (
    '{"count":"6","sum":"3897","buckets":['
    '[1,"-4870.992343051145","-4466.7196729968955","1"],'
    '[1,"-861.0779292198035","-789.6119426088657","1"],'
    '[1,"-558.3399591246119","-512","1"],'
    '[0,"2048","2233.3598364984477","1"],'
    '[0,"2896.3093757400984","3158.4477704354626","1"],'
    '[0,"4466.7196729968955","4870.992343051145","1"]]}'
)


def gen_histogram():
    return SampleHistogram(
        count=6,
        sum=3897,
        buckets=[
            HistogramBucket(1, -4870.992343051145, -4466.7196729968955, 1),
            HistogramBucket(1, -861.0779292198035, -789.6119426088657, 1),
            HistogramBucket(1, -558.3399591246119, -512, 1),
            HistogramBucket(0, 2048, 2233.3598364984477, 1),
            HistogramBucket(0, 2896.3093757400984, 3158.4477704354626, 1),
            HistogramBucket(0, 4466.7196729968955, 4870.992343051145, 1),
        ],
    )


def test_sample_histogram_pair_json_round_trip():
    pair = SampleHistogramPair(Time(1234567), gen_histogram())
    encoded = pair.to_json()
    assert encoded == "[1234.567," + HIST_JSON + "]"
    decoded = SampleHistogramPair.from_json(encoded)
    assert decoded.equal(pair)
    assert decoded == pair


def test_marshal_pair_without_histogram_fails():
    with pytest.raises(ValueError, match="histogram is nil"):
        SampleHistogramPair(Time(1), None).to_json()


def test_unmarshal_pair_with_null_histogram_fails():
    with pytest.raises(ValueError, match="histogram is null"):
        SampleHistogramPair.from_json("[0.001,null]")


def test_unmarshal_pair_wrong_field_count():
    with pytest.raises(ValueError, match="wrong number of fields: 1 != 2"):
        SampleHistogramPair.from_json("[0.001]")


def test_bucket_wrong_field_count():
    with pytest.raises(ValueError, match="wrong number of fields: 3 != 4"):
        HistogramBucket.from_json('[1,"1","2"]')


def test_bucket_json_round_trip():
    bucket = HistogramBucket(3, -1.5, 2, 7)
    assert bucket.to_json() == '[3,"-1.5","2","7"]'
    assert HistogramBucket.from_json(bucket.to_json()) == bucket


def test_bucket_requires_quoted_floats():
    with pytest.raises(ValueError, match="quoted string"):
        HistogramBucket.from_json('[1,1,"2","3"]')


@pytest.mark.parametrize(
    "bucket, expected",
    [
        (HistogramBucket(1, -558.3399591246119, -512, 1), "[-558.3399591246119,-512):1"),
        (HistogramBucket(0, 2048, 2233.3598364984477, 1), "(2048,2233.3598364984477]:1"),
        (HistogramBucket(2, 0.5, 1, 4), "(0.5,1):4"),
        (HistogramBucket(3, 1234567, 2000000, 5), "[1.234567e+06,2e+06]:5"),
    ],
)
def test_bucket_string(bucket, expected):
    assert str(bucket) == expected


def test_histogram_string():
    hist = SampleHistogram(6, 3897, [HistogramBucket(0, 1, 2, 3)])
    assert str(hist) == "Count: 6.000000, Sum: 3897.000000, Buckets: [(1,2]:3]"


def test_pair_string():
    pair = SampleHistogramPair(Time(1234567), SampleHistogram(1, 2, []))
    assert str(pair) == "Count: 1.000000, Sum: 2.000000, Buckets: [] @[1234.567]"


def test_float_string_json():
    assert FloatString(1.5).to_json() == '"1.5"'
    assert FloatString.from_json('"-512"') == -512.0
    with pytest.raises(ValueError, match="float value must be a quoted string"):
        FloatString.from_json("1.5")


def test_histogram_equality():
    assert gen_histogram().equal(gen_histogram())
    other = gen_histogram()
    other.count = FloatString(7)
    assert not other.equal(gen_histogram())
    assert not gen_histogram().equal(None)


def test_buckets_equal():
    a = gen_histogram().buckets
    assert buckets_equal(a, gen_histogram().buckets)
    assert not buckets_equal(a, a[:-1])
    changed = a[:-1] + [HistogramBucket(0, 4466.7196729968955, 4870.992343051145, 2)]
    assert not buckets_equal(a, changed)


def test_histogram_empty_buckets_json():
    hist = SampleHistogram(1, 2)
    assert hist.to_json() == '{"count":"1","sum":"2","buckets":null}'
    assert SampleHistogram.from_json(hist.to_json()) == hist