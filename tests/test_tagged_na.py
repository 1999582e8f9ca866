# tests/test_tagged_na.py
import math

from svy_labels.tagged_na import (
    TaggedNA,
    format_tagged_na,
    is_missing,
    is_tagged_na,
    na_tag,
    parse_tagged_na,
    tagged_na,
)


def test_tagged_na_is_a_value_not_nan():
    x = tagged_na("a")
    assert isinstance(x, TaggedNA)
    assert is_tagged_na(x) is True
    assert x == TaggedNA("a")
    assert x != TaggedNA("b")
    assert x != "a"


def test_tagged_na_is_hashable_and_usable_as_label_key():
    labels = {1: "Yes", tagged_na("a"): "Refused"}
    assert labels[TaggedNA("a")] == "Refused"
    assert len({TaggedNA("a"), TaggedNA("a"), TaggedNA("b")}) == 2


def test_repr_and_parse_round_trip():
    assert repr(tagged_na("z")) == "NA(z)"
    assert str(tagged_na("z")) == "NA(z)"
    assert parse_tagged_na("NA(z)") == TaggedNA("z")
    assert parse_tagged_na("NA()") is None
    assert parse_tagged_na("z") is None
    assert parse_tagged_na(1) is None


def test_na_tag_vector_and_scalars():
    xs = tagged_na(["a", "z"])
    assert na_tag(xs) == ["a", "z"]
    assert na_tag(tagged_na("m")) == "m"
    assert na_tag(None) is None
    assert na_tag(1) is None
    assert na_tag([1, tagged_na("b"), None]) == [None, "b", None]


def test_is_tagged_na_variants():
    assert is_tagged_na(None) is False
    assert is_tagged_na(1) is False
    tz = tagged_na(["a", "z"])
    assert is_tagged_na(tz) == [True, True]
    assert is_tagged_na(tz, "a") == [True, False]
    assert is_tagged_na(tz, "z") == [False, True]


def test_is_missing_covers_none_nan_and_tags():
    assert is_missing(None)
    assert is_missing(math.nan)
    assert is_missing(tagged_na("a"))
    assert not is_missing(0)
    assert not is_missing("")


def test_format_tagged_na_matches_examples():
    x = [1, tagged_na("a"), None]
    assert format_tagged_na(x) == ["    1", "NA(a)", "   NA"]
