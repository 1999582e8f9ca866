# tests/test_utils.py
import polars as pl
import pytest

from svy_labels.helpers import (
    _normalize_n_max,
    _readstat_limits,
    _split_missing_ranges,
)
from svy_labels.tagged_na import tagged_na
from svy_labels.utils import (
    combine_labels,
    format_value,
    select_columns,
    sort_labels,
    value_sort_key,
    var_names,
)


def test_normalize_n_max_variants():
    assert _normalize_n_max(None) is None
    assert _normalize_n_max(0) == 0
    assert _normalize_n_max(5) == 5
    assert _normalize_n_max(-1) is None
    assert _normalize_n_max([3]) == 3
    assert _normalize_n_max((7,)) == 7
    assert _normalize_n_max(True) == 1
    assert _normalize_n_max(False) == 0
    with pytest.raises(TypeError):
        _normalize_n_max("x")  # type: ignore
    with pytest.raises(TypeError):
        _normalize_n_max([1, 2])  # type: ignore


def test_readstat_limits():
    assert _readstat_limits(None, 0) == {"row_limit": 0, "row_offset": 0, "metadataonly": False}
    assert _readstat_limits(10, 5) == {"row_limit": 10, "row_offset": 5, "metadataonly": False}
    assert _readstat_limits(0, 0)["metadataonly"] is True
    with pytest.raises(ValueError):
        _readstat_limits(None, -1)


def test_split_missing_ranges():
    ranges = [{"lo": 9, "hi": 9}, {"lo": 90, "hi": 99}]
    assert _split_missing_ranges(ranges) == ([9], [90, 99])
    assert _split_missing_ranges([{"lo": 8, "hi": 8}]) == ([8], None)


def test_value_sort_key_orders_numbers_then_tags():
    values = [tagged_na("b"), 3, 1.5, tagged_na("a"), 2]
    assert sorted(values, key=value_sort_key) == [1.5, 2, 3, tagged_na("b"), tagged_na("a")]


def test_format_value():
    assert format_value(1.0) == "1"
    assert format_value(1.5) == "1.5"
    assert format_value(3) == "3"
    assert format_value("x") == "x"
    assert format_value(tagged_na("a")) == "NA(a)"


def test_combine_labels_prefers_lhs():
    assert combine_labels({1: "a"}, {1: "b", 2: "c"}) == {1: "a", 2: "c"}
    assert combine_labels({}, {2: "c"}) == {2: "c"}
    assert combine_labels({1: "a"}, {}) == {1: "a"}


def test_sort_labels():
    out = sort_labels({3: "c", tagged_na("x"): "x", 1: "a"})
    assert list(out) == [1, 3, tagged_na("x")]


def test_select_columns_by_name_and_position():
    df = pl.DataFrame({"a": [1], "b": [2], "c": [3]})
    assert select_columns(df, ()) == ["a", "b", "c"]
    assert select_columns(df, ("c", 0)) == ["c", "a"]
    assert select_columns(df, (["b", "c"], "b")) == ["b", "c"]
    assert select_columns(df, (-1,)) == ["c"]
    assert var_names(df, [0, 2]) == ["a", "c"]


def test_select_columns_errors():
    df = pl.DataFrame({"a": [1]})
    with pytest.raises(ValueError, match="not found"):
        select_columns(df, ("zzz",))
    with pytest.raises(ValueError, match="out of range"):
        select_columns(df, (3,))
    with pytest.raises(TypeError):
        select_columns(df, (True,))
    with pytest.raises(TypeError):
        select_columns(df, (1.5,))
