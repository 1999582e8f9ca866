# tests/test_attrs.py
from __future__ import annotations

import pytest

from svy_labels.attrs import (
    from_attrs,
    to_attrs,
    value_label_attribute,
    variable_label_attribute,
)
from svy_labels.labelled import LabelledSPSS, labelled, labelled_spss
from svy_labels.tagged_na import tagged_na


def test_attribute_names_follow_style():
    x = labelled([1, 2], {1: "a"}, "Q1")
    assert value_label_attribute(x) == "labels"
    assert variable_label_attribute(x) == "label"

    f = labelled([1, 2], {1: "a"}, "Q1", style="foreign")
    assert value_label_attribute(f) == "value.labels"
    assert variable_label_attribute(f) == "variable.label"


def test_attribute_names_none_when_unlabelled():
    x = labelled([1, 2])
    assert value_label_attribute(x) is None
    assert variable_label_attribute(x) is None
    assert value_label_attribute([1, 2]) is None


def test_to_attrs_haven_sorted_ascending():
    x = labelled([1, 2, 3], {3: "c", 1: "a", tagged_na("x"): "NA x"}, "Q")
    attrs = to_attrs(x)
    assert attrs["label"] == "Q"
    assert list(attrs["labels"]) == [1, 3, tagged_na("x")]


def test_to_attrs_foreign_sorted_descending():
    x = labelled([1, 2, 3], {1: "a", 3: "c", 2: "b"}, style="foreign")
    attrs = to_attrs(x)
    assert "label" not in attrs
    assert list(attrs["value.labels"]) == [3, 2, 1]


def test_to_attrs_carries_missing_specs():
    x = labelled_spss([1, 9], {9: "DK"}, na_values=[9], na_range=(90, 99))
    attrs = to_attrs(x)
    assert attrs["na_values"] == [9]
    assert attrs["na_range"] == (90, 99)


def test_to_attrs_rejects_plain_lists():
    with pytest.raises(TypeError):
        to_attrs([1, 2])


def test_from_attrs_detects_scheme():
    h = from_attrs([1, 2], {"labels": {1: "a"}, "label": "Q"})
    assert h.style == "haven"
    assert h.labels == {1: "a"}
    assert h.label == "Q"

    f = from_attrs([1, 2], {"value.labels": {2: "b", 1: "a"}, "variable.label": "Q"})
    assert f.style == "foreign"
    assert f.label == "Q"


def test_from_attrs_prefers_foreign_value_labels():
    x = from_attrs([1], {"value.labels": {1: "foreign"}, "labels": {1: "haven"}})
    assert x.labels == {1: "foreign"}


def test_from_attrs_builds_spss_vector():
    x = from_attrs([1, 9], {"labels": {9: "DK"}, "na_values": [9]})
    assert isinstance(x, LabelledSPSS)
    assert x.is_na() == [False, True]


def test_round_trip_through_attrs():
    x = labelled([1, 2, 2], {1: "a", 2: "b"}, "Q", style="foreign")
    assert from_attrs(x.data, to_attrs(x)) == x
