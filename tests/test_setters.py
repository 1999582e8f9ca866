# tests/test_setters.py
from __future__ import annotations

import polars as pl
import pytest

from svy_labels import (
    Labelled,
    LabelledFrame,
    LabelledSPSS,
    add_labels,
    copy_labels,
    fill_labels,
    get_label,
    get_labels,
    labelled,
    labelled_spss,
    remove_labels,
    set_label,
    set_labels,
    set_na,
    tagged_na,
)
from svy_labels.tagged_na import TaggedNA


def _frame():
    return LabelledFrame(
        pl.DataFrame({"a": [1, 2, 3], "b": [1.5, 2.5, None], "s": ["x", "y", "x"]}),
        {"file_label": "demo"},
    )


# ---------- set_label ----------


def test_set_label_vector():
    x = set_label([1, 2], label="Q1")
    assert isinstance(x, Labelled)
    assert x.label == "Q1"
    assert set_label(x, label=None).label is None


def test_set_label_frame_forms():
    frame = _frame()
    one = set_label(frame, "a", "b", label="same")
    assert get_label(one) == {"a": "same", "b": "same", "s": None}

    by_name = set_label(frame, label={"s": "String", "a": "A"})
    assert get_label(by_name) == {"a": "A", "b": None, "s": "String"}

    by_pos = set_label(frame, 0, 2, label=["A", "S"])
    assert get_label(by_pos) == {"a": "A", "b": None, "s": "S"}

    # untouched input
    assert get_label(frame) == {"a": None, "b": None, "s": None}


def test_set_label_frame_length_mismatch():
    with pytest.raises(ValueError, match="lengths"):
        set_label(_frame(), "a", label=["x", "y"])


def test_set_label_any_dtype_in_frames():
    frame = LabelledFrame(pl.DataFrame({"flag": [True, False]}))
    assert set_label(frame, "flag", label="Flag").var_meta("flag")["label"] == "Flag"


def test_set_label_collections():
    xs = set_label([labelled([1]), labelled([2])], label=["A", "B"])
    assert [x.label for x in xs] == ["A", "B"]
    d = set_label({"k": [1], "j": [2]}, label={"k": "K"})
    assert d["k"].label == "K"
    assert d["j"].label is None


# ---------- set_labels ----------


def test_set_labels_mapping():
    x = set_labels([1, 2, 3], labels={3: "c", 1: "a"})
    assert x.labels == {1: "a", 3: "c"}


def test_set_labels_unnamed_uses_value_range():
    x = set_labels([1, 3, 3], labels=["a", "b", "c"])
    assert x.labels == {1: "a", 2: "b", 3: "c"}


def test_set_labels_unnamed_string_values():
    x = set_labels(["y", "x"], labels=["first", "second"])
    assert x.labels == {"x": "first", "y": "second"}


def test_set_labels_fewer_labels_force_values():
    with pytest.warns(UserWarning, match="more values"):
        x = set_labels([1, 2, 3], labels=["a"])
    assert x.labels == {1: "a", 2: "2", 3: "3"}

    with pytest.warns(UserWarning, match="only the first 1 values"):
        y = set_labels([1, 2, 3], labels=["a"], force_values=False)
    assert y.labels == {1: "a"}


def test_set_labels_more_labels_force_labels():
    with pytest.warns(UserWarning, match="more labels"):
        x = set_labels([1, 2], labels=["a", "b", "c"])
    assert x.labels == {1: "a", 2: "b"}

    y = set_labels([1, 2], labels=["a", "b", "c"], force_labels=True)
    assert y.labels == {1: "a", 2: "b", 3: "c"}


def test_set_labels_empty_vector_counts_from_one():
    x = set_labels(labelled([None, None]), labels=["a", "b"])
    assert x.labels == {1: "a", 2: "b"}


def test_set_labels_keeps_tagged_labels_unless_drop_na():
    x = labelled([1, tagged_na("a")], {1: "old", tagged_na("a"): "Refused"})
    assert set_labels(x, labels={1: "new"}).labels == {1: "new"}
    kept = set_labels(x, labels={1: "new"}, drop_na=False)
    assert kept.labels == {1: "new", TaggedNA("a"): "Refused"}


def test_set_labels_none_removes():
    x = labelled([1], {1: "a"})
    assert set_labels(x, labels=None).labels == {}


def test_set_labels_frame_pairwise_specs():
    frame = _frame()
    out = set_labels(frame, "a", "s", labels=[{1: "one"}, {"x": "ex"}])
    assert get_labels(out, include_values="n")["a"] == {1: "one"}
    assert get_labels(out, include_values="n")["s"] == {"x": "ex"}
    with pytest.raises(ValueError, match="lengths"):
        set_labels(frame, "a", labels=[{1: "one"}, {2: "two"}])


def test_set_labels_keeps_spss_class():
    x = labelled_spss([1, 9], na_values=[9])
    out = set_labels(x, labels={9: "DK"})
    assert isinstance(out, LabelledSPSS)
    assert out.na_values == [9]


# ---------- add / remove / fill ----------


def test_add_labels_merges_and_sorts():
    x = labelled([1, 2, 3], {3: "c"})
    assert add_labels(x, labels={1: "a"}).labels == {1: "a", 3: "c"}


def test_add_labels_replacing_warns():
    x = labelled([1], {1: "a"})
    with pytest.warns(UserWarning, match="replaced"):
        out = add_labels(x, labels={1: "b"})
    assert out.labels == {1: "b"}


def test_add_labels_tagged():
    x = labelled([1, tagged_na("z")], {1: "a"})
    out = add_labels(x, labels={tagged_na("z"): "Skipped"})
    assert list(out.labels) == [1, TaggedNA("z")]


def test_add_labels_requires_mapping():
    with pytest.raises(TypeError):
        add_labels(labelled([1]), labels=["a"])


def test_remove_labels_by_value_text_and_tag():
    x = labelled([1, 2, 3], {1: "a", 2: "b", 3: "c", tagged_na("x"): "X"})
    assert remove_labels(x, labels=1).labels == {2: "b", 3: "c", TaggedNA("x"): "X"}
    assert remove_labels(x, labels=["b", 3]).labels == {1: "a", TaggedNA("x"): "X"}
    assert remove_labels(x, labels=tagged_na("x")).labels == {1: "a", 2: "b", 3: "c"}


def test_fill_labels():
    x = labelled([1, 2, 3, None], {1: "a"})
    assert fill_labels(x).labels == {1: "a", 2: "2", 3: "3"}
    # unlabelled vectors stay unlabelled
    assert fill_labels(labelled([1, 2])).labels == {}


def test_fill_labels_frame_selection():
    frame = set_labels(_frame(), "a", labels={1: "one"})
    out = fill_labels(frame, "a")
    assert out["a"].labels == {1: "one", 2: "2", 3: "3"}


# ---------- copy_labels ----------


def test_copy_labels_after_polars_transformation():
    frame = set_label(set_labels(_frame(), "a", labels={1: "one"}), "a", label="A")
    result = frame.data.filter(pl.col("a") > 1).with_columns(pl.lit(0).alias("new"))
    out = copy_labels(result, frame)
    assert out.columns == ["a", "b", "s", "new"]
    assert out["a"].labels == {1: "one"}
    assert out["a"].label == "A"
    assert out.file_label == "demo"
    assert out.var_meta("new")["label"] is None


def test_copy_labels_keeps_user_missing():
    origin = LabelledFrame.from_vectors({"q": labelled_spss([1, 9], {9: "DK"}, na_values=[9])})
    out = copy_labels(origin.data.head(1), origin)
    assert isinstance(out["q"], LabelledSPSS)
    assert out["q"].na_values == [9]


def test_copy_labels_vectors_and_dicts():
    origin = labelled([1, 2], {1: "a"}, "Q")
    out = copy_labels([2, 2, 1], origin)
    assert out.data == [2, 2, 1]
    assert out.labels == {1: "a"}
    assert out.label == "Q"

    d = copy_labels({"x": [1], "y": [2]}, {"x": origin})
    assert d["x"].label == "Q"
    assert d["y"] == [2]


def test_copy_labels_type_errors():
    with pytest.raises(TypeError):
        copy_labels([1], _frame())


# ---------- set_na ----------


def test_set_na_plain():
    x = labelled([1, 2, 9, 9], {1: "a", 9: "DK"})
    out = set_na(x, na=9)
    assert out.data == [1, 2, None, None]
    assert out.labels == {1: "a"}


def test_set_na_as_tag_moves_label():
    x = labelled([1, 8, 9], {1: "a", 8: "DK", 9: "Refused"})
    out = set_na(x, na=[8, 9], as_tag=True)
    assert out.data == [1, TaggedNA("8"), TaggedNA("9")]
    assert out.labels == {1: "a", TaggedNA("8"): "DK", TaggedNA("9"): "Refused"}


def test_set_na_mapping_sets_labels():
    out = set_na(labelled([1, 9]), na={9: "Missing"}, as_tag=True)
    assert out.labels == {TaggedNA("9"): "Missing"}


def test_set_na_frame_turns_column_into_object():
    frame = LabelledFrame(pl.DataFrame({"a": [1, 9], "b": [9, 9]}))
    out = set_na(frame, "a", na=9, as_tag=True)
    assert out.data["a"].dtype == pl.Object
    assert out.data["b"].to_list() == [9, 9]

    plain = set_na(frame, na=9)
    assert plain.data["a"].to_list() == [1, None]
    assert plain.data["a"].dtype == pl.Int64


def test_setter_warnings_point_at_the_caller():
    with pytest.warns(UserWarning, match="more values") as vector_record:
        set_labels([1, 2, 3], labels=["a"])
    frame = set_labels(_frame(), "a", labels={1: "one"})
    with pytest.warns(UserWarning, match="replaced") as frame_record:
        add_labels(frame, "a", labels={1: "uno"})

    assert vector_record[0].filename == __file__
    assert frame_record[0].filename == __file__
