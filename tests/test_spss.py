# tests/test_spss.py

import io

import polars as pl
import pytest

from svy_labels import (
    LabelledFrame,
    LabelledSPSS,
    get_labels,
    labelled,
    labelled_spss,
    read_sav,
    read_spss,
    tagged_na,
    write_spss,
)


# Helper functions
def _survey():
    return LabelledFrame.from_vectors(
        {
            "q1": labelled_spss(
                [1.0, 2.0, 9.0, 1.0],
                {1.0: "Yes", 2.0: "No", 9.0: "Don't know"},
                na_values=[9.0],
                label="Do you agree?",
            ),
            "name": ["a", "b", "c", "d"],
            "score": [10.5, 11.0, 12.5, 13.0],
        },
        file_label="Test survey",
    )


def roundtrip_sav(frame, tmp_path, **kwargs):
    path = tmp_path / "roundtrip.sav"
    write_spss(frame, path)
    return read_sav(path, **kwargs)


# read/write tests ----------------------------------------------------------


def test_variable_label_stored_as_metadata(tmp_path):
    out = roundtrip_sav(_survey(), tmp_path)
    assert out.var_meta("q1")["label"] == "Do you agree?"
    assert out.var_meta("name")["label"] is None


def test_value_labels_round_trip(tmp_path):
    out = roundtrip_sav(_survey(), tmp_path, user_na=True)
    assert get_labels(out["q1"], include_values="n") == {1: "Yes", 2: "No", 9: "Don't know"}
    assert out.get("score").to_list() == [10.5, 11.0, 12.5, 13.0]


def test_user_missing_read_as_missing_by_default(tmp_path):
    out = roundtrip_sav(_survey(), tmp_path)
    assert out.data["q1"].to_list() == [1.0, 2.0, None, 1.0]
    assert out.user_missing("q1") is None


def test_user_missing_kept_with_user_na(tmp_path):
    out = roundtrip_sav(_survey(), tmp_path, user_na=True)
    q1 = out["q1"]
    assert isinstance(q1, LabelledSPSS)
    assert q1.data == [1.0, 2.0, 9.0, 1.0]
    assert q1.na_values == [9.0]
    assert q1.is_na() == [False, False, True, False]


def test_missing_range_round_trip(tmp_path):
    frame = LabelledFrame.from_vectors(
        {"x": labelled_spss([1.0, 97.0, 98.0], na_range=(97.0, 99.0))}
    )
    out = roundtrip_sav(frame, tmp_path, user_na=True)
    assert out["x"].na_range == (97.0, 99.0)


def test_file_label_round_trip(tmp_path):
    out = roundtrip_sav(_survey(), tmp_path)
    assert out.file_label == "Test survey"


def test_n_max_rows_skip_and_cols(tmp_path):
    path = tmp_path / "limits.sav"
    write_spss(_survey(), path)

    assert read_sav(path, n_max=2).data.height == 2
    assert read_sav(path, rows_skip=3).data["name"].to_list() == ["d"]
    assert read_sav(path, cols=["name"]).columns == ["name"]
    assert read_sav(path, n_max=0).data.height == 0


def test_read_from_file_object(tmp_path):
    path = tmp_path / "obj.sav"
    write_spss(_survey(), path)
    with open(path, "rb") as fh:
        out = read_sav(io.BytesIO(fh.read()))
    assert out.columns == ["q1", "name", "score"]


def test_tagged_na_written_as_missing_with_warning(tmp_path):
    frame = LabelledFrame.from_vectors({"x": labelled([1.0, tagged_na("a")])})
    path = tmp_path / "tagged.sav"
    with pytest.warns(UserWarning, match="tagged"):
        write_spss(frame, path)
    assert read_sav(path).data["x"].to_list() == [1.0, None]


def test_write_plain_dataframe(tmp_path):
    path = tmp_path / "plain.sav"
    write_spss(pl.DataFrame({"x": [1.0, 2.0]}), path)
    assert read_spss(path).data["x"].to_list() == [1.0, 2.0]


def test_read_spss_dispatch(tmp_path):
    with pytest.raises(ValueError, match="Unknown SPSS file extension"):
        read_spss(tmp_path / "data.csv")


def test_write_rejects_non_frames(tmp_path):
    with pytest.raises(TypeError):
        write_spss([1, 2], tmp_path / "bad.sav")
