# python/svy_labels/zap.py
from __future__ import annotations

from typing import Any

import polars as pl

from .frame import LabelledFrame, apply_setter, as_vector, is_vector_collection, to_series
from .labelled import Labelled, LabelledSPSS
from .tagged_na import TaggedNA, is_missing


# ───────────────────────── per-vector helpers ─────────────────────────


def _zap_labels_vec(vec: Labelled) -> Labelled:
    if not vec.labels:
        return vec
    labelled_values = {k for k in vec.labels if not isinstance(k, TaggedNA)}
    data = [None if (not is_missing(v) and v in labelled_values) else v for v in vec.data]
    labels = {k: lab for k, lab in vec.labels.items() if isinstance(k, TaggedNA)}
    return vec.replace(data=data, labels=labels)


def _zap_unlabelled_vec(vec: Labelled) -> Labelled:
    if not vec.labels:
        return vec
    data = [v if (is_missing(v) or v in vec.labels) else None for v in vec.data]
    return vec.replace(data=data)


def _zap_na_tags_vec(vec: Labelled) -> Labelled:
    data = [None if isinstance(v, TaggedNA) else v for v in vec.data]
    labels = {k: lab for k, lab in vec.labels.items() if not isinstance(k, TaggedNA)}
    return vec.replace(data=data, labels=labels)


def _zap_missing_vec(vec: Labelled) -> Labelled:
    vec = _zap_na_tags_vec(vec)
    if not isinstance(vec, LabelledSPSS):
        return vec
    data = [None if vec.is_user_missing(v) else v for v in vec.data]
    labels = {k: lab for k, lab in vec.labels.items() if not vec.is_user_missing(k)}
    # downgrade: no user-missing spec left to carry
    return Labelled(data=data, labels=labels, label=vec.label, style=vec.style)


# ───────────────────────── public API ─────────────────────────


def zap_labels(x: Any, *cols: Any):
    """Turn labelled (non-missing) values into missing values and drop their labels."""
    return apply_setter(x, cols, _zap_labels_vec)


def zap_unlabelled(x: Any, *cols: Any):
    """Turn values without a value label into missing values."""
    return apply_setter(x, cols, _zap_unlabelled_vec)


def zap_na_tags(x: Any, *cols: Any):
    """Turn tagged NAs into plain missing values and drop their labels."""
    return apply_setter(x, cols, _zap_na_tags_vec)


def zap_missing(x: Any, *cols: Any):
    """
    Convert declared missing values to plain missing values.

    Tagged NAs and SPSS user-missing codes (``na_values`` / ``na_range``)
    become None and lose their value labels. SPSS vectors come back as
    plain Labelled vectors.
    """
    return apply_setter(x, cols, _zap_missing_vec)


def zap_label(x: Any, *cols: Any):
    """Remove variable labels (and the file label of a frame when no columns are given)."""
    if isinstance(x, pl.DataFrame):
        x = LabelledFrame(x)
    if isinstance(x, LabelledFrame):
        meta = dict(x.meta)
        meta["vars"] = [dict(v) for v in x.meta["vars"]]
        targets = set(x.resolve(cols)) if cols else set(x.columns)
        for v in meta["vars"]:
            if v["name"] in targets:
                v["label"] = None
        if not cols:
            meta["file_label"] = None
        return LabelledFrame(x.data, meta)
    return apply_setter(x, cols, lambda v: v.replace(label=None))


def remove_all_labels(x: Any, *cols: Any):
    """
    Strip all label information.

    Vectors come back as polars Series and frames as polars DataFrames, with
    tagged NAs turned into nulls. With column selectors a frame keeps its
    other columns' labels and is returned as a LabelledFrame.
    """
    if isinstance(x, pl.DataFrame):
        x = LabelledFrame(x)
    if isinstance(x, LabelledFrame):
        out = x
        for name in x.resolve(cols):
            series = to_series(name, _zap_na_tags_vec(x[name]), x.data.schema[name])
            out = out.with_series(series, keep_label=False)
        return out if cols else out.data
    if cols:
        raise TypeError("column selectors only apply to data frames")

    def _strip(v: Any, name: str = "") -> pl.Series:
        return to_series(name, _zap_na_tags_vec(as_vector(v)))

    if isinstance(x, dict):
        return {k: _strip(v, str(k)) for k, v in x.items()}
    if is_vector_collection(x):
        return [_strip(v) for v in x]
    return _strip(x)
