# python/svy_labels/helpers.py
from __future__ import annotations

import contextlib
import math
import os
import tempfile

from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd
import polars as pl

from .frame import LabelledFrame
from .labelled import Labelled
from .tagged_na import TaggedNA, is_missing
from .utils import format_value


# ---------------- n_max normalization ----------------


def _normalize_n_max(n_max: Any) -> int | None:
    """
    Normalize/validate `n_max`:
      - None -> None (unlimited)
      - list/tuple -> must have length 1
      - negative -> None (unlimited)
      - 0 -> 0
      - int-like (including numpy integer) -> int
      - otherwise -> TypeError
    """
    if n_max is None:
        return None

    if isinstance(n_max, (list, tuple)):
        if len(n_max) != 1:
            raise TypeError("n_max must have length 1")
        n_max = n_max[0]

    # Booleans are ints in Python; keep that behavior explicit
    if isinstance(n_max, bool):
        n_max = int(n_max)
    elif not isinstance(n_max, (int, np.integer)):
        raise TypeError("n_max must be an integer")

    n_max = int(n_max)
    if n_max < 0:
        return None
    return n_max


def _readstat_limits(n_max: Any, rows_skip: int) -> Dict[str, Any]:
    """pyreadstat keyword arguments for n_max / rows_skip (row_limit=0 reads all)."""
    n = _normalize_n_max(n_max)
    if not isinstance(rows_skip, int) or isinstance(rows_skip, bool) or rows_skip < 0:
        raise ValueError("rows_skip must be a non-negative integer")
    return {
        "row_limit": 0 if n is None else n,
        "row_offset": rows_skip,
        "metadataonly": n == 0,
    }


@contextlib.contextmanager
def _as_path(obj: Any, suffix: str = "") -> Iterator[str]:
    """
    Yield a filesystem path for `obj` (path-like or file-like).
    File-like objects are spooled to a temp file that is removed afterwards.
    """
    if isinstance(obj, (str, os.PathLike)):
        yield os.fspath(obj)
        return

    if hasattr(obj, "read"):
        tmp = tempfile.NamedTemporaryFile(suffix=suffix, delete=False)
        try:
            tmp.write(obj.read())
            tmp.flush()
            tmp.close()
            yield tmp.name
        finally:
            with contextlib.suppress(FileNotFoundError):
                os.remove(tmp.name)
        return

    raise TypeError("data_path must be a path or a file-like object")


# ---------------- pyreadstat -> LabelledFrame ----------------


def _as_tag(v: Any) -> Any:
    """pyreadstat hands special missings (Stata .a, SAS .A) over as their letter."""
    if isinstance(v, str):
        return TaggedNA(v.lstrip("."))
    if isinstance(v, float) and math.isnan(v):
        return None
    return v


def _label_key(k: Any, tagged: bool) -> str:
    if tagged and isinstance(k, str):
        return repr(TaggedNA(k.lstrip(".")))
    return format_value(k)


def _split_missing_ranges(ranges: List[Dict[str, Any]]) -> Tuple[List[Any], Optional[List[Any]]]:
    na_values = [r["lo"] for r in ranges if r["lo"] == r["hi"]]
    spans = [[r["lo"], r["hi"]] for r in ranges if r["lo"] != r["hi"]]
    return na_values, (spans[0] if spans else None)


def frame_from_readstat(df: pd.DataFrame, meta: Any, *, user_na: bool = False) -> LabelledFrame:
    """Build a LabelledFrame from pyreadstat's (DataFrame, metadata_container)."""
    tagged_cols = set(getattr(meta, "missing_user_values", None) or {}) if user_na else set()

    series = []
    for name in df.columns:
        col = df[name]
        if name in tagged_cols and col.dtype == object:
            values = [_as_tag(v) for v in col.tolist()]
            dtype = pl.Object if any(isinstance(v, TaggedNA) for v in values) else None
            series.append(pl.Series(name=str(name), values=values, dtype=dtype, strict=False))
        else:
            series.append(pl.from_pandas(col).alias(str(name)))
    data = pl.DataFrame(series) if series else pl.DataFrame()

    col_labels = getattr(meta, "column_names_to_labels", None) or {}
    value_labels = getattr(meta, "variable_value_labels", None) or {}
    formats = getattr(meta, "original_variable_types", None) or {}

    vars_out = []
    sets_out = []
    for name in data.columns:
        mapping = value_labels.get(name) or {}
        vars_out.append(
            {
                "name": name,
                "label": col_labels.get(name) or None,
                "label_set": name if mapping else None,
                "fmt": formats.get(name),
            }
        )
        if mapping:
            # letter keys on numeric columns label special missings
            tagged = name in tagged_cols or data.schema[name].is_numeric()
            sets_out.append(
                {
                    "set_name": name,
                    "mapping": {_label_key(k, tagged): lab for k, lab in mapping.items()},
                }
            )

    user_missing = []
    if user_na:
        for name, ranges in (getattr(meta, "missing_ranges", None) or {}).items():
            if name not in data.columns or not ranges:
                continue
            na_values, na_range = _split_missing_ranges(ranges)
            user_missing.append(
                {"col": name, "na_values": na_values or None, "na_range": na_range}
            )

    return LabelledFrame(
        data,
        {
            "file_label": getattr(meta, "file_label", None) or None,
            "vars": vars_out,
            "value_labels": sets_out,
            "user_missing": user_missing,
        },
    )


# ---------------- LabelledFrame -> pyreadstat ----------------


def frame_to_pandas(frame: LabelledFrame, *, tag_to: Any = None) -> pd.DataFrame:
    """
    Plain pandas DataFrame for pyreadstat writers.

    Object columns (tagged NAs) are written with `tag_to(TaggedNA)` in
    place of each tag; None replaces them by missing.
    """
    cols: Dict[str, Any] = {}
    for name, dtype in frame.data.schema.items():
        if dtype == pl.Object:
            values = [
                (tag_to(v) if tag_to else None)
                if isinstance(v, TaggedNA)
                else (None if is_missing(v) else v)
                for v in frame.data[name].to_list()
            ]
            if any(isinstance(v, str) for v in values):
                cols[name] = pd.Series(values, dtype=object)
            else:
                cols[name] = pd.Series(values, dtype="float64")
        else:
            cols[name] = frame.data[name].to_pandas()
    return pd.DataFrame(cols)


def readstat_labels(frame: LabelledFrame) -> Tuple[Dict[str, str], Dict[str, Dict[Any, str]]]:
    """(column_labels, variable_value_labels) in pyreadstat's layout, tagged keys skipped."""
    column_labels = {
        v["name"]: v["label"] for v in frame.meta["vars"] if v.get("label") is not None
    }
    value_labels: Dict[str, Dict[Any, str]] = {}
    for name in frame.columns:
        mapping = {
            k: lab for k, lab in frame.value_labels(name).items() if not isinstance(k, TaggedNA)
        }
        if mapping:
            value_labels[name] = mapping
    return column_labels, value_labels


def has_tagged_na(frame: LabelledFrame, name: str) -> bool:
    if frame.data.schema[name] != pl.Object:
        return False
    return any(isinstance(v, TaggedNA) for v in frame.data[name].to_list())


def frame_of(x: Any) -> LabelledFrame:
    if isinstance(x, LabelledFrame):
        return x
    if isinstance(x, pl.DataFrame):
        return LabelledFrame(x)
    if isinstance(x, dict) and all(isinstance(v, Labelled) for v in x.values()):
        return LabelledFrame.from_vectors(x)
    raise TypeError("expected a LabelledFrame, a polars.DataFrame or a dict of Labelled vectors")
