# python/svy_labels/spss.py
from __future__ import annotations

import io
import os
import warnings

from pathlib import Path
from typing import Any, Dict, List

import pyreadstat

from .frame import LabelledFrame
from .helpers import (
    _as_path,
    _readstat_limits,
    frame_from_readstat,
    frame_of,
    frame_to_pandas,
    has_tagged_na,
    readstat_labels,
)


# ---------------- SPSS READERS ----------------


def read_sav(
    data_path: str | os.PathLike | io.BufferedIOBase,
    *,
    encoding: str | None = None,
    user_na: bool = False,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """
    Read an SPSS .sav/.zsav file.

    With ``user_na=True`` user-defined missing values are kept in the data and
    recorded as ``user_missing`` rules, so columns come out as LabelledSPSS;
    otherwise they are read as missing.
    """
    with _as_path(data_path, suffix=".sav") as path:
        df, meta = pyreadstat.read_sav(
            path,
            apply_value_formats=False,
            encoding=encoding,
            usecols=cols,
            user_missing=user_na,
            **_readstat_limits(n_max, rows_skip),
        )
    return frame_from_readstat(df, meta, user_na=user_na)


def read_por(
    data_path: str | os.PathLike | io.BufferedIOBase,
    *,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """Read an SPSS portable (.por) file; user-missing values are not available."""
    with _as_path(data_path, suffix=".por") as path:
        df, meta = pyreadstat.read_por(
            path,
            apply_value_formats=False,
            usecols=cols,
            **_readstat_limits(n_max, rows_skip),
        )
    return frame_from_readstat(df, meta)


def read_spss(
    data_path: str | os.PathLike,
    *,
    encoding: str | None = None,
    user_na: bool = False,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """
    Auto-dispatch based on extension. Requires a real filesystem path since we
    must inspect the suffix. For file-like inputs, call read_sav/read_por directly.
    """
    ext = Path(os.fspath(data_path)).suffix.lower()

    if ext in (".sav", ".zsav"):
        return read_sav(
            data_path,
            encoding=encoding,
            user_na=user_na,
            cols=cols,
            n_max=n_max,
            rows_skip=rows_skip,
        )
    if ext == ".por":
        return read_por(data_path, cols=cols, n_max=n_max, rows_skip=rows_skip)
    raise ValueError(f"Unknown SPSS file extension: {ext}")


# ---------------- SPSS WRITERS ----------------


def _missing_ranges(frame: LabelledFrame) -> Dict[str, List[Any]]:
    out: Dict[str, List[Any]] = {}
    for name in frame.columns:
        spec = frame.user_missing(name)
        if not spec:
            continue
        entries: List[Any] = list(spec.get("na_values") or [])
        if spec.get("na_range"):
            lo, hi = spec["na_range"]
            entries.append({"lo": lo, "hi": hi})
        if entries:
            out[name] = entries
    return out


def write_spss(
    x: Any,
    path: str | os.PathLike,
    *,
    compress: bool = False,
) -> LabelledFrame:
    """
    Write a LabelledFrame to an SPSS .sav file with its variable labels,
    value labels and user-missing rules.

    SPSS has no tagged missing values; they are written as plain missing.
    """
    frame = frame_of(x)
    path = os.fspath(path)

    tagged = [n for n in frame.columns if has_tagged_na(frame, n)]
    if tagged:
        warnings.warn(
            f"SPSS files cannot store tagged missing values; writing them as "
            f"missing in: {', '.join(tagged)}",
            UserWarning,
            stacklevel=2,
        )

    column_labels, value_labels = readstat_labels(frame)
    pyreadstat.write_sav(
        frame_to_pandas(frame),
        path,
        file_label=frame.file_label or "",
        column_labels=column_labels or None,
        compress=compress,
        variable_value_labels=value_labels or None,
        missing_ranges=_missing_ranges(frame) or None,
    )
    return frame
