# python/svy_labels/sas.py
from __future__ import annotations

import io
import os
import warnings

from pathlib import Path
from typing import Any

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


# ---------------- READERS ----------------


def read_sas7bdat(
    data_path: str | os.PathLike | io.BufferedIOBase,
    *,
    catalog_file: str | os.PathLike | None = None,
    encoding: str | None = None,
    user_na: bool = True,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """
    Read a SAS .sas7bdat file.

    Value labels live in a separate format catalog (.sas7bcat) passed as
    `catalog_file`. Special missing values (.A to .Z, ._) come out as
    TaggedNA when `user_na` is true.
    """
    with _as_path(data_path, suffix=".sas7bdat") as path:
        df, meta = pyreadstat.read_sas7bdat(
            path,
            catalog_file=os.fspath(catalog_file) if catalog_file is not None else None,
            encoding=encoding,
            usecols=cols,
            user_missing=user_na,
            **_readstat_limits(n_max, rows_skip),
        )
    return frame_from_readstat(df, meta, user_na=user_na)


def read_xpt(
    data_path: str | os.PathLike | io.BufferedIOBase,
    *,
    encoding: str | None = None,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """Read a SAS transport (.xpt) file; carries variable labels only."""
    with _as_path(data_path, suffix=".xpt") as path:
        df, meta = pyreadstat.read_xport(
            path,
            encoding=encoding,
            usecols=cols,
            **_readstat_limits(n_max, rows_skip),
        )
    return frame_from_readstat(df, meta)


def read_sas(
    data_path: str | os.PathLike,
    *,
    catalog_file: str | os.PathLike | None = None,
    encoding: str | None = None,
    user_na: bool = True,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """Dispatch on extension: .sas7bdat or .xpt."""
    ext = Path(os.fspath(data_path)).suffix.lower()

    if ext == ".sas7bdat":
        return read_sas7bdat(
            data_path,
            catalog_file=catalog_file,
            encoding=encoding,
            user_na=user_na,
            cols=cols,
            n_max=n_max,
            rows_skip=rows_skip,
        )
    if ext in (".xpt", ".xport"):
        return read_xpt(data_path, encoding=encoding, cols=cols, n_max=n_max, rows_skip=rows_skip)
    raise ValueError(f"Unknown SAS file extension: {ext}")


# ---------------- WRITERS ----------------


def write_xpt(
    x: Any,
    path: str | os.PathLike,
    *,
    version: int = 8,
    name: str | None = None,
    label: str | None = None,
) -> LabelledFrame:
    """
    Write a LabelledFrame to SAS transport (XPT) format (v5 or v8).

    XPT keeps variable labels and the dataset label (`label`, defaulting to
    the file label) only; value labels and tagged missing values are
    dropped with a warning.
    """
    frame = frame_of(x)
    path = os.fspath(path)

    if version not in (5, 8):
        raise ValueError(f"version must be 5 or 8, got {version}")

    max_len = 8 if version == 5 else 32
    if name is None:
        name = Path(path).stem[:max_len]
    elif len(name) > max_len:
        raise ValueError(
            f"name must be <= {max_len} characters for version {version}, got {len(name)}"
        )

    if label is None:
        label = frame.file_label
    if label is not None and len(label) > 40:
        raise ValueError(f"file label must be <= 40 characters, got {len(label)}")

    column_labels, value_labels = readstat_labels(frame)
    dropped = sorted(set(value_labels) | {n for n in frame.columns if has_tagged_na(frame, n)})
    if dropped:
        warnings.warn(
            f"XPT files cannot store value labels or tagged missing values; "
            f"dropping them for: {', '.join(dropped)}",
            UserWarning,
            stacklevel=2,
        )

    pyreadstat.write_xport(
        frame_to_pandas(frame),
        path,
        file_label=label or "",
        column_labels=column_labels or None,
        table_name=name,
        file_format_version=version,
    )
    return frame
