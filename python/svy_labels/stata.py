# python/svy_labels/stata.py
from __future__ import annotations

import io
import os
import re

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
from .tagged_na import TaggedNA


_STATA_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_STATA_TAG_RE = re.compile(r"^[a-z]$")


def read_dta(
    data_path: str | os.PathLike | io.BufferedIOBase,
    *,
    encoding: str | None = None,
    user_na: bool = True,
    cols: list[str] | None = None,
    n_max: int | None = None,
    rows_skip: int = 0,
) -> LabelledFrame:
    """
    Read a Stata .dta file.

    Extended missing values (.a to .z) come out as TaggedNA when `user_na`
    is true (the default), together with their value labels.
    """
    with _as_path(data_path, suffix=".dta") as path:
        df, meta = pyreadstat.read_dta(
            path,
            apply_value_formats=False,
            encoding=encoding,
            usecols=cols,
            user_missing=user_na,
            **_readstat_limits(n_max, rows_skip),
        )
    return frame_from_readstat(df, meta, user_na=user_na)


read_stata = read_dta


def _validate_dta(frame: LabelledFrame) -> None:
    for name in frame.columns:
        if not _STATA_NAME_RE.match(name) or len(name) > 32:
            raise ValueError(f"Invalid Stata variable name: {name!r}")


def _tag_letter(v: TaggedNA) -> str:
    if not _STATA_TAG_RE.match(v.tag):
        raise ValueError(f"Stata tagged missing values must be tagged a-z, got {v!r}")
    return v.tag


def write_dta(
    x: Any,
    path: str | os.PathLike,
    *,
    version: int = 15,
) -> LabelledFrame:
    """
    Write a LabelledFrame to a Stata .dta file with variable labels, value
    labels and tagged missing values (as .a to .z).
    """
    frame = frame_of(x)
    path = os.fspath(path)
    _validate_dta(frame)

    column_labels, value_labels = readstat_labels(frame)

    missing_user_values: Dict[str, List[str]] = {}
    for name in frame.columns:
        if not has_tagged_na(frame, name):
            continue
        tags = sorted(
            {_tag_letter(v) for v in frame.data[name].to_list() if isinstance(v, TaggedNA)}
        )
        missing_user_values[name] = tags
        tagged_labels = {
            _tag_letter(k): lab
            for k, lab in frame.value_labels(name).items()
            if isinstance(k, TaggedNA)
        }
        if tagged_labels:
            value_labels.setdefault(name, {}).update(tagged_labels)

    pyreadstat.write_dta(
        frame_to_pandas(frame, tag_to=_tag_letter),
        path,
        file_label=frame.file_label or "",
        column_labels=column_labels or None,
        version=version,
        variable_value_labels=value_labels or None,
        missing_user_values=missing_user_values or None,
    )
    return frame


write_stata = write_dta
