# python/svy_labels/utils.py
from __future__ import annotations

import os
import sys

from typing import Any, Dict, Iterable, List, Sequence

import polars as pl

from .tagged_na import TaggedNA


_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__)) + os.sep


def external_stacklevel() -> int:
    """`stacklevel` for warnings.warn that points at the first caller outside svy_labels."""
    frame = sys._getframe(1)
    level = 1
    while frame is not None and os.path.abspath(frame.f_code.co_filename).startswith(_PACKAGE_DIR):
        frame = frame.f_back
        level += 1
    return level


# ───────────────────────── value helpers ─────────────────────────


def value_sort_key(v: Any):
    """Sort key for label codes: numbers, then strings, then tagged NAs (stable)."""
    if isinstance(v, TaggedNA):
        return (1, 0, "")
    if isinstance(v, str):
        return (0, 1, v)
    return (0, 0, v)


def format_value(v: Any) -> str:
    """Text of a code as used in labels and prefixes: 1.0 -> "1", NA(a) stays."""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)


# ───────────────────────── label helpers ─────────────────────────


def combine_labels(
    x_labels: Dict[Any, Any],
    y_labels: Dict[Any, Any],
) -> Dict[Any, Any]:
    """Merge two value-label dicts, preferring LHS (x) on conflicts."""
    if not x_labels:
        return dict(y_labels) if y_labels else {}
    if not y_labels:
        return dict(x_labels)

    # start with y, then overlay x (so x wins on conflicts)
    merged = dict(y_labels)
    merged.update(x_labels)
    return merged


def sort_labels(labels: Dict[Any, str]) -> Dict[Any, str]:
    return {k: labels[k] for k in sorted(labels, key=value_sort_key)}


# ───────────────────────── selection helpers ─────────────────────────


def var_names(df: pl.DataFrame, i: int | Iterable[int]) -> List[str] | str:
    """Column name(s) by position."""
    cols = df.columns
    if isinstance(i, int):
        return cols[i]
    return [cols[idx] for idx in i]


def select_columns(df: pl.DataFrame, cols: Sequence[Any]) -> List[str]:
    """
    Resolve variable selectors to column names.

    Selectors are names or positions, optionally nested in lists; none at
    all selects every column. Order follows the selectors, duplicates dropped.
    """
    if not cols:
        return list(df.columns)

    flat: List[Any] = []
    for c in cols:
        if isinstance(c, (list, tuple)):
            flat.extend(c)
        else:
            flat.append(c)

    out: List[str] = []
    for c in flat:
        if isinstance(c, bool):
            raise TypeError("column selectors must be names or integer positions")
        if isinstance(c, int):
            if not -len(df.columns) <= c < len(df.columns):
                raise ValueError(f"column position out of range: {c}")
            name = var_names(df, c)
        elif isinstance(c, str):
            if c not in df.columns:
                raise ValueError(f"column not found: {c!r}")
            name = c
        else:
            raise TypeError("column selectors must be names or integer positions")
        if name not in out:
            out.append(name)
    return out
