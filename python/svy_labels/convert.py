# python/svy_labels/convert.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import polars as pl

from .frame import LabelledFrame, as_vector, is_vector_collection
from .labelled import Labelled, LabelledSPSS
from .tagged_na import TaggedNA, is_missing
from .utils import format_value, value_sort_key


# ───────────────────────── helpers ─────────────────────────


def _is_categorical(s: Any) -> bool:
    return isinstance(s, pl.Series) and (isinstance(s.dtype, pl.Enum) or s.dtype == pl.Categorical)


def _levels(s: pl.Series) -> List[str]:
    """Levels of a categorical/string series: Enum order, else sorted unique values."""
    if isinstance(s.dtype, pl.Enum):
        return list(s.dtype.categories.to_list())
    return sorted(s.cast(pl.Utf8).drop_nulls().unique().to_list())


def _parse_number(s: str) -> Optional[float]:
    try:
        num = float(s)
    except ValueError:
        return None
    return int(num) if num.is_integer() else num


def _as_enum(name: str, values: List[Optional[str]], categories: List[str]) -> pl.Series:
    cats = list(dict.fromkeys(categories))
    s = pl.Series(name=name, values=values, dtype=pl.Utf8)
    if not cats:
        return s.cast(pl.Categorical)
    return s.cast(pl.Enum(cats))


def _over_frame(x: LabelledFrame, cols: Sequence[Any], fn, *, raw: bool = False) -> LabelledFrame:
    out = x
    for name in x.resolve(cols):
        result = fn(x.get(name) if raw else x[name])
        if isinstance(result, pl.Series):
            out = out.with_series(result.alias(name), keep_label=True)
        else:
            if result.label is None:
                result = result.replace(label=x.var_meta(name).get("label"))
            out = out.with_column(name, result)
    return out


def _dispatch(x: Any, cols: Sequence[Any], fn, *, raw: bool = False):
    if isinstance(x, pl.DataFrame):
        x = LabelledFrame(x)
    if isinstance(x, LabelledFrame):
        return _over_frame(x, cols, fn, raw=raw)
    if cols:
        raise TypeError("column selectors only apply to data frames")
    if isinstance(x, dict):
        return {k: fn(v) for k, v in x.items()}
    if is_vector_collection(x):
        return [fn(v) for v in x]
    return fn(x)


# ───────────────────────── as_label ─────────────────────────


def as_label(
    x: Any,
    *cols: Any,
    add_non_labelled: bool = False,
    prefix: bool = False,
    drop_na: bool = True,
    drop_levels: bool = False,
):
    """
    Replace values by their value labels.

    Returns a polars Enum series whose categories follow the order of the
    labelled values. Values without a label become null unless
    `add_non_labelled` is set; `prefix` renders categories as
    "[value] label"; `drop_na=False` keeps tagged NAs as their labels;
    `drop_levels` removes categories that do not occur. A vector without
    value labels is turned into categories of its own values.

    In frames the column is replaced, keeps its variable label and loses
    its value labels.
    """

    def _helper(v: Any) -> pl.Series:
        vec = as_vector(v)
        if vec.labels:
            pairs = sorted(vec.labels.items(), key=lambda kv: value_sort_key(kv[0]))
            if drop_na:
                pairs = [(k, lab) for k, lab in pairs if not isinstance(k, TaggedNA)]
            if add_non_labelled:
                present = {k for k, _ in pairs}
                pairs += [(val, format_value(val)) for val in vec.valid_values() if val not in present]
                pairs.sort(key=lambda kv: value_sort_key(kv[0]))
        else:
            pairs = [(val, format_value(val)) for val in vec.valid_values()]

        text = {k: (f"[{format_value(k)}] {lab}" if prefix else lab) for k, lab in pairs}

        out: List[Optional[str]] = []
        for val in vec.data:
            if isinstance(val, TaggedNA):
                out.append(None if drop_na else text.get(val))
            elif is_missing(val):
                out.append(None)
            else:
                out.append(text.get(val))

        categories = list(text.values())
        if drop_levels:
            used = set(out)
            categories = [c for c in categories if c in used]
        return _as_enum(vec.label or "", out, categories)

    return _dispatch(x, cols, _helper)


# ───────────────────────── as_labelled ─────────────────────────


def _level_codes(levels: List[str], start_at: Optional[int]) -> Dict[str, Any]:
    parsed = [_parse_number(lev) for lev in levels]
    if start_at is None and levels and all(p is not None for p in parsed):
        return dict(zip(levels, parsed))
    base = 1 if start_at is None else start_at
    return {lev: base + i for i, lev in enumerate(levels)}


def _codes_from_levels(
    values: List[Any],
    levels: List[str],
    *,
    start_at: Optional[int],
    keep_labels: bool,
) -> Labelled:
    codes = _level_codes(levels, start_at)
    data = [v if is_missing(v) else codes[v] for v in values]
    labels = {codes[lev]: lev for lev in levels} if keep_labels else {}
    return Labelled(data=data, labels=labels)


def _recode_character(vec: Labelled, *, start_at: Optional[int], keep_labels: bool) -> Labelled:
    """
    Character Labelled -> numeric codes.

    Levels are the observed values plus every label key (and, for SPSS
    vectors, the declared missing codes). A character `na_range` becomes
    the codes of the levels it covers.
    """
    spss = isinstance(vec, LabelledSPSS)
    levels = set(vec.valid_values())
    levels.update(k for k in vec.labels if not isinstance(k, TaggedNA))
    if spss and vec.na_values:
        levels.update(vec.na_values)
    levels = sorted(levels)
    codes = _level_codes(levels, start_at)

    fields: Dict[str, Any] = {
        "data": [v if is_missing(v) else codes[v] for v in vec.data],
        "labels": {},
        "label": vec.label,
        "style": vec.style,
    }
    if keep_labels:
        fields["labels"] = {codes[lev]: vec.labels.get(lev, lev) for lev in levels}
        fields["labels"].update(
            {k: lab for k, lab in vec.labels.items() if isinstance(k, TaggedNA)}
        )
    if not spss:
        return Labelled(**fields)

    missing = set(vec.na_values or [])
    if vec.na_range is not None:
        lo, hi = vec.na_range
        missing.update(lev for lev in levels if lo <= lev <= hi)
    na_values = sorted(codes[lev] for lev in missing)
    return LabelledSPSS(**fields, na_values=na_values or None)


def as_labelled(x: Any, *cols: Any, label: Optional[str] = None):
    """
    Turn categorical or string data into a numeric labelled vector.

    Categories (Enum order, otherwise sorted) become codes 1..n and the
    category text becomes the value label. Numeric data becomes an
    unlabelled Labelled vector; Labelled vectors pass through.
    """

    def _helper(v: Any) -> Labelled:
        if isinstance(v, Labelled):
            return v if label is None else v.replace(label=label)
        if isinstance(v, pl.Series) and (_is_categorical(v) or v.dtype == pl.Utf8):
            levels = _levels(v)
            codes = {lev: i + 1 for i, lev in enumerate(levels)}
            data = [None if s is None else codes[s] for s in v.cast(pl.Utf8).to_list()]
            return Labelled(data=data, labels={i: lev for lev, i in codes.items()}, label=label)
        vec = as_vector(v)
        if vec.is_numeric():
            return vec.replace(label=label)
        levels = vec.valid_values()
        codes = {lev: i + 1 for i, lev in enumerate(levels)}
        data = [v if is_missing(v) else codes[v] for v in vec.data]
        return Labelled(data=data, labels={i: lev for lev, i in codes.items()}, label=label)

    return _dispatch(x, cols, _helper, raw=True)


# ───────────────────────── as_numeric ─────────────────────────


def as_numeric(
    x: Any,
    *cols: Any,
    start_at: Optional[int] = None,
    keep_labels: bool = True,
):
    """
    Convert to numeric codes, optionally recoding.

    - categorical/string data: levels (Enum order, otherwise sorted) map to
      1..n, or to their own number when every level looks numeric; with
      `start_at` codes run from `start_at` upward. Labelled character
      vectors keep their labels (including labels of unused codes), their
      style and, for SPSS vectors, their missing codes.
    - numeric data: with `start_at` all values (and label keys) are shifted
      so the smallest value becomes `start_at`.

    `keep_labels=False` drops the value labels.
    """

    def _helper(v: Any) -> Labelled:
        if _is_categorical(v) or (isinstance(v, pl.Series) and v.dtype == pl.Utf8):
            return _codes_from_levels(
                v.cast(pl.Utf8).to_list(), _levels(v), start_at=start_at, keep_labels=keep_labels
            )

        vec = as_vector(v)
        if not vec.is_numeric():
            return _recode_character(vec, start_at=start_at, keep_labels=keep_labels)

        if start_at is None or not vec.valid_values():
            return vec if keep_labels else vec.replace(labels={})

        shift = start_at - min(vec.valid_values())
        changes: Dict[str, Any] = {"data": [v if is_missing(v) else v + shift for v in vec.data]}
        changes["labels"] = {}
        if keep_labels:
            changes["labels"] = {
                (k if isinstance(k, TaggedNA) else k + shift): lab for k, lab in vec.labels.items()
            }
        if isinstance(vec, LabelledSPSS):
            # declared missing codes move with the data
            if vec.na_values:
                changes["na_values"] = [n + shift for n in vec.na_values]
            if vec.na_range:
                changes["na_range"] = (vec.na_range[0] + shift, vec.na_range[1] + shift)
        return vec.replace(**changes)

    return _dispatch(x, cols, _helper, raw=True)
