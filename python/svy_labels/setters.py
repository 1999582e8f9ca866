# python/svy_labels/setters.py
from __future__ import annotations

import copy
import warnings

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import polars as pl

from .frame import LabelledFrame, _um_col, apply_setter, as_vector, is_vector_collection
from .labelled import Labelled
from .tagged_na import TaggedNA, is_missing
from .utils import (
    combine_labels,
    external_stacklevel,
    format_value,
    select_columns,
    sort_labels,
)


# ───────────────────────── internal helpers ─────────────────────────


def _is_spec_list(labels: Any) -> bool:
    """A list of per-column label specs (mappings or lists of strings)."""
    return (
        isinstance(labels, (list, tuple))
        and len(labels) > 0
        and all(isinstance(s, (Mapping, list, tuple)) or s is None for s in labels)
    )


def _apply_specs(
    x: Any,
    cols: Sequence[Any],
    specs: Any,
    fn: Callable[[Labelled, Any], Labelled],
) -> Any:
    """Apply `fn(vector, spec)` with one spec for all vectors, or one spec per vector."""
    if not _is_spec_list(specs):
        return apply_setter(x, cols, lambda v: fn(v, specs))

    if isinstance(x, pl.DataFrame):
        x = LabelledFrame(x)
    if isinstance(x, LabelledFrame):
        names = x.resolve(cols)
        if len(names) != len(specs):
            raise ValueError(
                f"got {len(specs)} label specs for {len(names)} columns; lengths must match"
            )
        out = x
        for name, spec in zip(names, specs):
            out = out.with_column(name, fn(x[name], spec))
        return out
    if cols:
        raise TypeError("column selectors only apply to data frames")
    if isinstance(x, dict) or is_vector_collection(x):
        items = list(x.values()) if isinstance(x, dict) else list(x)
        if len(items) != len(specs):
            raise ValueError(
                f"got {len(specs)} label specs for {len(items)} vectors; lengths must match"
            )
        results = [fn(as_vector(v), spec) for v, spec in zip(items, specs)]
        return dict(zip(x.keys(), results)) if isinstance(x, dict) else results
    raise TypeError("labels must be a mapping of value -> label or a sequence of strings")


def _value_domain(vec: Labelled, n_labels: int) -> List[Any]:
    valid = vec.valid_values()
    if not valid:
        if not vec.is_numeric():
            raise ValueError("cannot assign unnamed labels to a vector without values")
        return list(range(1, n_labels + 1))
    if vec.is_numeric() and all(float(v).is_integer() for v in valid):
        return list(range(int(min(valid)), int(max(valid)) + 1))
    return valid


def _assign_unnamed(
    vec: Labelled,
    labels: List[str],
    force_labels: bool,
    force_values: bool,
) -> Dict[Any, str]:
    if not all(isinstance(lab, str) for lab in labels):
        raise TypeError("labels must be strings")

    domain = _value_domain(vec, len(labels))
    if len(labels) > len(domain):
        if force_labels and vec.is_numeric():
            start = domain[0]
            domain = [start + i for i in range(len(labels))]
        else:
            warnings.warn(
                f"more labels than values of x; only the first {len(domain)} labels are used",
                UserWarning,
                stacklevel=external_stacklevel(),
            )
            labels = labels[: len(domain)]
    elif len(labels) < len(domain):
        if force_values:
            warnings.warn(
                "more values of x than labels; values without a label get their own "
                "value as label",
                UserWarning,
                stacklevel=external_stacklevel(),
            )
            labels = labels + [format_value(v) for v in domain[len(labels) :]]
        else:
            warnings.warn(
                f"more values of x than labels; only the first {len(labels)} values "
                "are labelled",
                UserWarning,
                stacklevel=external_stacklevel(),
            )
            domain = domain[: len(labels)]
    return dict(zip(domain, labels))


# ───────────────────────── variable labels ─────────────────────────


def set_label(x: Any, *cols: Any, label: Any):
    """
    Set (or with None remove) variable labels.

    For frames `label` is one string for all selected columns, a dict of
    column -> label, or a sequence aligned with the selected columns. Frames
    are updated at the metadata level, so any column dtype can be labelled.
    """
    if isinstance(x, pl.DataFrame):
        x = LabelledFrame(x)

    if isinstance(x, LabelledFrame):
        if isinstance(label, Mapping):
            names = select_columns(x.data, cols or list(label))
            pairs = [(n, label[n]) for n in names if n in label]
        elif label is None or isinstance(label, str):
            pairs = [(n, label) for n in select_columns(x.data, cols)]
        else:
            names = select_columns(x.data, cols)
            if len(names) != len(label):
                raise ValueError(
                    f"got {len(label)} labels for {len(names)} columns; lengths must match"
                )
            pairs = list(zip(names, label))

        meta = copy.deepcopy(x.meta)
        vmap = {v["name"]: v for v in meta["vars"]}
        for name, lab in pairs:
            if lab is not None and not isinstance(lab, str):
                raise TypeError("label must be a character vector of length one")
            vmap[name]["label"] = lab
        return LabelledFrame(x.data, meta)

    if cols:
        raise TypeError("column selectors only apply to data frames")
    if isinstance(x, dict):
        if isinstance(label, Mapping):
            return {k: as_vector(v).replace(label=label.get(k)) for k, v in x.items()}
        return {k: as_vector(v).replace(label=label) for k, v in x.items()}
    if is_vector_collection(x):
        if isinstance(label, (list, tuple)):
            if len(label) != len(x):
                raise ValueError(
                    f"got {len(label)} labels for {len(x)} vectors; lengths must match"
                )
            return [as_vector(v).replace(label=lab) for v, lab in zip(x, label)]
        return [as_vector(v).replace(label=label) for v in x]
    return as_vector(x).replace(label=label)


# ───────────────────────── value labels ─────────────────────────


def set_labels(
    x: Any,
    *cols: Any,
    labels: Any,
    force_labels: bool = False,
    force_values: bool = True,
    drop_na: bool = True,
):
    """
    Set value labels, replacing existing ones.

    `labels` is either a mapping value -> label, used as-is, or a sequence of
    label strings assigned in order to the values of `x`: the integer range
    min..max for whole-numbered data, the sorted unique values otherwise
    (1..n if `x` has no values).

    - force_labels: with more labels than values, extend the values upward
      from the smallest one instead of dropping surplus labels.
    - force_values: with fewer labels than values, label the remaining
      values with their own text instead of leaving them unlabelled.
    - drop_na: if False, existing labels of tagged NA values are kept.

    ``labels=None`` removes all value labels. For frames and collections a
    list with one spec per selected column/vector is applied pairwise.
    """

    def _helper(vec: Labelled, spec: Any) -> Labelled:
        keep = {} if drop_na else {k: v for k, v in vec.labels.items() if isinstance(k, TaggedNA)}
        if spec is None:
            new: Dict[Any, str] = {}
        elif isinstance(spec, Mapping):
            new = dict(spec)
        elif isinstance(spec, str):
            new = _assign_unnamed(vec, [spec], force_labels, force_values)
        elif isinstance(spec, (list, tuple)):
            new = _assign_unnamed(vec, list(spec), force_labels, force_values)
        else:
            raise TypeError("labels must be a mapping of value -> label or a sequence of strings")
        return vec.replace(labels=sort_labels(combine_labels(new, keep)))

    return _apply_specs(x, cols, labels, _helper)


def add_labels(x: Any, *cols: Any, labels: Mapping[Any, str]):
    """Add value labels; an existing label for the same value is replaced with a warning."""
    if not isinstance(labels, Mapping):
        raise TypeError("labels must be a mapping of value -> label")

    def _helper(vec: Labelled) -> Labelled:
        current = dict(vec.labels)
        for k, lab in labels.items():
            if k in current and current[k] != lab:
                warnings.warn(
                    f"label '{current[k]}' for value {format_value(k)} is replaced by '{lab}'",
                    UserWarning,
                    stacklevel=external_stacklevel(),
                )
        return vec.replace(labels=sort_labels(combine_labels(dict(labels), current)))

    return apply_setter(x, cols, _helper)


def remove_labels(x: Any, *cols: Any, labels: Any):
    """Remove value labels by value, tagged NA, or label text."""
    items = list(labels) if isinstance(labels, (list, tuple, set)) else [labels]

    def _helper(vec: Labelled) -> Labelled:
        current = dict(vec.labels)
        for item in items:
            if item in current:
                del current[item]
            elif isinstance(item, str):
                current = {k: lab for k, lab in current.items() if lab != item}
        return vec.replace(labels=current)

    return apply_setter(x, cols, _helper)


def fill_labels(x: Any, *cols: Any):
    """Label every observed value that has no label with its own text."""

    def _helper(vec: Labelled) -> Labelled:
        if not vec.labels:
            return vec
        unlabelled = [v for v in vec.valid_values() if v not in vec.labels]
        if not unlabelled:
            return vec
        filled = dict(vec.labels)
        filled.update({v: format_value(v) for v in unlabelled})
        return vec.replace(labels=sort_labels(filled))

    return apply_setter(x, cols, _helper)


def drop_labels(x: Any, *cols: Any, drop_na: bool = True):
    """
    Remove labels of values that do not occur in the data.

    Unlabelled and all-missing vectors are returned unchanged. With
    ``drop_na=True`` labels of tagged NA values are removed as well,
    otherwise they are kept.
    """

    def _helper(vec: Labelled) -> Labelled:
        if not vec.labels:
            return vec
        if all(is_missing(v) for v in vec.data):
            return vec
        used = set(vec.valid_values())
        kept = {
            k: lab
            for k, lab in vec.labels.items()
            if (k in used if not isinstance(k, TaggedNA) else not drop_na)
        }
        return vec.replace(labels=sort_labels(kept))

    return apply_setter(x, cols, _helper)


# ───────────────────────── copying labels ─────────────────────────


def _copy_frame_meta(new: LabelledFrame, origin: LabelledFrame) -> LabelledFrame:
    meta = copy.deepcopy(new.meta)
    if meta.get("file_label") is None:
        meta["file_label"] = origin.file_label

    shared = [n for n in new.columns if n in origin]
    vmap = {v["name"]: v for v in meta["vars"]}
    sets = {vl["set_name"]: vl for vl in meta["value_labels"]}
    origin_sets = {vl["set_name"]: vl["mapping"] for vl in origin.meta["value_labels"]}

    for name in shared:
        src = origin.var_meta(name)
        dst = vmap[name]
        dst["label"] = src.get("label")
        for key in ("style", "fmt"):
            if src.get(key) is not None:
                dst[key] = src[key]
        mapping = origin_sets.get(src.get("label_set") or "")
        if mapping:
            dst["label_set"] = name
            sets[name] = {"set_name": name, "mapping": dict(mapping)}
        else:
            dst["label_set"] = None

        meta["user_missing"] = [um for um in meta["user_missing"] if _um_col(um) != name]
        spec = origin.user_missing(name)
        if spec:
            meta["user_missing"].append({**copy.deepcopy(spec), "col": name})

    used = {v.get("label_set") for v in meta["vars"]}
    meta["value_labels"] = [vl for n, vl in sets.items() if n in used]
    return LabelledFrame(new.data, meta)


def copy_labels(df_new: Any, df_origin: Any):
    """
    Copy variable labels, value labels and missing-value rules from
    `df_origin` onto `df_new` for every column (or key) they share.

    Typical use: run a polars transformation on ``frame.data`` and restore
    the labels afterwards with ``copy_labels(result, frame)``.
    """
    if isinstance(df_origin, pl.DataFrame):
        df_origin = LabelledFrame(df_origin)

    if isinstance(df_origin, LabelledFrame):
        if isinstance(df_new, pl.DataFrame):
            df_new = LabelledFrame(df_new)
        if not isinstance(df_new, LabelledFrame):
            raise TypeError("copy_labels(df_new, df_origin): df_new must be a data frame")
        return _copy_frame_meta(df_new, df_origin)

    if isinstance(df_origin, dict):
        if not isinstance(df_new, dict):
            raise TypeError("copy_labels(df_new, df_origin): both arguments must be dicts")
        return {
            k: (as_vector(df_origin[k]).replace(data=as_vector(v).data) if k in df_origin else v)
            for k, v in df_new.items()
        }

    origin = as_vector(df_origin)
    return origin.replace(data=as_vector(df_new).data)


# ───────────────────────── recoding to missing ─────────────────────────


def set_na(x: Any, *cols: Any, na: Any, as_tag: bool = False):
    """
    Recode values to missing.

    By default each value becomes None and loses its value label. With
    ``as_tag=True`` each value becomes ``TaggedNA(str(value))`` and keeps its
    label on the tagged key; a mapping ``{value: label}`` as `na` sets that
    label instead.
    """
    if isinstance(na, Mapping):
        targets: Dict[Any, Optional[str]] = dict(na)
    else:
        items = list(na) if isinstance(na, (list, tuple, set)) else [na]
        targets = {v: None for v in items}

    def _helper(vec: Labelled) -> Labelled:
        data = list(vec.data)
        labels = dict(vec.labels)
        for value, new_label in targets.items():
            if is_missing(value):
                continue
            repl = TaggedNA(format_value(value)) if as_tag else None
            data = [repl if (not is_missing(v) and v == value) else v for v in data]
            old = labels.pop(value, None)
            if as_tag:
                lab = new_label if new_label is not None else old
                if lab is not None:
                    labels[repl] = lab
        return vec.replace(data=data, labels=sort_labels(labels))

    return apply_setter(x, cols, _helper)
