# python/svy_labels/getters.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple, Union

import polars as pl

from .frame import LabelledFrame, apply_getter, as_vector, is_vector_collection
from .labelled import Labelled, LabelledSPSS
from .tagged_na import TaggedNA, is_missing
from .utils import format_value, value_sort_key


_AS_NAME = frozenset({"as_name", "as.name", "n"})
_AS_PREFIX = frozenset({"as_prefix", "as.prefix", "p"})

Labels = Union[List[str], Dict[Any, str], None]


def _check_include_values(include_values: Any) -> None:
    if include_values is None or isinstance(include_values, bool):
        return
    if include_values not in _AS_NAME | _AS_PREFIX:
        raise ValueError(
            "include_values must be None, True, 'as_name' ('n') or 'as_prefix' ('p'), "
            f"got {include_values!r}"
        )


def _sorted_pairs(labels: Dict[Any, str]) -> List[Tuple[Any, str]]:
    return sorted(labels.items(), key=lambda kv: value_sort_key(kv[0]))


def _fallback_labels(x: Any) -> Optional[List[str]]:
    """Labels of an unlabelled vector: categories, or unique strings."""
    if isinstance(x, pl.Series):
        if isinstance(x.dtype, pl.Enum):
            return x.dtype.categories.to_list()
        if x.dtype == pl.Categorical:
            return sorted(x.cast(pl.Utf8).drop_nulls().unique().to_list())
        if x.dtype == pl.Utf8:
            return x.drop_nulls().unique(maintain_order=True).to_list()
        return None

    vec = as_vector(x)
    if vec.is_numeric():
        return None
    seen: Dict[str, None] = {}
    for v in vec.data:
        if not is_missing(v):
            seen.setdefault(v, None)
    return list(seen)


def _get_labels_helper(
    x: Any,
    attr_only: bool,
    include_values: Any,
    include_non_labelled: bool,
    drop_na: bool,
    drop_unused: bool,
) -> Labels:
    if not isinstance(x, Labelled) or not x.labels:
        # no label attribute: only fall back to levels/strings if asked to
        return None if attr_only else _fallback_labels(x)

    pairs = _sorted_pairs(x.labels)
    if drop_na:
        pairs = [(k, lab) for k, lab in pairs if not isinstance(k, TaggedNA)]
    if not pairs:
        return None

    observed = x.valid_values()

    if include_non_labelled:
        present = {k for k, _ in pairs}
        extra = [v for v in observed if v not in present]
        if extra:
            pairs = sorted(
                pairs + [(v, format_value(v)) for v in extra],
                key=lambda kv: value_sort_key(kv[0]),
            )

    if drop_unused:
        # tagged NAs never count as observed values
        used = set(observed)
        pairs = [(k, lab) for k, lab in pairs if not isinstance(k, TaggedNA) and k in used]

    if x.style == "foreign":
        pairs.reverse()

    if include_values is True or include_values in _AS_NAME:
        return {k: lab for k, lab in pairs}
    if include_values in _AS_PREFIX:
        return [f"[{format_value(k)}] {lab}" for k, lab in pairs]
    return [lab for _, lab in pairs]


def get_labels(
    x: Any,
    *,
    attr_only: bool = False,
    include_values: Union[str, bool, None] = None,
    include_non_labelled: bool = False,
    drop_na: bool = True,
    drop_unused: bool = False,
):
    """
    Retrieve value labels.

    Labels come back sorted by their associated value. Parameters:

    - attr_only: if False and `x` has no value labels, return categorical
      categories or the unique string values instead of None.
    - include_values: "as_name"/"n"/True returns {value: label};
      "as_prefix"/"p" returns "[value] label" strings.
    - include_non_labelled: also return observed values that have no label
      (labelled with their own text).
    - drop_na: leave out labels of tagged NA values.
    - drop_unused: leave out labels whose value does not occur in the data.

    A LabelledFrame, DataFrame or dict gives a dict per column; a list of
    vectors gives a list. Foreign-style vectors return reversed order.
    """
    _check_include_values(include_values)
    return apply_getter(
        x,
        lambda v: _get_labels_helper(
            v, attr_only, include_values, include_non_labelled, drop_na, drop_unused
        ),
    )


def _get_values_helper(x: Any, sort_val: bool, drop_na: bool) -> Optional[List[Any]]:
    if not isinstance(x, Labelled) or not x.labels:
        return None
    values = list(x.labels)
    if drop_na:
        values = [v for v in values if not isinstance(v, TaggedNA)]
    if sort_val:
        values.sort(key=value_sort_key)
    if x.style == "foreign":
        values.reverse()
    return values


def get_values(x: Any, *, sort_val: bool = True, drop_na: bool = False):
    """Values associated with value labels (tagged NAs sort last)."""
    return apply_getter(x, lambda v: _get_values_helper(v, sort_val, drop_na))


def _default_for(def_value: Any, i: int, key: Any) -> Any:
    if isinstance(def_value, dict):
        return def_value.get(key)
    if isinstance(def_value, (list, tuple)):
        return def_value[i] if i < len(def_value) else None
    return def_value


def get_label(x: Any, *, def_value: Any = None):
    """
    Variable label(s).

    `def_value` is returned for vectors without a label; for frames and
    collections it may also be a dict keyed by column or a sequence.
    """

    def _label_of(v: Any) -> Optional[str]:
        return v.label if isinstance(v, Labelled) else None

    many = isinstance(x, (LabelledFrame, pl.DataFrame, dict)) or is_vector_collection(x)
    if not many:
        label = _label_of(x)
        return def_value if label is None else label

    out = apply_getter(x, _label_of)
    if isinstance(out, dict):
        return {
            k: (_default_for(def_value, i, k) if lab is None else lab)
            for i, (k, lab) in enumerate(out.items())
        }
    return [(_default_for(def_value, i, i) if lab is None else lab) for i, lab in enumerate(out)]


def _get_na_helper(x: Any, as_tag: bool) -> Optional[Dict[Any, str]]:
    if not isinstance(x, Labelled) or not x.labels:
        return None
    out = {}
    for k, lab in _sorted_pairs(x.labels):
        if isinstance(k, TaggedNA):
            out[repr(k) if as_tag else k] = lab
        elif isinstance(x, LabelledSPSS) and x.is_user_missing(k):
            out[k] = lab
    return out or None


def get_na(x: Any, *, as_tag: bool = False):
    """
    Labels of declared missing values.

    Returns {TaggedNA: label} (or {"NA(x)": label} with as_tag=True); for
    SPSS vectors labelled user-missing codes are included as well.
    """
    return apply_getter(x, lambda v: _get_na_helper(v, as_tag))
