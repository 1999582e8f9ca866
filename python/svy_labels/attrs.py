# python/svy_labels/attrs.py
"""
Label attribute naming schemes.

Two conventions are in use for storing labels on a variable:

- ``haven``:   value labels under ``labels``, variable label under ``label``
- ``foreign``: value labels under ``value.labels``, variable label under
  ``variable.label``; value labels are kept in descending value order

A :class:`~svy_labels.labelled.Labelled` vector records its scheme in
``style``. The helpers here translate between vectors and plain attribute
dicts so that labels can travel through code that only knows the dict form.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from .labelled import Labelled, LabelledSPSS
from .utils import value_sort_key


ATTR_NAMES: Dict[str, Dict[str, str]] = {
    "haven": {"values": "labels", "variable": "label"},
    "foreign": {"values": "value.labels", "variable": "variable.label"},
}

_FOREIGN_ATTRS = frozenset(ATTR_NAMES["foreign"].values())


def is_foreign(attr_name: Optional[str]) -> bool:
    return attr_name is not None and attr_name in _FOREIGN_ATTRS


def value_label_attribute(x: Any) -> Optional[str]:
    """Name of the value-label attribute `x` carries, or None."""
    if isinstance(x, Labelled):
        return ATTR_NAMES[x.style]["values"] if x.labels else None
    if isinstance(x, Mapping):
        for name in ("value.labels", "labels"):
            if x.get(name):
                return name
    return None


def variable_label_attribute(x: Any) -> Optional[str]:
    """Name of the variable-label attribute `x` carries, or None."""
    if isinstance(x, Labelled):
        return ATTR_NAMES[x.style]["variable"] if x.label is not None else None
    if isinstance(x, Mapping):
        for name in ("variable.label", "label"):
            if x.get(name) is not None:
                return name
    return None


def to_attrs(x: Labelled) -> Dict[str, Any]:
    """Export the label metadata of `x` as an attribute dict in its own scheme."""
    if not isinstance(x, Labelled):
        raise TypeError("to_attrs(x): x must be a Labelled vector")

    names = ATTR_NAMES[x.style]
    out: Dict[str, Any] = {}
    if x.label is not None:
        out[names["variable"]] = x.label
    if x.labels:
        keys = sorted(x.labels, key=value_sort_key)
        if is_foreign(names["values"]):
            keys.reverse()
        out[names["values"]] = {k: x.labels[k] for k in keys}
    if isinstance(x, LabelledSPSS):
        if x.na_values is not None:
            out["na_values"] = list(x.na_values)
        if x.na_range is not None:
            out["na_range"] = tuple(x.na_range)
    return out


def from_attrs(data: Any, attrs: Mapping[str, Any]) -> Labelled:
    """
    Build a labelled vector from `data` and an attribute dict in either scheme.

    Foreign-style attributes are looked up first. ``na_values`` / ``na_range``
    entries produce a LabelledSPSS.
    """
    if not isinstance(attrs, Mapping):
        raise TypeError("attrs must be a mapping of attribute name -> value")

    val_attr = value_label_attribute(attrs)
    var_attr = variable_label_attribute(attrs)
    if val_attr is not None:
        style = "foreign" if is_foreign(val_attr) else "haven"
    else:
        style = "foreign" if is_foreign(var_attr) else "haven"

    labels = dict(attrs[val_attr]) if val_attr else None
    label = attrs[var_attr] if var_attr else None

    if attrs.get("na_values") is not None or attrs.get("na_range") is not None:
        return LabelledSPSS(
            data=data,
            labels=labels,
            label=label,
            style=style,
            na_values=attrs.get("na_values"),
            na_range=attrs.get("na_range"),
        )
    return Labelled(data=data, labels=labels, label=label, style=style)
