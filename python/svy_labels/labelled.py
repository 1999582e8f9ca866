# python/svy_labels/labelled.py
from __future__ import annotations

import numbers
import warnings

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .tagged_na import TaggedNA, format_tagged_na, is_missing


Value = Union[int, float, str, TaggedNA, None]

STYLES = ("haven", "foreign")


# ---------- helpers: typing & validation ----------


def _is_bool(x: Any) -> bool:
    # bool is a subclass of int; exclude explicitly.
    return isinstance(x, bool)


def _is_numeric_scalar(x: Any) -> bool:
    return isinstance(x, numbers.Number) and not _is_bool(x)


def _is_char_scalar(x: Any) -> bool:
    return isinstance(x, str)


def _is_numeric_seq(seq: Sequence[Any]) -> bool:
    return all((_is_numeric_scalar(v) or is_missing(v)) for v in seq)


def _is_string_seq(seq: Sequence[Any]) -> bool:
    return all((_is_char_scalar(v) or is_missing(v)) for v in seq)


def _ensure_seq(x: Any) -> List[Value]:
    if x is None:
        return []
    if isinstance(x, (list, tuple)):
        return list(x)
    # allow a scalar (e.g. 1 -> [1])
    return [x]


def _normalize_labels(
    labels: Optional[Dict[Any, str] | Sequence[Tuple[Any, str]]],
) -> Dict[Any, str]:
    if labels is None:
        return {}

    # Accept dict or sequence of (code, label) pairs
    if isinstance(labels, dict):
        items = list(labels.items())
    elif isinstance(labels, Sequence) and not isinstance(labels, (str, bytes)):
        items = list(labels)
        for pair in items:
            if not (isinstance(pair, tuple) and len(pair) == 2 and isinstance(pair[1], str)):
                raise TypeError(
                    "labels must be dict[value->str] or sequence of (value, str) pairs"
                )
    else:
        raise TypeError("labels must be dict[value->str] or sequence of (value, str) pairs")

    if any(is_missing(k) and not isinstance(k, TaggedNA) for k, _ in items):
        raise ValueError("label codes cannot be missing; use a TaggedNA to label missing values")

    codes = [k for k, _ in items]
    if len(set(codes)) != len(codes):
        raise ValueError("label codes must be unique")

    # haven allows the same text for several codes
    names = [v for _, v in items if v is not None]
    if len(set(names)) != len(names):
        warnings.warn("duplicate label strings detected; proceeding", UserWarning, stacklevel=3)

    return dict(items)


def _validate_labels_match_data_type(values: List[Value], labels: Any):
    if labels is None:
        return
    if isinstance(labels, dict):
        items = list(labels.items())
    elif isinstance(labels, (list, tuple)):
        items = [p for p in labels if isinstance(p, tuple) and len(p) == 2]
        if len(items) != len(labels):
            raise TypeError("labels must be dict[value->str] or sequence of (value, str) pairs")
    else:
        raise TypeError("labels must be a dict mapping value -> label (string)")

    if not all(isinstance(v, str) for _, v in items):
        raise TypeError("labels must have names (string values)")

    keys = [k for k, _ in items if not isinstance(k, TaggedNA)]
    if not keys:
        return
    if _is_numeric_seq(values) and any(_is_numeric_scalar(v) for v in values):
        if not all(_is_numeric_scalar(k) or is_missing(k) for k in keys):
            raise TypeError("labels must be the same type as data (numeric)")
    elif _is_string_seq(values) and any(_is_char_scalar(v) for v in values):
        if not all(_is_char_scalar(k) or is_missing(k) for k in keys):
            raise TypeError("labels must be the same type as data (character)")
    elif not (_is_numeric_seq(keys) or _is_string_seq(keys)):
        # all-missing data: keys decide the type, but must agree among themselves
        raise TypeError("labels must be all numeric or all character")


def _validate_label(label: Optional[str]):
    if label is None:
        return
    if not isinstance(label, str):
        raise TypeError("label must be a character vector of length one")


def _combine_labels(
    x_labels: Dict[Any, str],
    y_labels: Dict[Any, str],
    x_arg: str = "",
    y_arg: str = "",
) -> Dict[Any, str]:
    """Combine label sets, preferring LHS and warning on conflicts"""
    if not y_labels:
        return dict(x_labels)
    if not x_labels:
        return dict(y_labels)

    conflicts = [c for c, lab in x_labels.items() if c in y_labels and y_labels[c] != lab]

    if conflicts:
        if len(conflicts) <= 3:
            conflict_str = ", ".join(str(c) for c in conflicts)
        else:
            conflict_str = f"{conflicts[0]}, {conflicts[1]}, ... ({len(conflicts)} total)"

        warnings.warn(
            f"Conflicting labels for values: {conflict_str}. "
            f"Using labels from '{x_arg or 'left'}' argument.",
            UserWarning,
            stacklevel=3,
        )

    merged = dict(y_labels)
    merged.update(x_labels)
    return merged


# ---------- core classes ----------


@dataclass
class Labelled:
    """
    Labelled vector.

    data:   sequence of numbers or strings (None and TaggedNA allowed for missing)
    labels: mapping from *value* -> *label string* (e.g., {1: "Good"})
    label:  optional variable label string
    style:  attribute naming scheme, "haven" or "foreign"
    """

    data: Any = field(default_factory=list)
    labels: Optional[Dict[Any, str]] = None
    label: Optional[str] = None
    style: str = "haven"

    # ---------- validation ----------
    def __post_init__(self):
        self.data = _ensure_seq(self.data)
        if not (_is_numeric_seq(self.data) or _is_string_seq(self.data)):
            # This rejects bools and mixed types.
            raise TypeError("x must be a numeric or a character vector.")
        if self.style not in STYLES:
            raise ValueError(f"style must be one of {STYLES}, got {self.style!r}")
        _validate_label(self.label)
        _validate_labels_match_data_type(self.data, self.labels)

        # copy to avoid external mutation
        self.labels = _normalize_labels(self.labels)

    # ---------- basic API ----------
    def as_list(self) -> List[Value]:
        return list(self.data)

    def as_character(self) -> List[Optional[str]]:
        out: List[Optional[str]] = []
        for v in self.data:
            if isinstance(v, TaggedNA):
                out.append(repr(v))
            elif is_missing(v):
                out.append(None)
            else:
                out.append(str(v))
        return out

    def is_numeric(self) -> bool:
        """True unless the vector holds strings (all-missing data follows its label keys)."""
        if any(_is_char_scalar(v) for v in self.data):
            return False
        if any(_is_numeric_scalar(v) and not is_missing(v) for v in self.data):
            return True
        keys = [k for k in (self.labels or {}) if not isinstance(k, TaggedNA)]
        return not any(_is_char_scalar(k) for k in keys)

    def valid_values(self) -> List[Value]:
        """Sorted unique non-missing values."""
        return sorted({v for v in self.data if not is_missing(v)})

    def replace(self, **changes) -> "Labelled":
        """Copy with some fields replaced; metadata fields carry over."""
        fields = self._fields()
        fields.update(changes)
        return self.__class__(**fields)

    def _fields(self) -> Dict[str, Any]:
        return {
            "data": list(self.data),
            "labels": dict(self.labels or {}),
            "label": self.label,
            "style": self.style,
        }

    # ---------- equality ----------
    def __eq__(self, other):
        if not isinstance(other, Labelled):
            return False
        return (
            self.data == other.data
            and self.labels == other.labels
            and self.label == other.label
            and self.style == other.style
        )

    def __ne__(self, other):
        return not self.__eq__(other)

    # ---------- python sequence protocol ----------
    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self):
        return iter(self.data)

    def __getitem__(self, idx):
        if isinstance(idx, slice):
            # sliced data, same metadata
            return self.replace(data=self.data[idx])
        return self.data[idx]

    # ---------- repr ----------
    def _repr_parts(self) -> List[str]:
        shown = format_tagged_na(self.data[:10])
        data_repr = "[" + ", ".join(s.strip() for s in shown)
        data_repr += ", ...]" if len(self.data) > 10 else "]"

        parts = [f"data={data_repr}"]
        if self.labels:
            parts.append(f"labels={self.labels}")
        if self.label:
            parts.append(f"label={self.label!r}")
        if self.style != "haven":
            parts.append(f"style={self.style!r}")
        return parts

    def __repr__(self):
        return f"{self.__class__.__name__}({', '.join(self._repr_parts())})"


@dataclass(repr=False)
class LabelledSPSS(Labelled):
    """
    SPSS-specific labelled vector with user-defined missing values.

    Extends Labelled with:
    - na_values: list of specific values that should be treated as missing
    - na_range: tuple (lo, hi) defining an inclusive range of missing values
    """

    na_values: Optional[List[Value]] = None
    na_range: Optional[Tuple[Value, Value]] = None

    def __post_init__(self):
        super().__post_init__()

        if self.na_values is not None:
            self.na_values = list(self.na_values)
            if any(v is None for v in self.na_values):
                raise ValueError("na_values cannot contain missing values (None)")

            if self.is_numeric():
                if not all(_is_numeric_scalar(v) for v in self.na_values):
                    raise TypeError("na_values must match data type (numeric)")
            else:
                if not all(_is_char_scalar(v) for v in self.na_values):
                    raise TypeError("na_values must match data type (character)")

        if self.na_range is not None:
            if len(self.na_range) != 2:
                raise ValueError("na_range must be a vector of length two")

            lo, hi = self.na_range
            if lo is None or hi is None:
                raise ValueError("na_range cannot contain missing values (None)")

            if self.is_numeric():
                if not (_is_numeric_scalar(lo) and _is_numeric_scalar(hi)):
                    raise TypeError("na_range must match data type (numeric)")
            else:
                if not (_is_char_scalar(lo) and _is_char_scalar(hi)):
                    raise TypeError("na_range must match data type (character)")

            if not (lo < hi):
                raise ValueError("na_range must be in ascending order")
            self.na_range = (lo, hi)

    def is_user_missing(self, v: Value) -> bool:
        """True if `v` is one of the declared missing codes."""
        if is_missing(v):
            return False
        if self.na_values is not None and v in self.na_values:
            return True
        if self.na_range is not None:
            lo, hi = self.na_range
            return lo <= v <= hi
        return False

    def is_na(self) -> List[bool]:
        """Return boolean list indicating which values are missing"""
        return [is_missing(v) or self.is_user_missing(v) for v in self.data]

    def _fields(self) -> Dict[str, Any]:
        fields = super()._fields()
        fields["na_values"] = None if self.na_values is None else list(self.na_values)
        fields["na_range"] = self.na_range
        return fields

    def __eq__(self, other):
        if not isinstance(other, LabelledSPSS):
            return False
        return (
            super().__eq__(other)
            and self.na_values == other.na_values
            and self.na_range == other.na_range
        )

    def _repr_parts(self) -> List[str]:
        parts = super()._repr_parts()
        if self.na_values:
            parts.insert(2 if self.labels else 1, f"na_values={self.na_values}")
        if self.na_range:
            parts.append(f"na_range={self.na_range}")
        return parts

    @classmethod
    def concat(cls, vectors: List[Labelled]) -> Union[LabelledSPSS, Labelled]:
        """
        Concatenate labelled vectors.

        Returns LabelledSPSS if all vectors have compatible missing specs,
        otherwise downgrades to regular Labelled.
        """
        if not vectors:
            return cls()

        all_data: List[Value] = []
        for v in vectors:
            if isinstance(v, Labelled):
                all_data.extend(v.data)
            elif isinstance(v, list):
                all_data.extend(v)
            else:
                raise TypeError(f"Cannot concatenate {type(v)}")

        first = vectors[0] if isinstance(vectors[0], Labelled) else cls(vectors[0])

        # prefer LHS
        combined_labels = dict(first.labels or {})
        for v in vectors[1:]:
            if isinstance(v, Labelled) and v.labels:
                combined_labels = _combine_labels(
                    combined_labels, v.labels, x_arg="left", y_arg="right"
                )

        def _spec(v):
            if isinstance(v, LabelledSPSS):
                return (v.na_values, v.na_range)
            return None

        first_spec = _spec(first)
        specs_match = first_spec is not None and all(
            _spec(v) in (first_spec, None) for v in vectors if isinstance(v, Labelled)
        )

        if not specs_match:
            return Labelled(
                data=all_data, labels=combined_labels, label=first.label, style=first.style
            )

        return cls(
            data=all_data,
            labels=combined_labels,
            label=first.label,
            style=first.style,
            na_values=first_spec[0],
            na_range=first_spec[1],
        )


# ---- convenience factories / predicates ----


def labelled(
    x: Any = None,
    labels: Optional[Dict[Any, str]] = None,
    label: Optional[str] = None,
    *,
    style: str = "haven",
) -> Labelled:
    return Labelled(data=x, labels=labels, label=label, style=style)


def labelled_spss(
    x: Any = None,
    labels: Optional[Dict[Any, str]] = None,
    *,
    na_values: Optional[List[Value]] = None,
    na_range: Optional[Tuple[Value, Value]] = None,
    label: Optional[str] = None,
    style: str = "haven",
) -> LabelledSPSS:
    return LabelledSPSS(
        data=x, labels=labels, label=label, style=style, na_values=na_values, na_range=na_range
    )


def is_labelled(x: Any) -> bool:
    return isinstance(x, Labelled)


def is_labelled_spss(x: Any) -> bool:
    return isinstance(x, LabelledSPSS)
