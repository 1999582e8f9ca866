# python/svy_labels/frame.py
from __future__ import annotations

import copy

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

import polars as pl

from polars.exceptions import ComputeError, InvalidOperationError

from .labelled import Labelled, LabelledSPSS
from .tagged_na import TaggedNA, is_missing, parse_tagged_na
from .utils import format_value, select_columns, sort_labels


Vector = Union[Labelled, pl.Series, Sequence[Any]]


# ───────────────────────── metadata helpers ─────────────────────────


def _empty_meta() -> Dict[str, Any]:
    return {
        "file_label": None,
        "vars": [],
        "value_labels": [],
        "user_missing": [],
        "n_rows": 0,
    }


def _normalize_meta(df: pl.DataFrame, meta: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Copy `meta` and align its vars to df.columns (missing entries are filled in)."""
    if meta is not None and not isinstance(meta, dict):
        raise TypeError("expected a metadata dict")
    meta_in = copy.deepcopy(meta) if meta else {}
    out = _empty_meta()
    out.update({k: v for k, v in meta_in.items() if k not in ("vars", "n_rows")})

    in_map = {v.get("name"): v for v in meta_in.get("vars", [])}
    aligned = []
    for name in df.columns:
        v = in_map.get(name, {})
        v["name"] = name
        v["label"] = v.get("label")
        v["label_set"] = v.get("label_set")
        v["fmt"] = v.get("fmt")
        aligned.append(v)
    out["vars"] = aligned
    out["value_labels"] = list(out.get("value_labels") or [])
    out["user_missing"] = [
        um for um in (out.get("user_missing") or []) if _um_col(um) in df.columns
    ]
    out["n_rows"] = df.height
    return out


def _um_col(spec: Dict[str, Any]) -> Optional[str]:
    return spec.get("col") or spec.get("name") or spec.get("column") or spec.get("var")


def _encode_key(v: Any) -> str:
    if isinstance(v, TaggedNA):
        return repr(v)
    return format_value(v)


def _decode_key(k: Any, numeric: bool, tags: Optional[set] = None) -> Any:
    """
    Meta key -> code. "NA(x)" is a tag on numeric columns; on character
    columns only when the tag occurs in the data (`tags`).
    """
    if not isinstance(k, str):
        return k
    tagged = parse_tagged_na(k)
    if tagged is not None and (numeric or tagged in (tags or ())):
        return tagged
    if not numeric:
        return k
    try:
        num = float(k)
    except ValueError:
        return k
    return int(num) if num.is_integer() else num


def _is_labellable(dtype: pl.DataType) -> bool:
    if dtype == pl.Boolean:
        return False
    if dtype.is_numeric():
        return True
    return dtype in (pl.Utf8, pl.Categorical, pl.Object, pl.Null) or isinstance(
        dtype, (pl.Enum, pl.Categorical)
    )


# ───────────────────────── vector coercion ─────────────────────────


def as_vector(x: Any) -> Labelled:
    """Coerce a series, list or scalar to an (unlabelled) Labelled vector."""
    if isinstance(x, Labelled):
        return x
    if isinstance(x, pl.Series):
        if not _is_labellable(x.dtype):
            raise TypeError(f"cannot label a column of dtype {x.dtype}")
        return Labelled(data=x.to_list())
    if isinstance(x, (LabelledFrame, pl.DataFrame, dict)):
        raise TypeError("expected a vector, got a data frame")
    return Labelled(data=x)


def is_vector_collection(x: Any) -> bool:
    """A list/tuple whose elements are all vectors (not scalars)."""
    return (
        isinstance(x, (list, tuple))
        and len(x) > 0
        and all(isinstance(v, (Labelled, pl.Series, list, tuple)) for v in x)
    )


def to_series(name: str, vec: Labelled, dtype: Optional[pl.DataType] = None) -> pl.Series:
    """
    Materialize a labelled vector as a polars column.

    Tagged NAs need a pl.Object column; otherwise missing values become null
    and the original dtype is restored when that round-trips losslessly.
    """
    values = vec.as_list()
    if any(isinstance(v, TaggedNA) for v in values):
        return pl.Series(name=name, values=values, dtype=pl.Object)

    s = pl.Series(name=name, values=[None if is_missing(v) else v for v in values], strict=False)
    if dtype is None or dtype == pl.Object or s.dtype == dtype:
        return s
    # never turn numbers into text or back
    if s.dtype != pl.Null and s.dtype.is_numeric() != dtype.is_numeric():
        return s
    try:
        out = s.cast(dtype)
    except (ComputeError, InvalidOperationError):
        return s
    if s.dtype != pl.Null and not out.cast(s.dtype, strict=False).equals(s):
        return s
    return out


# ───────────────────────── LabelledFrame ─────────────────────────


@dataclass(eq=False)
class LabelledFrame:
    """
    A Polars DataFrame plus label metadata.

    meta follows the reader layout::

        {"file_label": str | None,
         "vars": [{"name", "label", "label_set", "fmt"}],
         "value_labels": [{"set_name", "mapping": {str(code): label}}],
         "user_missing": [{"col", "na_values", "na_range"}],
         "n_rows": int}

    Columns come out as Labelled / LabelledSPSS vectors via ``frame[name]``
    and go back in with :meth:`with_column`; both directions keep the
    metadata in sync.
    """

    data: pl.DataFrame
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.data, pl.DataFrame):
            raise TypeError("LabelledFrame(data, meta): data must be a polars.DataFrame")
        self.meta = _normalize_meta(self.data, self.meta)

    # ---------- construction ----------
    @classmethod
    def from_vectors(
        cls, vectors: Mapping[str, Vector], *, file_label: Optional[str] = None
    ) -> "LabelledFrame":
        vecs = {name: as_vector(v) for name, v in vectors.items()}
        lengths = {len(v) for v in vecs.values()}
        if len(lengths) > 1:
            raise ValueError("all vectors must have the same length")
        df = pl.DataFrame([to_series(name, v) for name, v in vecs.items()])
        meta = _normalize_meta(df, {"file_label": file_label})
        for name, v in vecs.items():
            _set_var_meta(meta, name, v)
        return cls(df, meta)

    # ---------- basic API ----------
    @property
    def columns(self) -> List[str]:
        return list(self.data.columns)

    @property
    def file_label(self) -> Optional[str]:
        return self.meta.get("file_label")

    def __len__(self) -> int:
        return self.data.height

    def __contains__(self, name: object) -> bool:
        return name in self.data.columns

    def copy(self) -> "LabelledFrame":
        return LabelledFrame(self.data, self.meta)

    def var_meta(self, name: str) -> Dict[str, Any]:
        self._check(name)
        return next(v for v in self.meta["vars"] if v["name"] == name)

    def value_labels(self, name: str) -> Dict[Any, str]:
        """Value labels of one column with keys decoded to the column type."""
        set_name = self.var_meta(name).get("label_set")
        if not set_name:
            return {}
        mapping = next(
            (vl["mapping"] for vl in self.meta["value_labels"] if vl["set_name"] == set_name),
            None,
        )
        if not mapping:
            return {}
        numeric = self._is_numeric(name)
        tags = None
        if not numeric and self.data.schema[name] == pl.Object:
            tags = {v for v in self.data[name].to_list() if isinstance(v, TaggedNA)}
        return sort_labels({_decode_key(k, numeric, tags): v for k, v in mapping.items()})

    def user_missing(self, name: str) -> Optional[Dict[str, Any]]:
        self._check(name)
        return next((um for um in self.meta["user_missing"] if _um_col(um) == name), None)

    def has_labels(self, name: str) -> bool:
        v = self.var_meta(name)
        return bool(v.get("label") is not None or v.get("label_set") or self.user_missing(name))

    def __getitem__(self, name: str) -> Labelled:
        self._check(name)
        var = self.var_meta(name)
        values = self.data[name].to_list()
        kwargs = {
            "data": values,
            "labels": self.value_labels(name),
            "label": var.get("label"),
            "style": var.get("style") or "haven",
        }
        spec = self.user_missing(name)
        if spec and (spec.get("na_values") or spec.get("na_range")):
            na_range = spec.get("na_range")
            return LabelledSPSS(
                na_values=spec.get("na_values") or None,
                na_range=tuple(na_range) if na_range else None,
                **kwargs,
            )
        return Labelled(**kwargs)

    def get(self, name: str) -> Union[Labelled, pl.Series]:
        """The column as a labelled vector if it carries labels, else the raw series."""
        if self.has_labels(name):
            return self[name]
        return self.data[name]

    def vectors(self) -> Dict[str, Labelled]:
        return {name: self[name] for name in self.resolve(())}

    def resolve(self, cols: Sequence[Any]) -> List[str]:
        """Selected column names; no selectors means every labellable column."""
        if not cols:
            return [n for n, dt in self.data.schema.items() if _is_labellable(dt)]
        return select_columns(self.data, cols)

    # ---------- updates ----------
    def with_column(self, name: str, vec: Vector) -> "LabelledFrame":
        """Return a new frame with column `name` (and its labels) replaced or added."""
        vec = as_vector(vec)
        if self.data.width and len(vec) != self.data.height:
            raise ValueError(
                f"column {name!r} has length {len(vec)}, frame has {self.data.height} rows"
            )
        dtype = self.data.schema.get(name)
        series = to_series(name, vec, dtype)
        data = self.data.with_columns(series) if self.data.width else pl.DataFrame([series])

        meta = _normalize_meta(data, self.meta)
        _set_var_meta(meta, name, vec)
        return LabelledFrame(data, meta)

    def with_series(self, series: pl.Series, *, keep_label: bool = True) -> "LabelledFrame":
        """Put a plain series in place; its column loses value labels and missing rules."""
        name = series.name
        if self.data.width and series.len() != self.data.height:
            raise ValueError(
                f"column {name!r} has length {series.len()}, frame has {self.data.height} rows"
            )
        data = self.data.with_columns(series) if self.data.width else pl.DataFrame([series])
        meta = _normalize_meta(data, self.meta)
        label = self.var_meta(name).get("label") if keep_label and name in self else None
        _set_var_meta(meta, name, Labelled(label=label))
        return LabelledFrame(data, meta)

    def with_data(self, data: pl.DataFrame) -> "LabelledFrame":
        """Swap the underlying DataFrame, keeping metadata of surviving columns."""
        return LabelledFrame(data, self.meta)

    # ---------- internals ----------
    def _check(self, name: str) -> None:
        if name not in self.data.columns:
            raise ValueError(f"column not found: {name!r}")

    def _is_numeric(self, name: str) -> bool:
        dtype = self.data.schema[name]
        if dtype.is_numeric():
            return True
        if dtype in (pl.Object, pl.Null):
            return not any(isinstance(v, str) for v in self.data[name].to_list())
        return False

    def __repr__(self) -> str:
        labelled_cols = [n for n in self.data.columns if self.has_labels(n)]
        return (
            f"LabelledFrame(shape={self.data.shape}, "
            f"labelled={labelled_cols}, file_label={self.file_label!r})"
        )


def _set_var_meta(meta: Dict[str, Any], name: str, vec: Labelled) -> None:
    """Write the label metadata of `vec` into `meta` for column `name` (in place)."""
    var = next(v for v in meta["vars"] if v["name"] == name)
    var["label"] = vec.label
    if vec.style != "haven":
        var["style"] = vec.style
    else:
        var.pop("style", None)

    if vec.labels:
        mapping = {_encode_key(k): lab for k, lab in sort_labels(vec.labels).items()}
        var["label_set"] = name
        sets = [vl for vl in meta["value_labels"] if vl["set_name"] != name]
        sets.append({"set_name": name, "mapping": mapping})
        meta["value_labels"] = sets
    else:
        var["label_set"] = None

    # drop label sets nothing points to anymore
    used = {v.get("label_set") for v in meta["vars"]}
    meta["value_labels"] = [vl for vl in meta["value_labels"] if vl["set_name"] in used]

    meta["user_missing"] = [um for um in meta["user_missing"] if _um_col(um) != name]
    if isinstance(vec, LabelledSPSS) and (vec.na_values or vec.na_range):
        meta["user_missing"].append(
            {
                "col": name,
                "na_values": list(vec.na_values) if vec.na_values else None,
                "na_range": list(vec.na_range) if vec.na_range else None,
            }
        )


# ───────────────────────── dispatch ─────────────────────────


def apply_getter(x: Any, fn: Callable[[Any], Any]) -> Any:
    """Run a per-vector getter over a frame, dict, list of vectors or single vector."""
    if isinstance(x, LabelledFrame):
        return {name: fn(x.get(name)) for name in x.resolve(())}
    if isinstance(x, pl.DataFrame):
        return {name: fn(x[name]) for name in x.columns}
    if isinstance(x, dict):
        return {k: fn(v) for k, v in x.items()}
    if is_vector_collection(x):
        return [fn(v) for v in x]
    return fn(x)


def apply_setter(x: Any, cols: Sequence[Any], fn: Callable[[Labelled], Any]) -> Any:
    """
    Run a per-vector transformation.

    Frames get the selected columns replaced and come back as a new frame;
    collections come back as collections of results.
    """
    if isinstance(x, pl.DataFrame):
        x = LabelledFrame(x)
    if isinstance(x, LabelledFrame):
        out = x
        for name in x.resolve(cols):
            out = out.with_column(name, fn(x[name]))
        return out
    if cols:
        raise TypeError("column selectors only apply to data frames")
    if isinstance(x, dict):
        return {k: fn(as_vector(v)) for k, v in x.items()}
    if is_vector_collection(x):
        return [fn(as_vector(v)) for v in x]
    return fn(as_vector(x))
