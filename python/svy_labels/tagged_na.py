# python/svy_labels/tagged_na.py
from __future__ import annotations

import math

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Union


Scalar = Union[int, float, str, None]


@dataclass(frozen=True, slots=True)
class TaggedNA:
    """
    A missing value that carries a reason code (e.g. "refused").

    Stata stores these as ``.a`` .. ``.z``, SAS as ``.A`` .. ``.Z`` and ``._``.
    """

    tag: str

    def __repr__(self) -> str:
        return f"NA({self.tag})"

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TaggedNA) and self.tag == other.tag

    def __hash__(self) -> int:
        return hash(("TaggedNA", self.tag))


def tagged_na(tag: Union[str, Sequence[str]]) -> Union[TaggedNA, List[TaggedNA]]:
    """Create one tagged NA, or a list of them from a sequence of tags."""
    if isinstance(tag, str):
        return TaggedNA(tag)
    return [TaggedNA(t) for t in tag]


def is_tagged_na(
    x: Union[Scalar, TaggedNA, Sequence[Any]], tag: Optional[str] = None
) -> Union[bool, List[bool]]:
    """Test if value(s) are TaggedNA, optionally with a specific tag."""
    if isinstance(x, (list, tuple)):
        if tag is None:
            return [isinstance(v, TaggedNA) for v in x]
        return [isinstance(v, TaggedNA) and v.tag == tag for v in x]

    if not isinstance(x, TaggedNA):
        return False
    return tag is None or x.tag == tag


def na_tag(
    x: Union[Scalar, TaggedNA, Sequence[Any]],
) -> Union[Optional[str], List[Optional[str]]]:
    """Return the tag of a TaggedNA, or None for other values."""
    if isinstance(x, (list, tuple)):
        return [v.tag if isinstance(v, TaggedNA) else None for v in x]

    return x.tag if isinstance(x, TaggedNA) else None


def is_missing(v: Any) -> bool:
    """None, TaggedNA and float NaN all count as missing."""
    if v is None or isinstance(v, TaggedNA):
        return True
    return isinstance(v, float) and math.isnan(v)


def parse_tagged_na(s: Any) -> Optional[TaggedNA]:
    """Inverse of ``repr(TaggedNA)``: "NA(a)" -> TaggedNA("a"), else None."""
    if isinstance(s, str) and len(s) > 4 and s.startswith("NA(") and s.endswith(")"):
        return TaggedNA(s[3:-1])
    return None


def format_tagged_na(x: Sequence[Any]) -> List[str]:
    """Render a mixed vector, right-justified to width 5."""
    out = []
    for v in x:
        if isinstance(v, TaggedNA):
            out.append(repr(v))
        elif is_missing(v):
            out.append("   NA")
        else:
            out.append(str(v).rjust(5))
    return out
