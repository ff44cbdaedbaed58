"""Structural deep equality.

Each operand is classified into exactly one shape tag and the pair is
compared by ordered matching on the tags. Cyclic structures are not
supported and recurse without bound.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any, Literal

ValueTag = Literal[
    "primitive",
    "sequence",
    "regex",
    "mapping",
    "value-coercible",
    "string-coercible",
    "structure",
]

_PRIMITIVE_TYPES = (type(None), bool, int, float, complex, str, bytes)


def classify(value: Any) -> ValueTag:
    if isinstance(value, _PRIMITIVE_TYPES):
        return "primitive"
    if isinstance(value, (list, tuple)):
        return "sequence"
    if isinstance(value, re.Pattern):
        return "regex"
    if isinstance(value, Mapping):
        return "mapping"
    value_type = type(value)
    if value_type.__eq__ is not object.__eq__:
        return "value-coercible"
    if value_type.__str__ is not object.__str__:
        return "string-coercible"
    return "structure"


def _primitive_kind(value: Any) -> str:
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def _strict_equal(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if classify(a) != "primitive" or classify(b) != "primitive":
        return False
    return _primitive_kind(a) == _primitive_kind(b) and a == b


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def _fields(value: Any) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if hasattr(value, "__dict__"):
        return {key: item for key, item in vars(value).items() if not key.startswith("_")}
    fields: dict[str, Any] = {}
    for klass in type(value).__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if not name.startswith("_") and hasattr(value, name):
                fields[name] = getattr(value, name)
    return fields


def _fields_equal(a: Any, b: Any) -> bool:
    a_fields = _fields(a)
    b_fields = _fields(b)
    if len(a_fields) != len(b_fields):
        return False
    if any(key not in b_fields for key in a_fields):
        return False
    return all(deep_equal(a_fields[key], b_fields[key]) for key in reversed(list(a_fields)))


def _coerced_equal(a: Any, b: Any, tag: ValueTag) -> bool:
    # User-defined coercions may raise; a comparison that cannot be made is unequal.
    try:
        if tag == "value-coercible":
            return bool(a == b)
        return str(a) == str(b)
    except Exception:
        return False


def deep_equal(a: Any, b: Any) -> bool:
    if _strict_equal(a, b):
        return True

    a_tag = classify(a)
    b_tag = classify(b)
    if a_tag == "primitive" or b_tag == "primitive":
        return _is_nan(a) and _is_nan(b)

    if type(a) is not type(b):
        return False

    if a_tag == "sequence":
        if len(a) != len(b):
            return False
        return all(deep_equal(a[index], b[index]) for index in range(len(a) - 1, -1, -1))
    if a_tag == "regex":
        return bool(a.pattern == b.pattern and a.flags == b.flags)
    if a_tag in ("value-coercible", "string-coercible"):
        return _coerced_equal(a, b, a_tag)
    return _fields_equal(a, b)


__all__ = ["ValueTag", "classify", "deep_equal"]
