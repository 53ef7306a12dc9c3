"""
util – Structural equality and order-preserving de-duplication.

Values are compared by structure rather than identity:
  - scalars must share their exact type and value (``1``, ``1.0`` and
    ``True`` are three different values; NaN equals NaN; ``-0.0`` is not
    ``0.0``)
  - lists and tuples are sequences: same length, pairwise equal in order
  - mappings: same key set, pairwise equal values, key order irrelevant
  - dataclass instances: same class, pairwise equal fields
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Hashable, Iterable, List, TypeVar

T = TypeVar("T")

_SEQUENCE_TYPES = (list, tuple)


def structural_key(value: Any) -> Hashable:
    """Return a hashable key such that equal keys mean structurally equal values."""
    if isinstance(value, _SEQUENCE_TYPES):
        return ("seq", tuple(structural_key(v) for v in value))
    if isinstance(value, Mapping):
        return ("map", frozenset(
            (structural_key(k), structural_key(v)) for k, v in value.items()
        ))
    if is_dataclass(value) and not isinstance(value, type):
        return ("record", type(value), tuple(
            structural_key(getattr(value, f.name)) for f in fields(value)
        ))
    if isinstance(value, float):
        if math.isnan(value):
            return (float, "nan")
        if value == 0.0 and math.copysign(1.0, value) < 0:
            return (float, "-0")
    return (type(value), value)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality as described in the module docstring."""
    if a is b:
        return True
    return structural_key(a) == structural_key(b)


def unique(*sequences: Iterable[T]) -> List[T]:
    """First-occurrence-unique values across all *sequences*, in order."""
    seen = set()
    output: List[T] = []
    for sequence in sequences:
        for value in sequence:
            key = structural_key(value)
            if key in seen:
                continue
            seen.add(key)
            output.append(value)
    return output
