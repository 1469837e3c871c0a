"""Small numeric helpers."""

from __future__ import annotations

from numbers import Real
from typing import Sequence, Union

Number = Union[int, float]


def _max(a: Number, b: Number) -> Number:
    return a if a > b else b


def elementwise_max(a, b):
    """Return the larger of two scalars, or the per-component maximum of two vectors."""
    if isinstance(a, Real) and isinstance(b, Real):
        return _max(a, b)
    if isinstance(a, Real) or isinstance(b, Real):
        raise TypeError("cannot compare a scalar with a vector")
    if not isinstance(a, Sequence) or not isinstance(b, Sequence):
        raise TypeError("arguments must be numbers or sequences of numbers")
    if len(a) != len(b):
        raise ValueError("vectors must have the same number of components")
    return tuple(_max(x, y) for x, y in zip(a, b))