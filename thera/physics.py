"""Vectors and axis-aligned bounding boxes for the pong simulation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class Vector:
    """An immutable three-component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        if not isinstance(other, Vector):
            return NotImplemented
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Vector:
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vector(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Vector:
        if not isinstance(scalar, (int, float)):
            return NotImplemented
        return Vector(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Vector:
        return Vector(-self.x, -self.y, -self.z)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def dot(self, other: Vector) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length(self) -> float:
        return math.sqrt(self.dot(self))


@dataclass
class Body:
    """A position with an axis-aligned box of half-size extents around it."""

    position: Vector
    extents: Vector

    @property
    def minimum(self) -> Vector:
        return self.position - self.extents

    @property
    def maximum(self) -> Vector:
        return self.position + self.extents


@dataclass(frozen=True)
class Hit:
    """The outcome of an overlap test: the axis normal pointing from b to a."""

    normal: Vector


def normalize(vector: Vector) -> Vector:
    """Return the unit vector in the direction of vector."""
    length = vector.length()
    if length == 0:
        raise ValueError("cannot normalize a zero-length vector")
    return vector / length


def reflect(velocity: Vector, normal: Vector) -> Vector:
    """Reflect velocity about a surface with the given unit normal."""
    return velocity - normal * (2.0 * normal.dot(velocity))


def aabb_overlap(a: Body, b: Body) -> Optional[Hit]:
    """Test two boxes in the XY plane; return a Hit along the shallower axis, or None."""
    dx = a.position.x - b.position.x
    dy = a.position.y - b.position.y
    x_penetration = a.extents.x + b.extents.x - abs(dx)
    y_penetration = a.extents.y + b.extents.y - abs(dy)
    if x_penetration <= 0 or y_penetration <= 0:
        return None
    if x_penetration < y_penetration:
        return Hit(Vector(math.copysign(1.0, dx), 0.0, 0.0))
    return Hit(Vector(0.0, math.copysign(1.0, dy), 0.0))