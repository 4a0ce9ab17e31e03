"""Immutable 2D and 3D vectors with arithmetic operators."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

__all__ = ["Vector2D", "Vector"]


@dataclass(frozen=True)
class Vector2D:
    """A planar vector."""

    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Vector2D") -> "Vector2D":
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scale: float) -> "Vector2D":
        return Vector2D(self.x * scale, self.y * scale)

    __rmul__ = __mul__

    def __truediv__(self, scale: float) -> "Vector2D":
        return Vector2D(self.x / scale, self.y / scale)

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y))

    def length(self) -> float:
        """Return the Euclidean length."""
        return math.sqrt(self.x * self.x + self.y * self.y)

    def normalize(self) -> "Vector2D":
        """Return the unit vector, or a zero vector when the length is zero."""
        length = self.length()
        if length == 0:
            return Vector2D(0.0, 0.0)
        inverse = 1 / length
        return Vector2D(self.x * inverse, self.y * inverse)

    def dot(self, other: "Vector2D") -> float:
        """Return the dot product with ``other``."""
        return self.x * other.x + self.y * other.y


@dataclass(frozen=True)
class Vector:
    """A three-component vector; iterable and indexable like a float[3]."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __neg__(self) -> "Vector":
        return Vector(-self.x, -self.y, -self.z)

    def __add__(self, other: "Vector") -> "Vector":
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector") -> "Vector":
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scale: float) -> "Vector":
        return Vector(self.x * scale, self.y * scale, self.z * scale)

    __rmul__ = __mul__

    def __truediv__(self, scale: float) -> "Vector":
        return Vector(self.x / scale, self.y / scale, self.z / scale)

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.z))

    def __len__(self) -> int:
        return 3

    def __getitem__(self, index: int) -> float:
        return (self.x, self.y, self.z)[index]

    def length(self) -> float:
        """Return the Euclidean length."""
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def normalize(self) -> "Vector":
        """Return the unit vector; a zero vector normalizes to (0, 0, 1)."""
        length = self.length()
        if length == 0:
            return Vector(0.0, 0.0, 1.0)
        inverse = 1 / length
        return Vector(self.x * inverse, self.y * inverse, self.z * inverse)

    def make_2d(self) -> Vector2D:
        """Return the x and y components as a Vector2D."""
        return Vector2D(self.x, self.y)

    def length_2d(self) -> float:
        """Return the length of the x and y components."""
        return math.sqrt(self.x * self.x + self.y * self.y)

    def dot(self, other: "Vector") -> float:
        """Return the dot product with ``other``."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector") -> "Vector":
        """Return the cross product ``self x other``."""
        return Vector(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )