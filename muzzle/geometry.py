"""Small 2D vector helpers shared by the builder and the canvas."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence, Union

Number = Union[int, float]


class Axis(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class Vector:
    x: Number
    y: Number

    @classmethod
    def of(cls, value: Union["Vector", Number, Sequence[Number]]) -> "Vector":
        """Coerce scalars and pairs into vectors."""

        if isinstance(value, Vector):
            return value
        if isinstance(value, (int, float)):
            return cls(value, value)
        x, y = value
        return cls(x, y)

    def plus(self, other) -> "Vector":
        other = Vector.of(other)
        return Vector(self.x + other.x, self.y + other.y)

    def minus(self, other) -> "Vector":
        other = Vector.of(other)
        return Vector(self.x - other.x, self.y - other.y)

    def multiply(self, other) -> "Vector":
        other = Vector.of(other)
        return Vector(self.x * other.x, self.y * other.y)

    def divide(self, other) -> "Vector":
        other = Vector.of(other)
        return Vector(self.x / other.x, self.y / other.y)

    @property
    def min(self) -> Number:
        return min(self.x, self.y)

    def to_list(self) -> List[Number]:
        return [self.x, self.y]


def vector(x: Number, y: Number) -> Vector:
    return Vector(x, y)


__all__ = ["Axis", "Number", "Vector", "vector"]
