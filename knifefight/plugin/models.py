"""Value types shared between the duel core and its host."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Vector:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vector) -> Vector:
        return Vector(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vector) -> Vector:
        return Vector(self.x - other.x, self.y - other.y, self.z - other.z)

    def length(self) -> float:
        return (self.x * self.x + self.y * self.y + self.z * self.z) ** 0.5

    def to_list(self) -> list[float]:
        return [self.x, self.y, self.z]


@dataclass(frozen=True)
class QAngle:
    pitch: float = 0.0
    yaw: float = 0.0
    roll: float = 0.0

    def to_list(self) -> list[float]:
        return [self.pitch, self.yaw, self.roll]


ORIGIN = Vector(0.0, 0.0, 0.0)
ZERO_VELOCITY = Vector(0.0, 0.0, 0.0)
NEUTRAL_ANGLES = QAngle(0.0, 0.0, 0.0)
