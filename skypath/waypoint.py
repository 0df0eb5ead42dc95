"""Точка маршрута."""

from __future__ import annotations

from dataclasses import dataclass, replace
import numpy as np


@dataclass(frozen=True)
class Waypoint:
    """
    Позиция дрона и нормаль (направление камеры) в точке маршрута.

    Неизменяемая: правки создают новый объект, поэтому снимки истории
    не требуют копирования и сравниваются точно.
    """

    id: int
    x: float
    y: float
    z: float
    normal: tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def position(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def normal_vector(self) -> np.ndarray:
        return np.array(self.normal, dtype=np.float64)

    def with_position(self, x: float, y: float, z: float) -> "Waypoint":
        return replace(self, x=float(x), y=float(y), z=float(z))

    def with_normal(self, normal) -> "Waypoint":
        nx, ny, nz = (float(v) for v in normal)
        return replace(self, normal=(nx, ny, nz))

    def with_id(self, point_id: int) -> "Waypoint":
        return replace(self, id=int(point_id))

    def pose_key(self) -> tuple:
        """Ключ кэша видимости: всё, от чего зависит пирамида."""
        return (self.x, self.y, self.z) + tuple(self.normal)

    @staticmethod
    def at(point_id: int, position, normal=(0.0, 0.0, 0.0)) -> "Waypoint":
        x, y, z = (float(v) for v in position)
        nx, ny, nz = (float(v) for v in normal)
        return Waypoint(int(point_id), x, y, z, (nx, ny, nz))
