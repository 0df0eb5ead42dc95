"""
AABB — axis-aligned bounding box.
"""

from __future__ import annotations

from typing import Optional, Tuple
import numpy as np

_EPSILON = 1e-9


class AABB:
    """
    Ограничивающий параллелепипед, выровненный по осям.

    Attributes:
        min_point: Минимальный угол, shape (3,).
        max_point: Максимальный угол, shape (3,).
    """

    __slots__ = ("min_point", "max_point")

    def __init__(self, min_point, max_point):
        self.min_point = np.asarray(min_point, dtype=np.float64).reshape(3).copy()
        self.max_point = np.asarray(max_point, dtype=np.float64).reshape(3).copy()

    @classmethod
    def from_points(cls, points: np.ndarray) -> "AABB":
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if len(points) == 0:
            raise ValueError("AABB.from_points: empty point set")
        return cls(points.min(axis=0), points.max(axis=0))

    def padded(self, min_extent: float = 1.0, eps: float = _EPSILON) -> "AABB":
        """Расширить вырожденные (плоские) оси до min_extent, сохраняя центр."""
        lo = self.min_point.copy()
        hi = self.max_point.copy()
        flat = (hi - lo) < eps
        half = min_extent / 2.0
        lo[flat] -= half
        hi[flat] += half
        return AABB(lo, hi)

    @property
    def center(self) -> np.ndarray:
        return (self.min_point + self.max_point) * 0.5

    @property
    def size(self) -> np.ndarray:
        return self.max_point - self.min_point

    @property
    def diagonal(self) -> float:
        return float(np.linalg.norm(self.size))

    def volume(self) -> float:
        return float(np.prod(np.maximum(self.size, 0.0)))

    def corners(self) -> np.ndarray:
        """8 углов, shape (8, 3)."""
        lo, hi = self.min_point, self.max_point
        return np.array([
            [lo[0], lo[1], lo[2]],
            [hi[0], lo[1], lo[2]],
            [lo[0], hi[1], lo[2]],
            [hi[0], hi[1], lo[2]],
            [lo[0], lo[1], hi[2]],
            [hi[0], lo[1], hi[2]],
            [lo[0], hi[1], hi[2]],
            [hi[0], hi[1], hi[2]],
        ], dtype=np.float64)

    def contains(self, point: np.ndarray) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(p >= self.min_point) and np.all(p <= self.max_point))

    def intersects(self, other: "AABB") -> bool:
        return bool(np.all(self.min_point <= other.max_point) and np.all(other.min_point <= self.max_point))

    def intersection(self, other: "AABB") -> Optional["AABB"]:
        """Пересечение двух боксов или None."""
        lo = np.maximum(self.min_point, other.min_point)
        hi = np.minimum(self.max_point, other.max_point)
        if np.any(lo > hi):
            return None
        return AABB(lo, hi)

    def closest_point(self, point: np.ndarray) -> np.ndarray:
        return np.clip(np.asarray(point, dtype=np.float64), self.min_point, self.max_point)

    def distance_to(self, point: np.ndarray) -> float:
        """Расстояние от точки до бокса (0 внутри)."""
        p = np.asarray(point, dtype=np.float64)
        return float(np.linalg.norm(p - self.closest_point(p)))

    def clip_segment(self, a: np.ndarray, b: np.ndarray) -> Optional[Tuple[float, float]]:
        """
        Slab-тест отрезка a→b.

        Returns:
            (t_enter, t_exit) в параметре отрезка [0, 1], или None,
            если отрезок не заходит в бокс.
        """
        a = np.asarray(a, dtype=np.float64)
        d = np.asarray(b, dtype=np.float64) - a
        t0, t1 = 0.0, 1.0
        for axis in range(3):
            if abs(d[axis]) < _EPSILON:
                if a[axis] < self.min_point[axis] or a[axis] > self.max_point[axis]:
                    return None
                continue
            inv = 1.0 / d[axis]
            ta = (self.min_point[axis] - a[axis]) * inv
            tb = (self.max_point[axis] - a[axis]) * inv
            if ta > tb:
                ta, tb = tb, ta
            t0 = max(t0, ta)
            t1 = min(t1, tb)
            if t0 > t1:
                return None
        return t0, t1

    def ray_hits(self, origin: np.ndarray, direction: np.ndarray) -> bool:
        """Попадает ли луч (t >= 0) в бокс."""
        o = np.asarray(origin, dtype=np.float64)
        d = np.asarray(direction, dtype=np.float64)
        t0, t1 = 0.0, np.inf
        for axis in range(3):
            if abs(d[axis]) < _EPSILON:
                if o[axis] < self.min_point[axis] or o[axis] > self.max_point[axis]:
                    return False
                continue
            ta = (self.min_point[axis] - o[axis]) / d[axis]
            tb = (self.max_point[axis] - o[axis]) / d[axis]
            if ta > tb:
                ta, tb = tb, ta
            t0 = max(t0, ta)
            t1 = min(t1, tb)
            if t0 > t1:
                return False
        return True

    def __repr__(self):
        return f"AABB(min={self.min_point.tolist()}, max={self.max_point.tolist()})"
