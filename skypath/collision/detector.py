"""
Коллизии маршрута с мешем.

Точка маршрута сталкивается, если лежит в занятом вокселе; участок
маршрута сталкивается, если проходит через занятый воксель. Без
пригодных треугольников используется эвристика по общему AABB.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from skypath import log
from skypath.collision.box_check import point_in_box, segment_intersects_box
from skypath.collision.voxel_grid import DEFAULT_RESOLUTION, OccupancyGrid
from skypath.geometry.aabb import AABB
from skypath.mesh.flat_mesh import FlatMesh
from skypath.waypoint import Waypoint


@dataclass(frozen=True)
class CollisionPoint:
    """Место коллизии."""

    position: tuple[float, float, float]
    severity: float
    """Тяжесть в [0, 1]: 1 в центре меша, 0 на расстоянии диагонали и дальше."""

    time: int
    """Индекс точки маршрута (для участка — индекс его конца)."""

    def to_dict(self) -> dict:
        x, y, z = self.position
        return {"position": {"x": x, "y": y, "z": z}, "severity": self.severity, "time": self.time}


@dataclass(frozen=True)
class PathCollisions:
    collisions: list[CollisionPoint] = field(default_factory=list)

    @property
    def collision_count(self) -> int:
        return len(self.collisions)

    @property
    def has_collision(self) -> bool:
        return len(self.collisions) > 0


def collision_severity(point, bounds: AABB) -> float:
    diagonal = bounds.diagonal
    if diagonal <= 0.0:
        diagonal = 1.0
    dist = float(np.linalg.norm(np.asarray(point, dtype=np.float64) - bounds.center))
    return max(0.0, min(1.0, 1.0 - min(1.0, dist / diagonal)))


def min_distance_to_obstacle(point, mesh: Optional[FlatMesh]) -> Optional[float]:
    """Расстояние от точки до AABB меша (0 внутри), None без меша."""
    bounds = mesh.bounds() if mesh is not None else None
    if bounds is None:
        return None
    return bounds.distance_to(point)


class CollisionDetector:
    """
    Проверка маршрута на пересечение с мешем.

    method="voxel" — сетка занятости и обход вокселей (по умолчанию);
    method="box" — эвристика по AABB меша.
    """

    def __init__(self, resolution: int = DEFAULT_RESOLUTION, method: str = "voxel"):
        if method not in ("voxel", "box"):
            raise ValueError(f"unknown collision method: {method}")
        self.resolution = resolution
        self.method = method

    def detect_path_collisions(
        self,
        path: Sequence[Waypoint],
        mesh: Optional[FlatMesh],
        grid: Optional[OccupancyGrid] = None,
    ) -> PathCollisions:
        if not path or mesh is None:
            return PathCollisions()
        bounds = mesh.bounds()
        if bounds is None:
            return PathCollisions()

        if self.method == "voxel" and grid is None and not mesh.is_empty:
            grid = OccupancyGrid.from_mesh(mesh, self.resolution)

        if grid is not None:
            point_hit = grid.is_occupied
            segment_hit = grid.segment_collides
        else:
            log.debug("[Collision] no occupancy grid, using bounding box check")
            def point_hit(p):
                return point_in_box(p, bounds)

            def segment_hit(a, b):
                return segment_intersects_box(a, b, bounds)

        collisions: list[CollisionPoint] = []
        positions = [w.position for w in path]

        for index, position in enumerate(positions):
            if point_hit(position):
                collisions.append(CollisionPoint(
                    position=tuple(float(v) for v in position),
                    severity=collision_severity(position, bounds),
                    time=index,
                ))

        for i in range(1, len(positions)):
            start, end = positions[i - 1], positions[i]
            if segment_hit(start, end):
                midpoint = (start + end) * 0.5
                collisions.append(CollisionPoint(
                    position=tuple(float(v) for v in midpoint),
                    severity=collision_severity(midpoint, bounds),
                    time=i,
                ))

        return PathCollisions(collisions)
