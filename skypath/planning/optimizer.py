"""
Оптимизация порядка обхода точек маршрута.

Ближайший сосед от первой точки, затем 2-opt. Стоимость участка:
евклидово расстояние плюс штраф, если участок проходит через занятый
воксель меша. Первая точка всегда остаётся первой, маршрут не замкнут.
"""

from __future__ import annotations

import threading
from typing import Optional, Sequence

import numpy as np
from scipy.spatial.distance import cdist

from skypath import log
from skypath.collision.voxel_grid import OccupancyGrid
from skypath.config import OptimizerConfig
from skypath.errors import OptimizationCancelled
from skypath.mesh.flat_mesh import FlatMesh
from skypath.waypoint import Waypoint

# Улучшение меньше этого не считается улучшением
_IMPROVEMENT_EPSILON = 1e-9


def path_distance(path: Sequence[Waypoint]) -> float:
    """Длина маршрута без штрафов."""
    if len(path) < 2:
        return 0.0
    pts = np.array([(w.x, w.y, w.z) for w in path], dtype=np.float64)
    return float(np.linalg.norm(np.diff(pts, axis=0), axis=1).sum())


class SegmentCost:
    """
    Стоимость участка между точками i и j.

    Расстояния считаются заранее матрицей; проверка по сетке занятости
    выполняется лениво и запоминается для неупорядоченной пары.
    """

    def __init__(self, positions: np.ndarray, grid: Optional[OccupancyGrid], penalty: float):
        self.positions = positions
        self.distances = cdist(positions, positions)
        self.grid = grid
        self.penalty = penalty
        self._collides: dict[tuple[int, int], bool] = {}

    def collides(self, i: int, j: int) -> bool:
        if self.grid is None:
            return False
        key = (i, j) if i < j else (j, i)
        hit = self._collides.get(key)
        if hit is None:
            hit = self.grid.segment_collides(self.positions[key[0]], self.positions[key[1]])
            self._collides[key] = hit
        return hit

    def __call__(self, i: int, j: int) -> float:
        cost = self.distances[i, j]
        if self.collides(i, j):
            cost += self.penalty
        return cost

    def total(self, order: Sequence[int]) -> float:
        return float(sum(self(order[k], order[k + 1]) for k in range(len(order) - 1)))


class PathOptimizer:
    """
    Args:
        config: Параметры (штраф, предел проходов, разрешение сетки).
        cancel_event: threading.Event; при установке оптимизация
            прерывается исключением OptimizationCancelled.
    """

    def __init__(self, config: Optional[OptimizerConfig] = None, cancel_event: Optional[threading.Event] = None):
        self.config = config or OptimizerConfig()
        self.cancel_event = cancel_event
        self.passes = 0

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OptimizationCancelled()

    def optimize(self, points: Sequence[Waypoint], mesh: Optional[FlatMesh] = None) -> list[Waypoint]:
        """Новый порядок тех же точек (идентификаторы сохраняются)."""
        points = list(points)
        self.passes = 0
        if len(points) < self.config.min_points:
            return points

        grid = None
        if mesh is not None and not mesh.is_empty:
            grid = OccupancyGrid.from_mesh(mesh, self.config.grid_resolution)
        self._check_cancelled()

        positions = np.array([(w.x, w.y, w.z) for w in points], dtype=np.float64)
        cost = SegmentCost(positions, grid, self.config.collision_penalty)

        order = self.nearest_neighbor(cost, len(points))
        order = self.two_opt(cost, order)
        log.debug(
            f"[PathOptimizer] {len(points)} points, {self.passes} passes, cost {cost.total(order):.3f}"
        )
        return [points[i] for i in order]

    def nearest_neighbor(self, cost: SegmentCost, count: int) -> list[int]:
        order = [0]
        unvisited = list(range(1, count))
        current = 0
        while unvisited:
            self._check_cancelled()
            best = min(unvisited, key=lambda j: cost(current, j))
            unvisited.remove(best)
            order.append(best)
            current = best
        return order

    def two_opt(self, cost: SegmentCost, order: list[int]) -> list[int]:
        """
        Разворот участков order[i..k], i >= 1.

        Сравниваются только два затронутых ребра; у последней точки
        исходящего ребра нет.
        """
        order = list(order)
        n = len(order)
        improved = True
        while improved and self.passes < self.config.max_passes:
            improved = False
            self.passes += 1
            for i in range(1, n - 1):
                self._check_cancelled()
                for k in range(i + 1, n):
                    a, b, c = order[i - 1], order[i], order[k]
                    current = cost(a, b)
                    candidate = cost(a, c)
                    if k + 1 < n:
                        d = order[k + 1]
                        current += cost(c, d)
                        candidate += cost(b, d)
                    if candidate < current - _IMPROVEMENT_EPSILON:
                        order[i:k + 1] = order[i:k + 1][::-1]
                        improved = True
        return order


def calculate_optimal_path(
    points: Sequence[Waypoint],
    mesh: Optional[FlatMesh] = None,
    config: Optional[OptimizerConfig] = None,
    cancel_event: Optional[threading.Event] = None,
) -> list[Waypoint]:
    return PathOptimizer(config, cancel_event).optimize(points, mesh)
