"""
Агрегатор покрытия: объединение видимых множеств по точкам маршрута.

Видимое множество каждой точки кэшируется по её позе, поэтому при
проигрывании маршрута (растущий префикс) пересчитывается только новая точка.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import threading
from typing import Optional, Sequence

import numpy as np

from skypath import log
from skypath.camera.pose import pose_for_waypoint
from skypath.camera.pyramid import pyramid_for_pose
from skypath.config import CameraConfig, CoverageConfig
from skypath.coverage.visibility import visible_triangles
from skypath.errors import PathInputError
from skypath.mesh.flat_mesh import FlatMesh
from skypath.waypoint import Waypoint


@dataclass(frozen=True)
class CoverageMetrics:
    """Покрытие маршрута целиком."""

    coverage: float
    """Площадь, видимая хотя бы из одной точки, % от общей."""

    overlap: float
    """Площадь, видимая из двух и более точек, % от общей."""

    covered_area: float
    overlap_area: float


@dataclass(frozen=True)
class ViewpointMetrics:
    """Показатели одной точки маршрута."""

    coverage: float
    """Площадь, видимая из точки, % от общей."""

    overlap_with_previous: Optional[float]
    """Площадь, общая с предыдущей точкой, % от общей. None для первой точки."""


def _clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


class CoverageCalculator:
    """
    Покрытие меша пирамидами видимости точек маршрута.

    Все методы принимают маршрут как последовательность Waypoint
    и не изменяют её.
    """

    def __init__(
        self,
        mesh: Optional[FlatMesh],
        camera: Optional[CameraConfig] = None,
        config: Optional[CoverageConfig] = None,
    ):
        self.camera = camera or CameraConfig()
        self.config = config or CoverageConfig()
        self._lock = threading.Lock()
        self._cache: OrderedDict[tuple, frozenset] = OrderedDict()
        self._generation = 0
        self._mesh: Optional[FlatMesh] = None
        self._mesh_center: Optional[np.ndarray] = None
        self.mesh = mesh

    @property
    def mesh(self) -> Optional[FlatMesh]:
        return self._mesh

    @mesh.setter
    def mesh(self, value: Optional[FlatMesh]) -> None:
        center = value.center if value is not None and value.vertex_count else None
        with self._lock:
            self._mesh = value
            self._mesh_center = center
            self._generation += 1
            self._cache.clear()

    @property
    def has_mesh(self) -> bool:
        return self._mesh is not None and not self._mesh.is_empty

    def invalidate(self) -> None:
        """Сбросить кэш видимости (меш или параметры камеры изменились)."""
        with self._lock:
            self._generation += 1
            self._cache.clear()

    @property
    def cached_count(self) -> int:
        return len(self._cache)

    # ----------------------------------------------------------------
    # Видимость одной точки
    # ----------------------------------------------------------------

    def visible_set(self, waypoint: Waypoint) -> frozenset:
        """Индексы треугольников, видимых из точки маршрута."""
        key = waypoint.pose_key()
        with self._lock:
            mesh = self._mesh
            center = self._mesh_center
            generation = self._generation
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
                return cached
        if mesh is None or mesh.is_empty:
            return frozenset()

        pose = pose_for_waypoint(waypoint.position, waypoint.normal, center, self.camera)
        pyramid = pyramid_for_pose(
            pose,
            mesh,
            fallback=self.config.fallback_height,
            min_height=self.config.min_height,
            max_height=self.config.max_height,
        )
        visible = frozenset(
            visible_triangles(pyramid, mesh, pose.position, require_facing=self.config.require_facing)
        )
        with self._lock:
            # Меш сменился во время расчёта: результат не кэшируется.
            if self._generation != generation:
                return visible
            self._cache[key] = visible
            limit = self.config.cache_size
            while limit > 0 and len(self._cache) > limit:
                self._cache.popitem(last=False)
        return visible

    def _area(self, faces) -> float:
        return self._mesh.area_of(faces)

    def _percent(self, faces) -> float:
        total = self._mesh.total_area
        if total <= 0.0:
            return 0.0
        return _clamp_percent(self._area(faces) / total * 100.0)

    # ----------------------------------------------------------------
    # Покрытие
    # ----------------------------------------------------------------

    def covered_faces(self, path: Sequence[Waypoint]) -> set[int]:
        faces: set[int] = set()
        for waypoint in path:
            faces |= self.visible_set(waypoint)
        return faces

    def coverage(self, path: Sequence[Waypoint]) -> float:
        """Покрытие маршрута, проценты [0, 100]. Пустой маршрут даёт 0."""
        if not path or not self.has_mesh:
            return 0.0
        return self._percent(self.covered_faces(path))

    def cumulative_coverage(self, path: Sequence[Waypoint], waypoint_count: int) -> Optional[float]:
        """
        Покрытие первых waypoint_count точек (проигрывание маршрута).

        None, если меша нет.
        """
        if not self.has_mesh:
            return None
        if waypoint_count < 1:
            return 0.0
        return self.coverage(path[:waypoint_count])

    def coverage_by_waypoint_count(self, path: Sequence[Waypoint]) -> dict[int, float]:
        """
        Накопленное покрытие для каждого числа точек от 2 до len(path).

        Используется для предзагрузки значений при проигрывании.
        """
        result: dict[int, float] = {}
        if not self.has_mesh:
            return result
        faces: set[int] = set()
        for i, waypoint in enumerate(path):
            faces |= self.visible_set(waypoint)
            if i >= 1:
                result[i + 1] = self._percent(faces)
        return result

    def overlap(self, path: Sequence[Waypoint], index: int) -> Optional[float]:
        """
        Доля видимой площади точки index, уже покрытой точками [0..index-1].

        Returns:
            Число в [0, 1] или None (первая точка, нет меша, точка ничего не видит).
        """
        if index <= 0 or not self.has_mesh:
            return None
        if index >= len(path):
            raise PathInputError(f"waypoint index {index} out of range for path of {len(path)}")
        current = self.visible_set(path[index])
        current_area = self._area(current)
        if current_area <= 0.0:
            return None
        seen = self.covered_faces(path[:index])
        shared = self._area(current & seen)
        return max(0.0, min(1.0, shared / current_area))

    def path_metrics(self, path: Sequence[Waypoint]) -> Optional[CoverageMetrics]:
        """
        Покрытие и перекрытие маршрута.

        Перекрытие: площадь треугольников, видимых из двух и более точек.
        """
        if not self.has_mesh:
            return None
        if not path:
            return CoverageMetrics(0.0, 0.0, 0.0, 0.0)

        counts = np.zeros(self._mesh.triangle_count, dtype=np.int64)
        for waypoint in path:
            faces = self.visible_set(waypoint)
            if faces:
                counts[np.fromiter(faces, dtype=np.int64, count=len(faces))] += 1

        areas = self._mesh.areas
        covered_area = float(areas[counts >= 1].sum())
        overlap_area = float(areas[counts >= 2].sum())
        total = self._mesh.total_area
        return CoverageMetrics(
            coverage=_clamp_percent(covered_area / total * 100.0),
            overlap=_clamp_percent(overlap_area / total * 100.0),
            covered_area=covered_area,
            overlap_area=overlap_area,
        )

    def viewpoint_metrics(self, path: Sequence[Waypoint], index: int) -> Optional[ViewpointMetrics]:
        if not self.has_mesh:
            return None
        if index < 0 or index >= len(path):
            raise PathInputError(f"waypoint index {index} out of range for path of {len(path)}")
        current = self.visible_set(path[index])
        overlap_pct = None
        if index > 0:
            previous = self.visible_set(path[index - 1])
            overlap_pct = self._percent(current & previous)
        return ViewpointMetrics(coverage=self._percent(current), overlap_with_previous=overlap_pct)

    def playback_highlight(self, path: Sequence[Waypoint], index: int) -> tuple[set[int], set[int]]:
        """
        Треугольники для подсветки при проигрывании.

        Returns:
            (уже снятые точками [0..index-1], видимые из точки index)
        """
        if not self.has_mesh or not path:
            return set(), set()
        index = max(0, min(index, len(path) - 1))
        past = self.covered_faces(path[:index])
        current = set(self.visible_set(path[index]))
        log.debug(f"[Coverage] playback {index}: past={len(past)} current={len(current)}")
        return past, current
