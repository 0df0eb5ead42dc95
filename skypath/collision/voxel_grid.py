"""
OccupancyGrid — плотная сетка занятости над AABB меша.

Вокселизация консервативная: занятым помечается каждый воксель,
пересекающийся с AABB треугольника. Отрезки проверяются обходом
вокселей по лучу (Amanatides–Woo), стоимость не зависит от числа
треугольников.
"""

from __future__ import annotations

from typing import Optional
import numpy as np

from skypath.geometry.aabb import AABB
from skypath.geometry.intersection import triangle_aabb, triangle_aabb_intersect
from skypath.mesh.flat_mesh import FlatMesh

DEFAULT_RESOLUTION = 64

# Плоские оси меша расширяются до этой толщины
FLAT_AXIS_PADDING = 1.0


class OccupancyGrid:
    """
    Attributes:
        bounds: Мировой бокс сетки.
        resolution: Число вокселей по каждой оси.
        cell_size: Размер вокселя по осям, shape (3,).
        occupied: bool-массив (resolution, resolution, resolution).
    """

    def __init__(self, bounds: AABB, resolution: int = DEFAULT_RESOLUTION):
        if resolution < 1:
            raise ValueError("resolution must be positive")
        self.bounds = bounds.padded(FLAT_AXIS_PADDING)
        self.resolution = int(resolution)
        self.cell_size = self.bounds.size / self.resolution
        self.occupied = np.zeros((self.resolution,) * 3, dtype=bool)

    @classmethod
    def from_mesh(cls, mesh: FlatMesh, resolution: int = DEFAULT_RESOLUTION, exact: bool = False) -> Optional["OccupancyGrid"]:
        """
        Вокселизовать меш.

        Args:
            exact: Уточнять кандидатов SAT-тестом треугольник–воксель
                вместо пометки всего AABB треугольника.

        Returns:
            Сетку или None для меша без вершин.
        """
        bounds = mesh.bounds() if mesh is not None else None
        if bounds is None:
            return None
        grid = cls(bounds, resolution)
        grid.rasterize(mesh, exact=exact)
        return grid

    def rasterize(self, mesh: FlatMesh, exact: bool = False) -> None:
        a, b, c = mesh.corners()
        lo, hi = triangle_aabb(a, b, c)
        lo_cells = self._cells_of(lo)
        hi_cells = self._cells_of(hi)
        for tri in range(mesh.triangle_count):
            x0, y0, z0 = lo_cells[tri]
            x1, y1, z1 = hi_cells[tri]
            if not exact:
                self.occupied[x0:x1 + 1, y0:y1 + 1, z0:z1 + 1] = True
                continue
            half = self.cell_size * 0.5
            for ix in range(x0, x1 + 1):
                for iy in range(y0, y1 + 1):
                    for iz in range(z0, z1 + 1):
                        if self.occupied[ix, iy, iz]:
                            continue
                        center = self.cell_center((ix, iy, iz))
                        if triangle_aabb_intersect(a[tri], b[tri], c[tri], center, half):
                            self.occupied[ix, iy, iz] = True

    @property
    def occupied_count(self) -> int:
        return int(np.count_nonzero(self.occupied))

    # ----------------------------------------------------------------
    # Координатные преобразования
    # ----------------------------------------------------------------

    def _cells_of(self, points: np.ndarray) -> np.ndarray:
        """Индексы вокселей для массива точек (N, 3), прижатые к сетке."""
        local = (points - self.bounds.min_point) / self.cell_size
        return np.clip(np.floor(local).astype(np.int64), 0, self.resolution - 1)

    def world_to_cell(self, point) -> Optional[tuple[int, int, int]]:
        """Индексы вокселя, содержащего точку, или None вне сетки."""
        p = np.asarray(point, dtype=np.float64)
        if not self.bounds.contains(p):
            return None
        ix, iy, iz = self._cells_of(p[None, :])[0]
        return int(ix), int(iy), int(iz)

    def cell_center(self, cell) -> np.ndarray:
        return self.bounds.min_point + (np.asarray(cell, dtype=np.float64) + 0.5) * self.cell_size

    # ----------------------------------------------------------------
    # Запросы
    # ----------------------------------------------------------------

    def is_occupied(self, point) -> bool:
        cell = self.world_to_cell(point)
        return cell is not None and bool(self.occupied[cell])

    def segment_collides(self, a, b) -> bool:
        """
        Проходит ли отрезок a→b через занятый воксель.

        Отрезок сначала обрезается боксом сетки; часть вне сетки
        коллизий не даёт.
        """
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        clipped = self.bounds.clip_segment(a, b)
        if clipped is None:
            return False
        t0, t1 = clipped
        d = b - a
        start = a + d * t0
        end = a + d * t1
        return self._traverse(start, end)

    def _traverse(self, start: np.ndarray, end: np.ndarray) -> bool:
        """Amanatides–Woo: обход вокселей от start до end (обе точки в сетке)."""
        cell = self._cells_of(start[None, :])[0].copy()
        last = self._cells_of(end[None, :])[0]
        d = end - start

        step = np.zeros(3, dtype=np.int64)
        t_max = np.full(3, np.inf)
        t_delta = np.full(3, np.inf)
        for axis in range(3):
            if d[axis] > 0.0:
                step[axis] = 1
                boundary = self.bounds.min_point[axis] + (cell[axis] + 1) * self.cell_size[axis]
                t_max[axis] = (boundary - start[axis]) / d[axis]
                t_delta[axis] = self.cell_size[axis] / d[axis]
            elif d[axis] < 0.0:
                step[axis] = -1
                boundary = self.bounds.min_point[axis] + cell[axis] * self.cell_size[axis]
                t_max[axis] = (boundary - start[axis]) / d[axis]
                t_delta[axis] = -self.cell_size[axis] / d[axis]

        r = self.resolution
        for _ in range(3 * r + 3):
            if self.occupied[cell[0], cell[1], cell[2]]:
                return True
            if np.array_equal(cell, last):
                return False
            axis = int(np.argmin(t_max))
            if t_max[axis] > 1.0:
                return False
            cell[axis] += step[axis]
            if cell[axis] < 0 or cell[axis] >= r:
                return False
            t_max[axis] += t_delta[axis]
        return False
