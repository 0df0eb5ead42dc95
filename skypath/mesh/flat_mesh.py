"""Triangle mesh of the inspected structure, built from the flat wire form."""

from __future__ import annotations

from typing import Optional, Sequence
import numpy as np

from skypath.errors import MeshInputError
from skypath.geometry.aabb import AABB
from skypath.geometry.vec3 import normalize_rows

# Треугольники с площадью меньше этой считаются вырожденными
DEGENERATE_AREA = 1e-12


class FlatMesh:
    """
    Indexed triangle mesh.

    Per-triangle area, centroid and unit normal are computed once on
    construction; degenerate triangles get zero area and a zero normal
    and are never reported as visible.

    Attributes:
        vertices: (N, 3) float64.
        triangles: (M, 3) int64, indices into vertices.
    """

    def __init__(self, vertices: np.ndarray, triangles: np.ndarray):
        self.vertices = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
        self.triangles = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
        self._validate_mesh()
        self._compute_derived()

    @staticmethod
    def from_flat(vertices: Sequence[float], indices: Optional[Sequence[int]] = None) -> "FlatMesh":
        """
        Построить меш из плоских массивов.

        Args:
            vertices: [x0, y0, z0, x1, y1, z1, ...], длина кратна 3.
            indices: [i0, i1, i2, ...], длина кратна 3. Если не заданы,
                каждые три подряд идущие вершины образуют треугольник.

        Raises:
            MeshInputError: если длины не кратны трём или индекс вне диапазона.
        """
        verts = np.asarray(vertices if vertices is not None else [], dtype=np.float64).ravel()
        if verts.size % 3 != 0:
            raise MeshInputError(f"vertex array length {verts.size} is not a multiple of 3")
        vertex_count = verts.size // 3

        if indices is None or len(indices) == 0:
            if vertex_count % 3 != 0:
                raise MeshInputError(
                    f"non-indexed mesh needs a multiple of 3 vertices, got {vertex_count}"
                )
            idx = np.arange(vertex_count, dtype=np.int64)
        else:
            raw = np.asarray(indices)
            if raw.size % 3 != 0:
                raise MeshInputError(f"index array length {raw.size} is not a multiple of 3")
            if raw.size and not np.all(np.equal(np.mod(raw, 1), 0)):
                raise MeshInputError("index array contains non-integer values")
            idx = raw.astype(np.int64).ravel()

        return FlatMesh(verts.reshape(-1, 3), idx.reshape(-1, 3))

    def _validate_mesh(self):
        if self.vertices.ndim != 2 or self.vertices.shape[1] != 3:
            raise MeshInputError("vertices must be a Nx3 array")
        if self.triangles.ndim != 2 or self.triangles.shape[1] != 3:
            raise MeshInputError("triangles must be a Mx3 array")
        if not np.all(np.isfinite(self.vertices)):
            raise MeshInputError("vertices contain non-finite values")
        if self.triangles.size:
            lo = int(self.triangles.min())
            hi = int(self.triangles.max())
            if lo < 0 or hi >= len(self.vertices):
                raise MeshInputError(
                    f"triangle index out of range [0, {len(self.vertices)}): min={lo}, max={hi}"
                )

    def _compute_derived(self):
        a, b, c = self.corners()
        cross = np.cross(b - a, c - a)
        self.areas = 0.5 * np.linalg.norm(cross, axis=1)
        self.centroids = (a + b + c) / 3.0
        self.normals = normalize_rows(cross)
        degenerate = self.areas < DEGENERATE_AREA
        self.areas[degenerate] = 0.0
        self.normals[degenerate] = 0.0
        self.total_area = float(self.areas.sum())

    def corners(self):
        """Вершины треугольников тремя массивами (M, 3)."""
        tri = self.vertices[self.triangles]
        return tri[:, 0], tri[:, 1], tri[:, 2]

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def is_empty(self) -> bool:
        return self.triangle_count == 0 or self.total_area <= 0.0

    @property
    def center(self) -> np.ndarray:
        """Среднее вершин. Цель направления камеры по умолчанию."""
        if self.vertex_count == 0:
            return np.zeros(3)
        return self.vertices.mean(axis=0)

    def bounds(self) -> Optional[AABB]:
        if self.vertex_count == 0:
            return None
        return AABB.from_points(self.vertices)

    def area_of(self, triangle_ids) -> float:
        """Суммарная площадь набора треугольников."""
        if not triangle_ids:
            return 0.0
        ids = np.fromiter(triangle_ids, dtype=np.int64, count=len(triangle_ids))
        return float(self.areas[ids].sum())

    def to_flat(self) -> dict:
        return {
            "vertices": self.vertices.ravel().tolist(),
            "indices": self.triangles.ravel().tolist(),
        }

    def __repr__(self):
        return f"FlatMesh(vertices={self.vertex_count}, triangles={self.triangle_count})"
