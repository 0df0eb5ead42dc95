"""
Видимость треугольников из пирамиды камеры.

Треугольник видим, если его центроид внутри пирамиды и (по желанию)
треугольник повёрнут лицевой стороной к камере. Треугольники, пересекающие
границу пирамиды, классифицируются по центроиду; ошибка ограничена
размером треугольника.
"""

from __future__ import annotations

import numpy as np

from skypath.camera.pyramid import Pyramid
from skypath.geometry.intersection import clip_polygon, polygon_area
from skypath.mesh.flat_mesh import FlatMesh

# Допуск на границе пирамиды относительно её высоты
_PLANE_TOLERANCE = 1e-6

# Доля площади, которую должен сохранить треугольник после отсечения
STRADDLE_AREA_FRACTION = 0.5


def visible_triangles(
    pyramid: Pyramid,
    mesh: FlatMesh,
    camera_position=None,
    require_facing: bool = True,
    clip_straddling: bool = False,
) -> set[int]:
    """
    Индексы треугольников меша, видимых из пирамиды.

    Args:
        pyramid: Пирамида видимости.
        mesh: Меш.
        camera_position: Точка, к которой должны быть обращены треугольники.
            По умолчанию вершина пирамиды.
        require_facing: Отбрасывать треугольники, повёрнутые от камеры.
        clip_straddling: Дополнительно учитывать треугольники, центроид
            которых снаружи, но большая часть площади внутри.
    """
    if mesh is None or mesh.triangle_count == 0:
        return set()

    apex = pyramid.apex if camera_position is None else np.asarray(camera_position, dtype=np.float64)
    tol = _PLANE_TOLERANCE * max(1.0, pyramid.height)

    candidates = _prefilter(pyramid, mesh, tol)
    if len(candidates) == 0:
        return set()

    if require_facing:
        to_camera = apex - mesh.centroids[candidates]
        facing = np.einsum("ij,ij->i", mesh.normals[candidates], to_camera) > 0.0
        candidates = candidates[facing]
        if len(candidates) == 0:
            return set()

    normals, offsets = pyramid.plane_arrays()
    signed = mesh.centroids[candidates] @ normals.T + offsets
    inside = np.all(signed >= -tol, axis=1)
    result = set(candidates[inside].tolist())

    if clip_straddling:
        for tri in candidates[~inside]:
            if _clipped_fraction(pyramid, mesh, int(tri), normals, offsets) >= STRADDLE_AREA_FRACTION:
                result.add(int(tri))

    return result


def _prefilter(pyramid: Pyramid, mesh: FlatMesh, tol: float) -> np.ndarray:
    """Треугольники с ненулевой площадью, чей AABB пересекает AABB пирамиды."""
    box = pyramid.bounds()
    a, b, c = mesh.corners()
    lo = np.minimum(np.minimum(a, b), c)
    hi = np.maximum(np.maximum(a, b), c)
    overlap = np.all(lo <= box.max_point + tol, axis=1) & np.all(hi >= box.min_point - tol, axis=1)
    overlap &= mesh.areas > 0.0
    return np.nonzero(overlap)[0]


def _clipped_fraction(pyramid, mesh, tri, normals, offsets) -> float:
    polygon = mesh.vertices[mesh.triangles[tri]]
    for n, d in zip(normals, offsets):
        polygon = clip_polygon(polygon, n, d)
        if len(polygon) < 3:
            return 0.0
    area = mesh.areas[tri]
    if area <= 0.0:
        return 0.0
    return polygon_area(polygon) / area
