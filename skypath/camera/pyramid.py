"""
Пирамида видимости камеры и её динамическая высота.

Пирамида: вершина в позиции камеры, прямоугольное основание на расстоянии h
вдоль направления взгляда. Высота h равна расстоянию до первой поверхности
меша по лучу взгляда.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional
import numpy as np

from skypath.camera.pose import CameraPose, camera_up
from skypath.geometry.aabb import AABB
from skypath.geometry.intersection import plane_from_points, point_in_tetrahedron, ray_triangles
from skypath.geometry.vec3 import normalize

MIN_PYRAMID_HEIGHT = 0.1
FALLBACK_HEIGHT = 1000.0


@dataclass
class Pyramid:
    """
    Attributes:
        apex: Позиция камеры, shape (3,).
        corners: Углы основания (4, 3) в порядке обхода:
            левый-нижний, правый-нижний, правый-верхний, левый-верхний.
        direction: Единичное направление взгляда.
        height: Расстояние от вершины до основания.
    """

    apex: np.ndarray
    corners: np.ndarray
    direction: np.ndarray
    height: float

    @property
    def base_center(self) -> np.ndarray:
        return self.apex + self.direction * self.height

    @property
    def interior_point(self) -> np.ndarray:
        """Точка строго внутри пирамиды."""
        return (self.apex + self.base_center) * 0.5

    def planes(self) -> list[tuple[np.ndarray, float]]:
        """
        Пять ограничивающих плоскостей (4 боковые и основание).

        Каждая задана как (n, d): dot(n, x) + d >= 0 внутри.
        """
        inside = self.interior_point
        result = []
        for i in range(4):
            plane = plane_from_points(self.apex, self.corners[i], self.corners[(i + 1) % 4], inside)
            if plane is not None:
                result.append(plane)
        base = plane_from_points(self.corners[0], self.corners[1], self.corners[2], inside)
        if base is not None:
            result.append(base)
        return result

    def plane_arrays(self) -> tuple[np.ndarray, np.ndarray]:
        """Плоскости в виде массивов: нормали (K, 3) и смещения (K,)."""
        planes = self.planes()
        normals = np.array([p[0] for p in planes]).reshape(-1, 3)
        offsets = np.array([p[1] for p in planes], dtype=np.float64)
        return normals, offsets

    def contains(self, point: np.ndarray, eps: float = 1e-9) -> bool:
        """Точка внутри пирамиды: разбиение на два тетраэдра."""
        p = np.asarray(point, dtype=np.float64)
        c = self.corners
        return (
            point_in_tetrahedron(p, self.apex, c[0], c[1], c[2], eps)
            or point_in_tetrahedron(p, self.apex, c[0], c[2], c[3], eps)
        )

    def bounds(self) -> AABB:
        return AABB.from_points(np.vstack([self.apex[None, :], self.corners]))


def build_pyramid(
    position,
    direction,
    up=None,
    fov: float = 53.1,
    aspect: float = 16.0 / 9.0,
    height: float = FALLBACK_HEIGHT,
) -> Pyramid:
    """
    Построить пирамиду видимости.

    Args:
        position: Вершина (позиция камеры).
        direction: Направление взгляда (нормализуется).
        up: Опорный up; None — выбрать автоматически.
        fov: Вертикальный угол обзора, градусы.
        aspect: Ширина / высота.
        height: Высота пирамиды, не меньше MIN_PYRAMID_HEIGHT.
    """
    p = np.asarray(position, dtype=np.float64)
    d = normalize(np.asarray(direction, dtype=np.float64), fallback=np.array([0.0, -1.0, 0.0]))
    if up is None:
        up = camera_up(d)
    right = normalize(np.cross(d, np.asarray(up, dtype=np.float64)))
    if np.linalg.norm(right) < 0.5:
        up = camera_up(d)
        right = normalize(np.cross(d, up))
    true_up = normalize(np.cross(right, d))

    h = max(float(height), MIN_PYRAMID_HEIGHT)
    half_h = h * math.tan(math.radians(fov) / 2.0)
    half_w = half_h * aspect
    center = p + d * h

    corners = np.array([
        center - right * half_w - true_up * half_h,
        center + right * half_w - true_up * half_h,
        center + right * half_w + true_up * half_h,
        center - right * half_w + true_up * half_h,
    ])
    return Pyramid(apex=p, corners=corners, direction=d, height=h)


def dynamic_height(
    position,
    direction,
    mesh,
    fallback: float = FALLBACK_HEIGHT,
    min_height: float = MIN_PYRAMID_HEIGHT,
    max_height: float = FALLBACK_HEIGHT,
) -> float:
    """
    Расстояние от камеры до ближайшего треугольника меша по лучу взгляда.

    Промах (или пустой меш) даёт fallback. Результат ограничен
    диапазоном [min_height, max_height].
    """
    h = fallback
    if mesh is not None and mesh.triangle_count > 0:
        origin = np.asarray(position, dtype=np.float64)
        d = normalize(np.asarray(direction, dtype=np.float64))
        bounds = mesh.bounds()
        if bounds is not None and bounds.ray_hits(origin, d):
            v0, v1, v2 = mesh.corners()
            t = ray_triangles(origin, d, v0, v1, v2)
            nearest = float(t.min()) if len(t) else math.inf
            if math.isfinite(nearest):
                h = nearest
    return min(max(h, min_height), max_height)


def pyramid_for_pose(
    pose: CameraPose,
    mesh=None,
    fallback: float = FALLBACK_HEIGHT,
    min_height: float = MIN_PYRAMID_HEIGHT,
    max_height: float = FALLBACK_HEIGHT,
) -> Pyramid:
    """Пирамида для позы с высотой до первой поверхности меша."""
    h = dynamic_height(pose.position, pose.direction, mesh, fallback, min_height, max_height)
    return build_pyramid(pose.position, pose.direction, pose.up, pose.fov, pose.aspect, h)
