"""
Тесты пересечения: луч–треугольник, треугольник–AABB, точка–тетраэдр,
отсечение многоугольника плоскостью.
"""

from __future__ import annotations

from typing import Optional, Tuple
import numpy as np

# Минимальный параметр луча, считающийся попаданием
RAY_T_EPSILON = 1e-6

_EPSILON = 1e-9

_BOX_AXES = np.eye(3)


def ray_triangle(
    origin: np.ndarray,
    direction: np.ndarray,
    v0: np.ndarray,
    v1: np.ndarray,
    v2: np.ndarray,
) -> Optional[float]:
    """
    Пересечение луча с треугольником (Möller–Trumbore).

    Returns:
        Параметр t > RAY_T_EPSILON вдоль direction или None.
    """
    t = ray_triangles(origin, direction, np.array([v0]), np.array([v1]), np.array([v2]))
    value = t[0]
    return None if np.isinf(value) else float(value)


def ray_triangles(
    origin: np.ndarray,
    direction: np.ndarray,
    v0: np.ndarray,
    v1: np.ndarray,
    v2: np.ndarray,
) -> np.ndarray:
    """
    Векторизованный Möller–Trumbore по массиву треугольников.

    Args:
        origin, direction: Луч, shape (3,).
        v0, v1, v2: Вершины треугольников, shape (M, 3).

    Returns:
        Массив t, shape (M,); inf там, где попадания нет.
    """
    origin = np.asarray(origin, dtype=np.float64)
    direction = np.asarray(direction, dtype=np.float64)

    e1 = v1 - v0
    e2 = v2 - v0
    p = np.cross(direction, e2)
    det = np.einsum("ij,ij->i", e1, p)

    result = np.full(len(v0), np.inf)
    valid = np.abs(det) > _EPSILON
    if not np.any(valid):
        return result

    inv_det = np.zeros_like(det)
    inv_det[valid] = 1.0 / det[valid]

    s = origin - v0
    u = np.einsum("ij,ij->i", s, p) * inv_det
    q = np.cross(s, e1)
    v = (q @ direction) * inv_det
    t = np.einsum("ij,ij->i", e2, q) * inv_det

    hit = valid & (u >= 0.0) & (u <= 1.0) & (v >= 0.0) & (u + v <= 1.0) & (t > RAY_T_EPSILON)
    result[hit] = t[hit]
    return result


def triangle_aabb(
    v0: np.ndarray,
    v1: np.ndarray,
    v2: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Вычислить AABB треугольника (или массивов треугольников).

    Returns:
        (min_corner, max_corner)
    """
    min_corner = np.minimum(np.minimum(v0, v1), v2)
    max_corner = np.maximum(np.maximum(v0, v1), v2)
    return min_corner, max_corner


def triangle_aabb_intersect(
    v0: np.ndarray,
    v1: np.ndarray,
    v2: np.ndarray,
    box_center: np.ndarray,
    box_half_size: np.ndarray,
    eps: float = 1e-6,
) -> bool:
    """
    Тест пересечения треугольника и AABB по теореме о разделяющей оси.

    Проверяются 13 осей: 3 оси бокса, нормаль треугольника
    и 9 произведений рёбер на оси бокса.
    """
    tri = np.array([v0, v1, v2], dtype=np.float64) - np.asarray(box_center, dtype=np.float64)
    half = np.asarray(box_half_size, dtype=np.float64)
    edges = np.array([tri[1] - tri[0], tri[2] - tri[1], tri[0] - tri[2]])

    axes = [_BOX_AXES[0], _BOX_AXES[1], _BOX_AXES[2], np.cross(edges[0], edges[1])]
    for edge in edges:
        for box_axis in _BOX_AXES:
            axes.append(np.cross(edge, box_axis))

    for axis in axes:
        if np.dot(axis, axis) < _EPSILON * _EPSILON:
            continue
        proj = tri @ axis
        r = float(np.dot(half, np.abs(axis)))
        if proj.min() > r + eps or proj.max() < -r - eps:
            return False
    return True


def point_in_tetrahedron(p: np.ndarray, a: np.ndarray, b: np.ndarray, c: np.ndarray, d: np.ndarray,
                         eps: float = _EPSILON) -> bool:
    """Барицентрический тест принадлежности точки тетраэдру abcd."""
    m = np.column_stack((b - a, c - a, d - a))
    det = np.linalg.det(m)
    if abs(det) < eps:
        return False
    l1, l2, l3 = np.linalg.solve(m, np.asarray(p, dtype=np.float64) - a)
    l0 = 1.0 - l1 - l2 - l3
    return l0 >= -eps and l1 >= -eps and l2 >= -eps and l3 >= -eps


def plane_from_points(a: np.ndarray, b: np.ndarray, c: np.ndarray, inside: np.ndarray):
    """
    Плоскость через три точки, ориентированная нормалью к точке inside.

    Returns:
        (normal, offset) такие, что dot(normal, x) + offset >= 0 для внутренних точек.
    """
    n = np.cross(b - a, c - a)
    nl = np.linalg.norm(n)
    if nl < _EPSILON:
        return None
    n = n / nl
    offset = -float(np.dot(n, a))
    if np.dot(n, inside) + offset < 0.0:
        n = -n
        offset = -offset
    return n, offset


def clip_polygon(polygon: np.ndarray, normal: np.ndarray, offset: float) -> np.ndarray:
    """
    Отсечение выпуклого многоугольника полупространством dot(n, x) + offset >= 0
    (Sutherland–Hodgman).
    """
    if len(polygon) == 0:
        return polygon
    dist = polygon @ normal + offset
    out = []
    count = len(polygon)
    for i in range(count):
        cur, nxt = polygon[i], polygon[(i + 1) % count]
        dc, dn = dist[i], dist[(i + 1) % count]
        if dc >= 0.0:
            out.append(cur)
        if (dc >= 0.0) != (dn >= 0.0):
            t = dc / (dc - dn)
            out.append(cur + (nxt - cur) * t)
    if not out:
        return np.zeros((0, 3))
    return np.array(out)


def polygon_area(polygon: np.ndarray) -> float:
    """Площадь плоского выпуклого многоугольника (веер треугольников)."""
    if len(polygon) < 3:
        return 0.0
    a = polygon[0]
    cross = np.cross(polygon[1:-1] - a, polygon[2:] - a)
    return 0.5 * float(np.linalg.norm(cross.sum(axis=0)))
