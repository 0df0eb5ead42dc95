"""Геометрическое ядро: векторы, AABB, тесты пересечения."""

from skypath.geometry.vec3 import vec3, length, distance, normalize, normalize_rows, EPSILON
from skypath.geometry.aabb import AABB
from skypath.geometry.intersection import (
    RAY_T_EPSILON,
    ray_triangle,
    ray_triangles,
    triangle_aabb,
    triangle_aabb_intersect,
    point_in_tetrahedron,
    plane_from_points,
    clip_polygon,
    polygon_area,
)

__all__ = [
    "vec3",
    "length",
    "distance",
    "normalize",
    "normalize_rows",
    "EPSILON",
    "AABB",
    "RAY_T_EPSILON",
    "ray_triangle",
    "ray_triangles",
    "triangle_aabb",
    "triangle_aabb_intersect",
    "point_in_tetrahedron",
    "plane_from_points",
    "clip_polygon",
    "polygon_area",
]
