"""Коллизии: эвристика по AABB, перекрытие frustum, сетка занятости."""

from skypath.collision.voxel_grid import OccupancyGrid, DEFAULT_RESOLUTION
from skypath.collision.box_check import point_in_box, segment_intersects_box, building_occlusion
from skypath.collision.frustum_overlap import (
    FrustumCollision,
    CollisionStats,
    detect_frustum_collision,
    detect_occlusions,
    collision_stats,
)
from skypath.collision.detector import (
    CollisionPoint,
    PathCollisions,
    CollisionDetector,
    collision_severity,
    min_distance_to_obstacle,
)

__all__ = [
    "OccupancyGrid",
    "DEFAULT_RESOLUTION",
    "point_in_box",
    "segment_intersects_box",
    "building_occlusion",
    "FrustumCollision",
    "CollisionStats",
    "detect_frustum_collision",
    "detect_occlusions",
    "collision_stats",
    "CollisionPoint",
    "PathCollisions",
    "CollisionDetector",
    "collision_severity",
    "min_distance_to_obstacle",
]
