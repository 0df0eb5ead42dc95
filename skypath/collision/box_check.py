"""
Быстрая эвристика коллизий по общему AABB меша.

Это приближение: отрезок, задевающий бокс у угла, может быть пропущен.
Используется только как дешёвый предварительный фильтр; точная
проверка делается по сетке занятости (OccupancyGrid).
"""

from __future__ import annotations

import numpy as np

from skypath.geometry.aabb import AABB
from skypath.geometry.vec3 import normalize

# Квадрат расстояния от угла бокса до прямой отрезка, при котором угол считается задетым
CORNER_DISTANCE_SQ = 0.01


def point_in_box(point, box: AABB) -> bool:
    return box.contains(point)


def _ray_exit_point(origin: np.ndarray, direction: np.ndarray, box: AABB):
    """Точка выхода луча, выпущенного изнутри бокса."""
    t_exit = np.inf
    for axis in range(3):
        if abs(direction[axis]) < 1e-12:
            continue
        bound = box.max_point[axis] if direction[axis] > 0 else box.min_point[axis]
        t_exit = min(t_exit, (bound - origin[axis]) / direction[axis])
    if not np.isfinite(t_exit) or t_exit < 0.0:
        return None
    return origin + direction * t_exit


def segment_intersects_box(a, b, box: AABB) -> bool:
    """
    Эвристический тест отрезок–бокс.

    1. Любой конец внутри бокса.
    2. Лучи из центра бокса к концам: точка выхода ближе к концу,
       чем длина отрезка.
    3. Угол бокса лежит почти на отрезке.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if box.contains(a) or box.contains(b):
        return True

    center = box.center
    seg_len = float(np.linalg.norm(b - a))

    for end in (a, b):
        direction = normalize(end - center)
        if np.linalg.norm(direction) < 0.5:
            continue
        hit = _ray_exit_point(center, direction, box)
        if hit is not None and float(np.linalg.norm(hit - end)) <= seg_len:
            return True

    if seg_len < 1e-12:
        return False
    direction = (b - a) / seg_len
    for corner in box.corners():
        along = float(np.dot(corner - a, direction))
        closest = a + direction * max(0.0, along)
        dist_sq = float(np.dot(corner - closest, corner - closest))
        if dist_sq < CORNER_DISTANCE_SQ and 0.0 <= along <= seg_len:
            return True
    return False


def building_occlusion(camera_position, boxes) -> tuple[int, float]:
    """
    Сколько боксов зданий перекрывают линию взгляда на собственный центр.

    Returns:
        (число перекрывающих боксов, суммарный фактор перекрытия);
        фактор каждого бокса 200 / (расстояние + 1), ограничен [0.1, 1].
    """
    position = np.asarray(camera_position, dtype=np.float64)
    occluded = 0
    factor = 0.0
    for box in boxes:
        target = box.center
        if segment_intersects_box(position, target, box):
            occluded += 1
            dist = float(np.linalg.norm(target - position))
            factor += max(0.1, min(1.0, 200.0 / (dist + 1.0)))
    return occluded, factor
