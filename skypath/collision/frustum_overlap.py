"""Перекрытие видов двух камер по ограничивающим боксам их frustum."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from skypath.camera.frustum import FrustumCorners
from skypath.geometry.aabb import AABB

# Порог «критического» перекрытия для статистики
CRITICAL_OBSTRUCTION = 0.6


@dataclass(frozen=True)
class FrustumCollision:
    has_collision: bool
    collision_type: str
    """"partial" при пересечении боксов, иначе "none"."""

    intersection_volume: float
    obstruction_percentage: float
    """Доля в [0, 1]."""


@dataclass(frozen=True)
class CollisionStats:
    total_collisions: int
    average_obstruction: float
    critical_collisions: int


_NO_COLLISION = FrustumCollision(False, "none", 0.0, 0.0)


def _volume_proxy(box: AABB) -> float:
    # Сумма размеров бокса вместо объёма.
    proxy = float(np.sum(np.maximum(box.size, 0.0)))
    return proxy if proxy > 0.0 else 1.0


def intersection_volume(box1: AABB, box2: AABB) -> float:
    overlap = box1.intersection(box2)
    return 0.0 if overlap is None else overlap.volume()


def detect_frustum_collision(frustum1: FrustumCorners, frustum2: FrustumCorners) -> FrustumCollision:
    box1 = frustum1.bounds()
    box2 = frustum2.bounds()
    if not box1.intersects(box2):
        return _NO_COLLISION
    volume = intersection_volume(box1, box2)
    obstruction = min(1.0, volume / max(_volume_proxy(box1), _volume_proxy(box2)))
    return FrustumCollision(True, "partial", volume, obstruction)


def detect_occlusions(frustums: Sequence[FrustumCorners]) -> list[FrustumCollision]:
    """Попарная проверка всех камер (i < j)."""
    results = []
    for i in range(len(frustums)):
        for j in range(i + 1, len(frustums)):
            results.append(detect_frustum_collision(frustums[i], frustums[j]))
    return results


def collision_stats(results: Sequence[FrustumCollision]) -> CollisionStats:
    if not results:
        return CollisionStats(0, 0.0, 0)
    total = sum(1 for r in results if r.has_collision)
    average = sum(r.obstruction_percentage for r in results) / len(results)
    critical = sum(1 for r in results if r.obstruction_percentage > CRITICAL_OBSTRUCTION)
    return CollisionStats(total, average, critical)
