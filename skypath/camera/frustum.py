"""Усечённая пирамида (frustum) камеры между ближней и дальней плоскостями."""

from __future__ import annotations

from dataclasses import dataclass
import math
import numpy as np

from skypath.camera.pose import CameraPose
from skypath.geometry.aabb import AABB


@dataclass
class FrustumCorners:
    """Углы ближней и дальней плоскостей, каждый массив (4, 3)."""

    near: np.ndarray
    far: np.ndarray

    def points(self) -> np.ndarray:
        return np.vstack([self.near, self.far])

    def bounds(self) -> AABB:
        return AABB.from_points(self.points())


def _plane_corners(center, right, up, half_w, half_h) -> np.ndarray:
    return np.array([
        center - right * half_w - up * half_h,
        center + right * half_w - up * half_h,
        center + right * half_w + up * half_h,
        center - right * half_w + up * half_h,
    ])


def frustum_corners(pose: CameraPose) -> FrustumCorners:
    tan_half = math.tan(math.radians(pose.fov) / 2.0)
    right = pose.right
    near_half_h = pose.near * tan_half
    far_half_h = pose.far * tan_half
    return FrustumCorners(
        near=_plane_corners(pose.position + pose.direction * pose.near, right, pose.up,
                            near_half_h * pose.aspect, near_half_h),
        far=_plane_corners(pose.position + pose.direction * pose.far, right, pose.up,
                           far_half_h * pose.aspect, far_half_h),
    )
