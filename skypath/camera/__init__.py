"""Камера дрона: поза, пирамида видимости, frustum."""

from skypath.camera.pose import (
    CameraPose,
    resolve_direction,
    camera_up,
    pose_for_waypoint,
    vfov_to_hfov,
    camera_angles,
)
from skypath.camera.pyramid import (
    Pyramid,
    build_pyramid,
    dynamic_height,
    pyramid_for_pose,
    MIN_PYRAMID_HEIGHT,
    FALLBACK_HEIGHT,
)
from skypath.camera.frustum import FrustumCorners, frustum_corners

__all__ = [
    "CameraPose",
    "resolve_direction",
    "camera_up",
    "pose_for_waypoint",
    "vfov_to_hfov",
    "camera_angles",
    "Pyramid",
    "build_pyramid",
    "dynamic_height",
    "pyramid_for_pose",
    "MIN_PYRAMID_HEIGHT",
    "FALLBACK_HEIGHT",
    "FrustumCorners",
    "frustum_corners",
]
