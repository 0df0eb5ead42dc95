"""
Поза камеры дрона в точке маршрута.

Направление взгляда берётся из нормали точки; если нормаль нулевая,
камера смотрит в центр меша; если и это невозможно, вниз.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional
import numpy as np

from skypath.config import CameraConfig
from skypath.geometry.vec3 import normalize

# Нормаль короче этого считается незаданной
NORMAL_EPSILON = 1e-6

# |d·worldUp| выше порога: камера смотрит почти вертикально
VERTICAL_THRESHOLD = 0.98

WORLD_UP = np.array([0.0, 1.0, 0.0])
WORLD_FORWARD = np.array([0.0, 0.0, 1.0])


@dataclass
class CameraPose:
    """Камера: позиция, единичные направление и up, параметры проекции."""

    position: np.ndarray
    direction: np.ndarray
    up: np.ndarray
    fov: float = 53.1
    aspect: float = 16.0 / 9.0
    near: float = 0.1
    far: float = 1000.0

    @property
    def right(self) -> np.ndarray:
        return normalize(np.cross(self.direction, self.up))

    @property
    def hfov(self) -> float:
        return vfov_to_hfov(self.fov, self.aspect)


def resolve_direction(
    normal,
    position: np.ndarray,
    mesh_center: Optional[np.ndarray] = None,
    default=(0.0, -1.0, 0.0),
) -> np.ndarray:
    """Единичное направление взгляда: нормаль → центр меша → default."""
    n = np.asarray(normal if normal is not None else (0.0, 0.0, 0.0), dtype=np.float64)
    if np.linalg.norm(n) > NORMAL_EPSILON:
        return normalize(n)
    fallback = normalize(np.asarray(default, dtype=np.float64))
    if mesh_center is not None:
        return normalize(np.asarray(mesh_center, dtype=np.float64) - position, fallback=fallback)
    return fallback


def camera_up(direction: np.ndarray) -> np.ndarray:
    """
    Вектор up, перпендикулярный direction.

    При взгляде почти вертикально опорным up становится +Z вместо +Y,
    иначе векторное произведение вырождается.
    """
    world_up = WORLD_UP
    if abs(float(np.dot(direction, world_up))) > VERTICAL_THRESHOLD:
        world_up = WORLD_FORWARD
    right = normalize(np.cross(direction, world_up))
    return normalize(np.cross(right, direction))


def pose_for_waypoint(
    position,
    normal,
    mesh_center: Optional[np.ndarray] = None,
    config: Optional[CameraConfig] = None,
) -> CameraPose:
    config = config or CameraConfig()
    p = np.asarray(position, dtype=np.float64)
    d = resolve_direction(normal, p, mesh_center, config.default_direction)
    return CameraPose(
        position=p,
        direction=d,
        up=camera_up(d),
        fov=config.fov,
        aspect=config.aspect,
        near=config.near,
        far=config.far,
    )


def vfov_to_hfov(vfov: float, aspect: float) -> float:
    """Горизонтальный угол обзора (градусы) по вертикальному и соотношению сторон."""
    half = math.radians(vfov) / 2.0
    return math.degrees(2.0 * math.atan(math.tan(half) * aspect))


def camera_angles(normal) -> tuple[float, float, float]:
    """
    Углы камеры по направлению взгляда, градусы.

    Returns:
        (pitch, yaw, roll): pitch положителен при взгляде вниз,
        yaw в [0, 360) от оси +Z к +X, roll всегда 0.
    """
    n = normalize(np.asarray(normal, dtype=np.float64), fallback=np.array([0.0, -1.0, 0.0]))
    pitch = math.degrees(math.asin(max(-1.0, min(1.0, -float(n[1])))))
    yaw = math.degrees(math.atan2(float(n[0]), float(n[2])))
    if yaw < 0.0:
        yaw += 360.0
    return pitch, yaw, 0.0
