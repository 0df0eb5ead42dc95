"""
Длина маршрута, время полёта и энергопотребление.

Энергия участка: длина × power_per_meter + |Δy| × climb_power_factor
(ось Y направлена вверх).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from skypath.config import EnergyConfig
from skypath.errors import PathInputError
from skypath.waypoint import Waypoint


def _positions(path: Sequence[Waypoint]) -> np.ndarray:
    if len(path) == 0:
        return np.zeros((0, 3))
    return np.array([(w.x, w.y, w.z) for w in path], dtype=np.float64)


def segment_lengths(path: Sequence[Waypoint]) -> np.ndarray:
    pts = _positions(path)
    if len(pts) < 2:
        return np.zeros(0)
    return np.linalg.norm(np.diff(pts, axis=0), axis=1)


def path_length(path: Sequence[Waypoint]) -> float:
    """Сумма длин участков."""
    return float(segment_lengths(path).sum())


def flight_time(length: float, config: Optional[EnergyConfig] = None) -> float:
    """Время полёта, секунды."""
    config = config or EnergyConfig()
    return length / config.speed


def segment_energies(path: Sequence[Waypoint], config: Optional[EnergyConfig] = None) -> np.ndarray:
    config = config or EnergyConfig()
    pts = _positions(path)
    if len(pts) < 2:
        return np.zeros(0)
    delta = np.diff(pts, axis=0)
    dist = np.linalg.norm(delta, axis=1)
    return dist * config.power_per_meter + np.abs(delta[:, 1]) * config.climb_power_factor


def path_energy(path: Sequence[Waypoint], config: Optional[EnergyConfig] = None) -> float:
    """Энергия на весь маршрут, Вт·ч."""
    return float(segment_energies(path, config).sum())


def cumulative_time(path: Sequence[Waypoint], index: int, config: Optional[EnergyConfig] = None) -> float:
    """Время полёта от начала до точки index, секунды."""
    lengths = segment_lengths(path)
    return flight_time(float(lengths[:max(0, index)].sum()), config)


def remaining_battery(path: Sequence[Waypoint], index: int, config: Optional[EnergyConfig] = None) -> float:
    """
    Остаток текущей батареи в точке index, проценты.

    Батареи меняются по мере разряда: 120.5% расхода означают, что
    вторая батарея израсходована на 20.5%, остаток 79.5%.
    """
    config = config or EnergyConfig()
    if index < 0:
        return 100.0
    used = float(segment_energies(path, config)[:index].sum())
    if used <= 0.0:
        return 100.0
    percent = used / config.battery_capacity * 100.0
    current = percent % 100.0
    if current == 0.0:
        return 0.0
    return max(0.0, min(100.0, round(100.0 - current, 1)))


@dataclass(frozen=True)
class WaypointDetail:
    name: str
    position: tuple[float, float, float]
    distance_from_start: float
    """Километры по маршруту."""

    estimated_time: float
    """Минуты от начала маршрута."""

    segment_length: float
    """Длина участка от предыдущей точки, метры."""

    speed: float


def waypoint_detail(path: Sequence[Waypoint], index: int, config: Optional[EnergyConfig] = None) -> WaypointDetail:
    config = config or EnergyConfig()
    if index < 0 or index >= len(path):
        raise PathInputError(f"waypoint index {index} out of range for path of {len(path)}")
    lengths = segment_lengths(path)
    meters = float(lengths[:index].sum())
    point = path[index]
    return WaypointDetail(
        name=f"WP{index + 1:02d}",
        position=(point.x, point.y, point.z),
        distance_from_start=meters / 1000.0,
        estimated_time=meters / config.speed / 60.0,
        segment_length=float(lengths[index - 1]) if index > 0 else 0.0,
        speed=config.speed,
    )
