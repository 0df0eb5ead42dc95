"""
Mission settings — tunable constants of the KPI engine.

Each concern has its own dataclass with documented defaults.
MissionSettings aggregates them and handles JSON persistence.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, asdict
from pathlib import Path
from typing import Union

from skypath import log


@dataclass
class CameraConfig:
    """Параметры камеры дрона."""

    fov: float = 53.1
    """Вертикальный угол обзора, градусы."""

    aspect: float = 16.0 / 9.0
    """Отношение ширины кадра к высоте."""

    near: float = 0.1
    """Ближняя плоскость отсечения."""

    far: float = 1000.0
    """Дальняя плоскость отсечения."""

    default_direction: tuple[float, float, float] = (0.0, -1.0, 0.0)
    """Направление взгляда, если нормаль не задана и меш неизвестен."""


@dataclass
class CoverageConfig:
    """Параметры расчёта покрытия."""

    fallback_height: float = 1000.0
    """Высота пирамиды, если луч взгляда не попал в меш."""

    min_height: float = 0.1
    """Минимальная высота пирамиды."""

    max_height: float = 1000.0
    """Максимальная высота пирамиды."""

    require_facing: bool = True
    """Отбрасывать треугольники, повёрнутые от камеры."""

    cache_size: int = 512
    """Сколько поз хранит кэш видимости (LRU). 0 — без ограничения."""


@dataclass
class EnergyConfig:
    """Энергетическая модель полёта."""

    speed: float = 5.0
    """Крейсерская скорость, м/с."""

    power_per_meter: float = 0.004
    """Расход на метр горизонтального пути, Вт·ч/м."""

    climb_power_factor: float = 0.002
    """Добавочный расход на метр изменения высоты, Вт·ч/м."""

    battery_capacity: float = 89.2
    """Ёмкость одной батареи, Вт·ч."""


@dataclass
class OptimizerConfig:
    """Параметры оптимизатора маршрута."""

    grid_resolution: int = 64
    """Число вокселей по каждой оси сетки занятости."""

    collision_penalty: float = 1e6
    """Штраф за сегмент, пересекающий занятый воксель."""

    max_passes: int = 50
    """Предел числа проходов 2-opt."""

    min_points: int = 4
    """Пути короче этого возвращаются без изменений."""


@dataclass
class HistoryConfig:
    """Параметры истории правок."""

    max_size: int = 100
    """Максимальное число действий в истории."""


@dataclass
class KpiConfig:
    """Параметры пересчёта KPI."""

    debounce: float = 0.5
    """Задержка перед пересчётом после правки, секунды."""


def _section_from_dict(cls, data):
    """Build a config section, ignoring unknown keys and keeping defaults for bad values."""
    default = cls()
    if not isinstance(data, dict):
        return default
    values = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        raw = data[f.name]
        current = getattr(default, f.name)
        try:
            if isinstance(current, bool):
                values[f.name] = bool(raw)
            elif isinstance(current, int):
                values[f.name] = int(raw)
            elif isinstance(current, float):
                values[f.name] = float(raw)
            elif isinstance(current, tuple):
                values[f.name] = tuple(float(v) for v in raw)
                if len(values[f.name]) != len(current):
                    raise ValueError(f"expected {len(current)} components")
            else:
                values[f.name] = raw
        except (TypeError, ValueError) as e:
            log.warning(f"[MissionSettings] Bad value for {cls.__name__}.{f.name}: {e}")
            values.pop(f.name, None)
    return cls(**values)


@dataclass
class MissionSettings:
    """
    All tunables of a mission.

    Saved as JSON:
        {"camera": {...}, "coverage": {...}, "energy": {...},
         "optimizer": {...}, "history": {...}, "kpi": {...}}
    """

    camera: CameraConfig = field(default_factory=CameraConfig)
    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    energy: EnergyConfig = field(default_factory=EnergyConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    kpi: KpiConfig = field(default_factory=KpiConfig)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        data = asdict(self)
        data["camera"]["default_direction"] = list(self.camera.default_direction)
        return data

    @staticmethod
    def from_dict(data: dict) -> "MissionSettings":
        """Deserialize from dictionary. Missing sections get defaults."""
        return MissionSettings(
            camera=_section_from_dict(CameraConfig, data.get("camera")),
            coverage=_section_from_dict(CoverageConfig, data.get("coverage")),
            energy=_section_from_dict(EnergyConfig, data.get("energy")),
            optimizer=_section_from_dict(OptimizerConfig, data.get("optimizer")),
            history=_section_from_dict(HistoryConfig, data.get("history")),
            kpi=_section_from_dict(KpiConfig, data.get("kpi")),
        )

    @staticmethod
    def load(path: Union[str, Path]) -> "MissionSettings":
        """Load settings from JSON file. Missing or broken file gives defaults."""
        path = Path(path)
        if not path.exists():
            return MissionSettings()
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.error(f"[MissionSettings] Failed to load settings: {e}")
            return MissionSettings()
        log.info(f"[MissionSettings] Loaded from {path}")
        return MissionSettings.from_dict(data)

    def save(self, path: Union[str, Path]) -> None:
        """Save settings to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        log.info(f"[MissionSettings] Saved to {path}")
