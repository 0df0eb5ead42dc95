"""Результат расчёта KPI."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from skypath.collision.detector import CollisionPoint


class KpiStatus(Enum):
    IDLE = "idle"
    CALCULATING = "calculating"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class KPIMetrics:
    """
    Показатели миссии.

    Объект всегда полный; coverage и overlap равны None, если их
    нельзя посчитать (нет меша или расчёт упал), остальные поля заполнены.
    """

    path_length: float
    """Метры."""

    flight_time: float
    """Секунды."""

    energy: float
    """Вт·ч."""

    coverage: Optional[float]
    """Доля площади меша, видимая хотя бы из одной точки, [0, 1]."""

    overlap: Optional[float]
    """Доля площади меша, видимая из двух и более точек, [0, 1]."""

    collision_count: int = 0
    has_collision: bool = False
    collision_details: list[CollisionPoint] = field(default_factory=list)
    status: KpiStatus = KpiStatus.COMPLETED
    progress: int = 100

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "path_length": self.path_length,
            "flight_time": self.flight_time,
            "energy": self.energy,
            "coverage": self.coverage,
            "overlap": self.overlap,
            "collision_count": self.collision_count,
            "has_collision": self.has_collision,
            "collision_details": [c.to_dict() for c in self.collision_details],
            "status": self.status.value,
            "progress": self.progress,
        }
