"""
Расчёт KPI миссии: длина, время, энергия, покрытие, перекрытие, коллизии.

Ошибки входных данных (меньше двух точек) поднимаются сразу. Сбой расчёта
покрытия не прерывает расчёт: coverage и overlap становятся None.
"""

from __future__ import annotations

from dataclasses import dataclass
import threading
from typing import Optional, Sequence

from skypath import log
from skypath.collision.detector import CollisionDetector, PathCollisions
from skypath.config import MissionSettings
from skypath.coverage.calculator import CoverageCalculator
from skypath.errors import KpiCancelled, PathInputError
from skypath.kpi.energy import flight_time, path_energy, path_length
from skypath.kpi.metrics import KPIMetrics, KpiStatus
from skypath.mesh.flat_mesh import FlatMesh
from skypath.waypoint import Waypoint


@dataclass
class KpiOptions:
    include_collision_details: bool = True
    """Заполнять KPIMetrics.collision_details."""

    collision_method: str = "voxel"
    """"voxel" или "box", см. CollisionDetector."""


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


class KpiCalculator:
    """
    Пошаговый расчёт KPI со статусом, прогрессом и отменой.

    cancel() можно вызывать из другого потока; расчёт прерывается
    на ближайшей границе шагов исключением KpiCancelled.
    """

    def __init__(
        self,
        settings: Optional[MissionSettings] = None,
        coverage: Optional[CoverageCalculator] = None,
    ):
        self.settings = settings or MissionSettings()
        self.coverage = coverage or CoverageCalculator(None, self.settings.camera, self.settings.coverage)
        self._status = KpiStatus.IDLE
        self._progress = 0
        self._cancel = threading.Event()

    @property
    def status(self) -> KpiStatus:
        return self._status

    @property
    def progress(self) -> int:
        return self._progress

    def cancel(self) -> None:
        self._cancel.set()

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise KpiCancelled("KPI calculation cancelled")

    def calculate(
        self,
        path: Sequence[Waypoint],
        mesh: Optional[FlatMesh] = None,
        options: Optional[KpiOptions] = None,
    ) -> KPIMetrics:
        options = options or KpiOptions()
        if path is None or len(path) < 2:
            raise PathInputError("at least 2 waypoints are required to compute KPIs")

        path = tuple(path)
        self._status = KpiStatus.CALCULATING
        self._progress = 0
        self._cancel.clear()

        total_steps = 5 if mesh is not None else 3
        step = 0

        def advance():
            nonlocal step
            step += 1
            self._progress = min(100, round(step / total_steps * 100))

        try:
            self._check_cancelled()
            length = path_length(path)
            time = flight_time(length, self.settings.energy)
            advance()

            self._check_cancelled()
            energy = path_energy(path, self.settings.energy)
            advance()

            coverage = None
            overlap = None
            if mesh is not None:
                self._check_cancelled()
                coverage, overlap = self._coverage_metrics(path, mesh)
                advance()

            self._check_cancelled()
            if mesh is not None:
                collisions = CollisionDetector(
                    self.settings.optimizer.grid_resolution, options.collision_method
                ).detect_path_collisions(path, mesh)
                advance()
            else:
                collisions = PathCollisions()
            advance()

            metrics = KPIMetrics(
                path_length=length,
                flight_time=time,
                energy=energy,
                coverage=coverage,
                overlap=overlap,
                collision_count=collisions.collision_count,
                has_collision=collisions.has_collision,
                collision_details=list(collisions.collisions) if options.include_collision_details else [],
                status=KpiStatus.COMPLETED,
                progress=100,
            )
            self._status = KpiStatus.COMPLETED
            self._progress = 100
            return metrics
        except BaseException:
            self._status = KpiStatus.ERROR
            self._progress = 0
            raise
        finally:
            self._cancel.clear()

    def _coverage_metrics(self, path, mesh):
        if self.coverage.mesh is not mesh:
            self.coverage.mesh = mesh
        try:
            metrics = self.coverage.path_metrics(path)
        except Exception as e:
            log.error(e, "[KPI] Coverage calculation failed")
            return None, None
        if metrics is None:
            return None, None
        return _clamp01(metrics.coverage / 100.0), _clamp01(metrics.overlap / 100.0)


def compute_kpis(
    path: Sequence[Waypoint],
    mesh: Optional[FlatMesh] = None,
    options: Optional[KpiOptions] = None,
    settings: Optional[MissionSettings] = None,
) -> KPIMetrics:
    """Разовый расчёт KPI."""
    return KpiCalculator(settings).calculate(path, mesh, options)


def compute_cumulative_coverage(
    path: Sequence[Waypoint],
    mesh: Optional[FlatMesh],
    waypoint_count: int,
    calculator: Optional[CoverageCalculator] = None,
) -> Optional[float]:
    """
    Покрытие первых waypoint_count точек, проценты, или None без меша.

    Для проигрывания маршрута передавайте один и тот же calculator:
    его кэш делает каждый следующий шаг дешёвым.
    """
    if mesh is None:
        return None
    if calculator is None:
        calculator = CoverageCalculator(mesh)
    elif calculator.mesh is not mesh:
        calculator.mesh = mesh
    return calculator.cumulative_coverage(path, waypoint_count)
