"""
MissionSession — связка меша, истории правок, покрытия и пересчёта KPI.

Любая правка маршрута (включая undo/redo и оптимизацию) ставит
отложенный пересчёт KPI; готовый результат приходит в on_kpi.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Optional, Sequence

from skypath import log
from skypath.camera.pose import camera_angles
from skypath.collision.detector import min_distance_to_obstacle
from skypath.config import MissionSettings
from skypath.coverage.calculator import CoverageCalculator, ViewpointMetrics
from skypath.editing.history import PathHistory
from skypath.editing.selection import SelectionContext
from skypath.errors import PathInputError
from skypath.events import Event
from skypath.kpi.calculator import KpiCalculator, KpiOptions
from skypath.kpi.energy import WaypointDetail, remaining_battery, waypoint_detail
from skypath.kpi.metrics import KPIMetrics
from skypath.kpi.scheduler import KpiScheduler
from skypath.mesh.flat_mesh import FlatMesh
from skypath.planning.worker import OptimizerWorker
from skypath.records import mesh_from_dict, waypoints_from_records
from skypath.waypoint import Waypoint


class MissionSession:
    def __init__(
        self,
        mesh: Optional[FlatMesh] = None,
        points: Sequence[Waypoint] = (),
        settings: Optional[MissionSettings] = None,
    ):
        self.settings = settings or MissionSettings()
        self._mesh = mesh
        self.coverage = CoverageCalculator(mesh, self.settings.camera, self.settings.coverage)
        self.kpi = KpiCalculator(self.settings, self.coverage)
        self.kpi_options = KpiOptions()
        self.history = PathHistory(points, max_size=self.settings.history.max_size)
        self.selection = SelectionContext()
        self.selection.attach(self.history)
        self.worker = OptimizerWorker(self.settings.optimizer)
        self.scheduler = KpiScheduler(self._compute, debounce=self.settings.kpi.debounce)
        self.history.on_changed += self._on_path_changed

    @staticmethod
    def from_records(
        mesh: Optional[dict],
        path: Sequence[dict],
        settings: Optional[MissionSettings] = None,
    ) -> "MissionSession":
        """Сессия из словарей {"vertices", "indices"} и записей точек."""
        return MissionSession(mesh_from_dict(mesh), waypoints_from_records(path), settings)

    @property
    def mesh(self) -> Optional[FlatMesh]:
        return self._mesh

    @mesh.setter
    def mesh(self, value: Optional[FlatMesh]) -> None:
        self._mesh = value
        self.coverage.mesh = value
        self.request_kpis()

    @property
    def points(self) -> tuple[Waypoint, ...]:
        return self.history.points

    @property
    def on_kpi(self) -> Event:
        return self.scheduler.on_result

    @property
    def latest_kpis(self) -> Optional[KPIMetrics]:
        return self.scheduler.latest

    def _compute(self, path, mesh) -> KPIMetrics:
        return self.kpi.calculate(path, mesh, self.kpi_options)

    def _on_path_changed(self, points) -> None:
        self.request_kpis()

    def request_kpis(self) -> None:
        """Запланировать пересчёт KPI (маршрут короче двух точек пропускается)."""
        points = self.history.points
        if len(points) < 2:
            self.scheduler.cancel()
            return
        self.scheduler.request(points, self._mesh)

    def compute_kpis(self) -> KPIMetrics:
        """Посчитать KPI немедленно."""
        return self.kpi.calculate(self.history.points, self._mesh, self.kpi_options)

    def cumulative_coverage(self, waypoint_count: int) -> Optional[float]:
        return self.coverage.cumulative_coverage(self.history.points, waypoint_count)

    def viewpoint_metrics(self, index: int) -> Optional[ViewpointMetrics]:
        return self.coverage.viewpoint_metrics(self.history.points, index)

    def waypoint_detail(self, index: int) -> WaypointDetail:
        return waypoint_detail(self.history.points, index, self.settings.energy)

    def remaining_battery(self, index: int) -> float:
        return remaining_battery(self.history.points, index, self.settings.energy)

    def min_distance_to_obstacle(self, index: int) -> Optional[float]:
        point = self.history.get_point_by_index(index)
        if point is None:
            return None
        return min_distance_to_obstacle(point.position, self._mesh)

    def camera_angles(self, index: int) -> tuple[float, float, float]:
        point = self.history.get_point_by_index(index)
        if point is None:
            raise PathInputError(f"waypoint index {index} out of range for path of {len(self.history)}")
        return camera_angles(point.normal)

    def optimize(self) -> Future:
        """Оптимизировать порядок точек в фоне; см. PathHistory.optimize."""
        log.info(f"[MissionSession] Optimizing path of {len(self.history)} points")
        return self.history.optimize(self.worker, self._mesh)

    def cancel_optimization(self) -> bool:
        return self.worker.cancel()

    def close(self) -> None:
        self.scheduler.cancel()
        self.worker.cancel()
        self.history.on_changed -= self._on_path_changed
        self.selection.detach(self.history)
