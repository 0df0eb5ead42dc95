"""
skypath — KPI миссии инспекционного полёта дрона.

Покрытие меша пирамидами видимости камеры, коллизии маршрута,
энергия и время полёта, оптимизация порядка точек и история правок.
"""

from skypath.config import MissionSettings
from skypath.errors import (
    SkypathError,
    InputError,
    MeshInputError,
    PathInputError,
    OptimizationError,
    OptimizationCancelled,
    KpiCancelled,
)
from skypath.waypoint import Waypoint
from skypath.mesh import FlatMesh
from skypath.kpi import KPIMetrics, compute_kpis, compute_cumulative_coverage
from skypath.planning import OptimizerWorker, calculate_optimal_path
from skypath.editing import PathHistory, HistoryAction, ActionType, SelectionContext
from skypath.session import MissionSession


def optimize_path(path, mesh=None, worker=None):
    """
    Оптимизировать порядок точек в фоновом потоке.

    Returns:
        concurrent.futures.Future со списком Waypoint.
    """
    worker = worker or OptimizerWorker()
    return worker.submit(path, mesh)


__all__ = [
    "MissionSettings",
    "SkypathError",
    "InputError",
    "MeshInputError",
    "PathInputError",
    "OptimizationError",
    "OptimizationCancelled",
    "KpiCancelled",
    "Waypoint",
    "FlatMesh",
    "KPIMetrics",
    "compute_kpis",
    "compute_cumulative_coverage",
    "calculate_optimal_path",
    "optimize_path",
    "OptimizerWorker",
    "PathHistory",
    "HistoryAction",
    "ActionType",
    "SelectionContext",
    "MissionSession",
]
