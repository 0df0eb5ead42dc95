"""Оптимизация маршрута: ближайший сосед + 2-opt, фоновый поток."""

from skypath.planning.optimizer import PathOptimizer, SegmentCost, calculate_optimal_path, path_distance
from skypath.planning.worker import OptimizerWorker, WorkerState, solve_message

__all__ = [
    "PathOptimizer",
    "SegmentCost",
    "calculate_optimal_path",
    "path_distance",
    "OptimizerWorker",
    "WorkerState",
    "solve_message",
]
