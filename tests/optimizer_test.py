"""
Тесты оптимизатора маршрута и фонового потока.
"""

import threading
import unittest
from unittest import mock

import numpy as np

from skypath.config import OptimizerConfig
from skypath.errors import OptimizationCancelled, OptimizationError
from skypath.mesh import FlatMesh
from skypath.planning import (
    OptimizerWorker,
    PathOptimizer,
    SegmentCost,
    WorkerState,
    calculate_optimal_path,
    path_distance,
    solve_message,
)
from skypath.waypoint import Waypoint


def wall():
    """Стена x = 5, y и z в [0, 10], из двух треугольников."""
    return FlatMesh.from_flat(
        [5, 0, 0, 5, 10, 0, 5, 10, 10, 5, 0, 10],
        [0, 1, 2, 0, 2, 3],
    )


def line_points(xs):
    return [Waypoint.at(i + 1, (x, 0, 0)) for i, x in enumerate(xs)]


def random_points(seed, count):
    rng = np.random.default_rng(seed)
    return [Waypoint.at(100 + i, rng.uniform(-50, 50, 3)) for i in range(count)]


class PathOptimizerTest(unittest.TestCase):
    """Тесты ближайшего соседа и 2-opt."""

    def test_short_path_unchanged(self):
        """Меньше четырёх точек: порядок не меняется."""
        points = line_points([0, 5, 1])
        self.assertEqual(calculate_optimal_path(points), points)
        self.assertEqual(calculate_optimal_path([]), [])

    def test_line_sorted(self):
        points = line_points([0, 5, 1, 4, 2, 3])
        result = calculate_optimal_path(points)
        self.assertEqual([w.x for w in result], [0, 1, 2, 3, 4, 5])

    def test_same_points_first_fixed(self):
        """Результат — перестановка тех же точек, первая на месте."""
        for seed in range(5):
            points = random_points(seed, 12)
            result = calculate_optimal_path(points)
            self.assertEqual(result[0], points[0])
            self.assertEqual(sorted(w.id for w in result), sorted(w.id for w in points))
            self.assertEqual(set(result), set(points))

    def test_not_worse_than_nearest_neighbor(self):
        for seed in range(5):
            points = random_points(seed, 15)
            positions = np.array([w.position for w in points])
            optimizer = PathOptimizer()
            cost = SegmentCost(positions, None, 1e6)
            baseline = cost.total(optimizer.nearest_neighbor(cost, len(points)))
            result = optimizer.optimize(points)
            self.assertLessEqual(path_distance(result), baseline + 1e-9)

    def test_passes_limited(self):
        optimizer = PathOptimizer(OptimizerConfig(max_passes=1))
        optimizer.optimize(random_points(3, 20))
        self.assertEqual(optimizer.passes, 1)

    def test_collision_penalty(self):
        """
        Без меша точка за стеной идёт второй; со стеной — последней,
        чтобы стену пересекал только один участок.
        """
        start = Waypoint.at(1, (4, 5, 5))
        right = Waypoint.at(2, (6, 5, 5))
        left = Waypoint.at(3, (0, 5, 5))
        far_left = Waypoint.at(4, (-4, 5, 5))
        points = [start, left, right, far_left]

        free = calculate_optimal_path(points)
        self.assertEqual([w.id for w in free], [1, 2, 3, 4])

        walled = calculate_optimal_path(points, wall())
        self.assertEqual(walled[0].id, 1)
        self.assertEqual(walled[-1].id, 2)

    def test_segment_cost_memoized(self):
        positions = np.array([[0.0, 5, 5], [10.0, 5, 5]])
        grid = mock.Mock()
        grid.segment_collides.return_value = True
        cost = SegmentCost(positions, grid, 100.0)
        self.assertAlmostEqual(cost(0, 1), 110.0)
        self.assertAlmostEqual(cost(1, 0), 110.0)
        self.assertEqual(grid.segment_collides.call_count, 1)

    def test_cancelled(self):
        event = threading.Event()
        event.set()
        with self.assertRaises(OptimizationCancelled):
            calculate_optimal_path(random_points(1, 8), cancel_event=event)

    def test_cancelled_short_path(self):
        event = threading.Event()
        event.set()
        points = line_points([0, 1])
        self.assertEqual(calculate_optimal_path(points, cancel_event=event), points)


class SolveMessageTest(unittest.TestCase):
    """Тесты обмена сообщениями с потоком оптимизатора."""

    def test_ok(self):
        message = {"points": [{"id": i, "x": x, "y": 0, "z": 0} for i, x in enumerate([0, 3, 1, 2])]}
        reply = solve_message(message, OptimizerConfig(), threading.Event())
        self.assertTrue(reply["ok"])
        self.assertEqual([p["x"] for p in reply["points"]], [0, 1, 2, 3])

    def test_bad_message(self):
        with self.assertLogs("skypath", level="ERROR"):
            reply = solve_message({"points": [{"x": 0}]}, OptimizerConfig(), threading.Event())
        self.assertFalse(reply["ok"])
        self.assertFalse(reply["cancelled"])

    def test_cancelled(self):
        event = threading.Event()
        event.set()
        message = {"points": [{"id": i, "x": x, "y": 0, "z": 0} for i, x in enumerate([0, 3, 1, 2])]}
        reply = solve_message(message, OptimizerConfig(), event)
        self.assertFalse(reply["ok"])
        self.assertTrue(reply["cancelled"])


class OptimizerWorkerTest(unittest.TestCase):
    """Тесты фонового потока."""

    def test_result(self):
        worker = OptimizerWorker()
        points = line_points([0, 5, 1, 4, 2, 3])
        future = worker.submit(points)
        result = future.result(timeout=10)
        worker.join(10)
        self.assertEqual(result, calculate_optimal_path(points))
        self.assertEqual(worker.state, WorkerState.DONE)

    def test_failure(self):
        """Исключение в оптимизаторе приходит как OptimizationError."""
        worker = OptimizerWorker()
        with mock.patch.object(PathOptimizer, "optimize", side_effect=RuntimeError("boom")):
            with self.assertLogs("skypath", level="ERROR"):
                future = worker.submit(line_points([0, 1, 2, 3]))
                error = future.exception(timeout=10)
                worker.join(10)
        self.assertIsInstance(error, OptimizationError)
        self.assertEqual(str(error), "Optimization failed: boom")
        self.assertEqual(worker.state, WorkerState.FAILED)

    def test_cancel(self):
        started = threading.Event()

        def slow(optimizer, points, mesh=None):
            started.set()
            optimizer.cancel_event.wait(10)
            optimizer._check_cancelled()
            return list(points)

        worker = OptimizerWorker()
        with mock.patch.object(PathOptimizer, "optimize", slow):
            future = worker.submit(line_points([0, 1, 2, 3]))
            self.assertTrue(started.wait(10))
            self.assertTrue(worker.cancel())
            worker.join(10)
        self.assertTrue(future.cancelled())
        self.assertEqual(worker.state, WorkerState.CANCELLED)
        self.assertFalse(worker.cancel())

    def test_submit_replaces_running(self):
        release = threading.Event()

        def slow(optimizer, points, mesh=None):
            release.wait(10)
            optimizer._check_cancelled()
            return list(points)

        worker = OptimizerWorker()
        with mock.patch.object(PathOptimizer, "optimize", slow):
            first = worker.submit(line_points([0, 1, 2, 3]))
            second = worker.submit(line_points([0, 1, 2, 3]))
            release.set()
            result = second.result(timeout=10)
            worker.join(10)
        self.assertTrue(first.cancelled())
        self.assertEqual(len(result), 4)


if __name__ == "__main__":
    unittest.main()
