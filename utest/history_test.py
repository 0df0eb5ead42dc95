import random
import unittest
from concurrent.futures import Future
from unittest import mock

from skypath.editing import ActionType, HistoryAction, PathHistory, LONE_POINT_OFFSET
from skypath.errors import OptimizationError, PathInputError
from skypath.planning import OptimizerWorker, PathOptimizer
from skypath.waypoint import Waypoint


def three_points():
    return [
        Waypoint.at(1, (0, 0, 0), (0, -1, 0)),
        Waypoint.at(2, (10, 0, 0), (0, 0, 1)),
        Waypoint.at(3, (20, 0, 0), (0, -1, 0)),
    ]


class SpyAction:
    """
    Фабрика простых действий для проверки стека истории
    без изменения точек.
    """

    @staticmethod
    def make(n: int) -> HistoryAction:
        return HistoryAction(
            ActionType.UPDATE_NORMAL, 1, 0,
            old_data={"normal": (0.0, 0.0, 0.0)},
            new_data={"normal": (float(n), 0.0, 0.0)},
        )


class PathHistoryStackTest(unittest.TestCase):
    """Курсор, ветка redo и ограничение размера."""

    def test_initial_state(self):
        history = PathHistory(three_points())
        self.assertEqual(history.cursor, -1)
        self.assertFalse(history.can_undo)
        self.assertFalse(history.can_redo)
        self.assertEqual(len(history), 3)

    def test_push_truncates_redo(self):
        """Новое действие после undo отбрасывает ветку redo."""
        history = PathHistory(three_points())
        history.update_position(1, 1, 1, 1)
        history.update_position(1, 2, 2, 2)
        history.undo()
        self.assertTrue(history.can_redo)

        history.update_position(2, 5, 5, 5)
        self.assertFalse(history.can_redo)
        self.assertEqual(len(history.history), 2)
        self.assertEqual(history.cursor, 1)

    def test_eviction(self):
        """При переполнении удаляется самое старое действие."""
        history = PathHistory(three_points(), max_size=3)
        for n in range(5):
            history.push_action(SpyAction.make(n))
        self.assertEqual(len(history.history), 3)
        self.assertEqual(history.cursor, 2)
        self.assertEqual(history.history[0].new_data["normal"][0], 2.0)

    def test_underflow_and_overflow(self):
        history = PathHistory(three_points())
        with self.assertLogs("skypath", level="WARNING"):
            self.assertFalse(history.undo())
        with self.assertLogs("skypath", level="WARNING"):
            self.assertFalse(history.redo())

    def test_bad_max_size(self):
        with self.assertRaises(ValueError):
            PathHistory(max_size=0)

    def test_duplicate_ids(self):
        with self.assertRaises(PathInputError):
            PathHistory([Waypoint.at(1, (0, 0, 0)), Waypoint.at(1, (1, 0, 0))])

    def test_set_points_clears_history(self):
        history = PathHistory(three_points())
        history.update_position(1, 1, 1, 1)
        history.set_points(three_points())
        self.assertEqual(history.cursor, -1)
        self.assertEqual(history.history, ())

    def test_clear_history_keeps_points(self):
        history = PathHistory(three_points())
        history.update_position(1, 1, 1, 1)
        history.clear_history()
        self.assertFalse(history.can_undo)
        self.assertEqual(history.points[0].x, 1.0)

    def test_action_to_dict(self):
        history = PathHistory(three_points())
        history.delete_point(0)
        data = history.history[0].to_dict()
        self.assertEqual(data["type"], "deletePoint")
        self.assertEqual(data["point_id"], 1)
        self.assertEqual(data["old_data"]["point"]["normal"], {"x": 0.0, "y": -1.0, "z": 0.0})


class PathHistoryEditTest(unittest.TestCase):
    """Правки маршрута и их отмена."""

    def setUp(self):
        self.history = PathHistory(three_points())
        self.changes = []
        self.history.on_changed += self.changes.append

    def test_update_position(self):
        self.assertTrue(self.history.update_position(2, 10, 5, 0))
        self.assertEqual(self.history.points[1].y, 5.0)
        self.history.undo()
        self.assertEqual(self.history.points[1].y, 0.0)
        self.history.redo()
        self.assertEqual(self.history.points[1].y, 5.0)
        self.assertEqual(len(self.changes), 3)

    def test_update_to_same_value(self):
        """Правка без изменений не попадает в историю."""
        self.assertFalse(self.history.update_position(2, 10, 0, 0))
        self.assertFalse(self.history.can_undo)
        self.assertEqual(self.changes, [])

    def test_update_unknown_point(self):
        with self.assertLogs("skypath", level="WARNING"):
            self.assertFalse(self.history.update_position(99, 0, 0, 0))

    def test_update_normal(self):
        self.history.update_normal(1, (1, 0, 0))
        self.assertEqual(self.history.points[0].normal, (1.0, 0.0, 0.0))
        self.history.undo()
        self.assertEqual(self.history.points[0].normal, (0.0, -1.0, 0.0))

    def test_insert_between(self):
        """Новая точка в середине отрезка, нормаль — нормализованное среднее."""
        index = self.history.insert_after(0)
        self.assertEqual(index, 1)
        point = self.history.points[1]
        self.assertEqual(point.position.tolist(), [5.0, 0.0, 0.0])
        half = 0.5 ** 0.5
        self.assertAlmostEqual(point.normal[1], -half)
        self.assertAlmostEqual(point.normal[2], half)
        self.assertEqual(self.history.points[2].id, 2)

    def test_insert_before_middle(self):
        index = self.history.insert_before(2)
        self.assertEqual(index, 2)
        self.assertEqual(self.history.points[2].x, 15.0)

    def test_insert_before_first(self):
        """Перед первой точкой: на продолжении отрезка на половину его длины."""
        index = self.history.insert_before(0)
        self.assertEqual(index, 0)
        self.assertEqual(self.history.points[0].x, -5.0)
        self.assertEqual(self.history.points[0].normal, (0.0, -1.0, 0.0))

    def test_insert_after_last(self):
        index = self.history.insert_after(2)
        self.assertEqual(index, 3)
        self.assertEqual(self.history.points[3].x, 25.0)

    def test_insert_next_to_lone_point(self):
        history = PathHistory([Waypoint.at(7, (1, 2, 3))])
        history.insert_after(0)
        self.assertEqual(history.points[1].position.tolist(), [1.0 + LONE_POINT_OFFSET, 2.0, 3.0])

        history = PathHistory([Waypoint.at(7, (1, 2, 3))])
        history.insert_before(0)
        self.assertEqual(history.points[0].x, 1.0 + LONE_POINT_OFFSET)
        self.assertEqual(history.points[1].id, 7)

    def test_insert_into_empty(self):
        history = PathHistory()
        self.assertIsNone(history.insert_after(0))
        self.assertIsNone(history.insert_before(0))

    def test_insert_undo(self):
        self.history.insert_after(0)
        self.history.undo()
        self.assertEqual([p.id for p in self.history.points], [1, 2, 3])

    def test_ids_not_reused(self):
        """Удалённый идентификатор не выдаётся повторно."""
        self.history.delete_point(2)
        self.history.insert_after(1)
        self.assertEqual(self.history.points[2].id, 4)
        self.history.undo()
        self.history.insert_after(1)
        self.assertEqual(self.history.points[2].id, 5)

    def test_delete_clamped(self):
        self.assertTrue(self.history.delete_point(10))
        self.assertEqual([p.id for p in self.history.points], [1, 2])
        self.assertTrue(self.history.delete_point(-3))
        self.assertEqual([p.id for p in self.history.points], [2])

    def test_delete_undo_restores_index(self):
        self.history.delete_point(1)
        self.history.undo()
        self.assertEqual([p.id for p in self.history.points], [1, 2, 3])

    def test_delete_from_empty(self):
        self.assertFalse(PathHistory().delete_point(0))

    def test_replace_path(self):
        reversed_points = list(reversed(three_points()))
        self.assertTrue(self.history.replace_path(reversed_points))
        self.assertEqual([p.id for p in self.history.points], [3, 2, 1])
        self.assertEqual(len(self.history.history), 1)
        self.history.undo()
        self.assertEqual([p.id for p in self.history.points], [1, 2, 3])
        self.assertFalse(self.history.replace_path(three_points()))

    def test_random_round_trip(self):
        """
        Случайная серия правок: полная отмена возвращает исходный маршрут,
        полный повтор — итоговый.
        """
        rng = random.Random(1234)
        for _ in range(10):
            original = three_points() + [Waypoint.at(4, (30, 5, 0)), Waypoint.at(5, (40, 5, 5))]
            history = PathHistory(original, max_size=1000)
            for _ in range(40):
                points = history.points
                op = rng.choice(["move", "normal", "before", "after", "delete"])
                if op == "move" and points:
                    target = rng.choice(points)
                    history.update_position(target.id, rng.uniform(-50, 50), rng.uniform(0, 30), rng.uniform(-50, 50))
                elif op == "normal" and points:
                    target = rng.choice(points)
                    history.update_normal(target.id, (rng.uniform(-1, 1), -1.0, rng.uniform(-1, 1)))
                elif op == "before":
                    history.insert_before(rng.randrange(0, len(points) + 1))
                elif op == "after":
                    history.insert_after(rng.randrange(0, len(points) + 1))
                elif op == "delete" and len(points) > 1:
                    history.delete_point(rng.randrange(0, len(points)))

            final = history.points
            while history.can_undo:
                self.assertTrue(history.undo())
            self.assertEqual(history.points, tuple(original))
            while history.can_redo:
                self.assertTrue(history.redo())
            self.assertEqual(history.points, final)


class PathHistoryOptimizeTest(unittest.TestCase):
    """Применение результата оптимизатора."""

    def test_apply_same_order(self):
        history = PathHistory(three_points())
        self.assertFalse(history.apply_optimized(three_points(), three_points()))
        self.assertFalse(history.can_undo)

    def test_apply_new_order(self):
        """Новый порядок — одно действие replacePath."""
        history = PathHistory(three_points())
        snapshot = history.points
        optimized = [snapshot[0], snapshot[2], snapshot[1]]
        self.assertTrue(history.apply_optimized(snapshot, optimized))
        self.assertEqual([p.id for p in history.points], [1, 3, 2])
        self.assertEqual(history.history[-1].type, ActionType.REPLACE_PATH)

    def test_apply_after_edit(self):
        """Маршрут правили во время оптимизации: результат отклоняется."""
        history = PathHistory(three_points())
        snapshot = history.points
        history.update_position(2, 1, 1, 1)
        with self.assertRaises(OptimizationError):
            history.apply_optimized(snapshot, [snapshot[0], snapshot[2], snapshot[1]])
        self.assertEqual([p.id for p in history.points], [1, 2, 3])

    def test_apply_foreign_points(self):
        history = PathHistory(three_points())
        snapshot = history.points
        with self.assertRaises(OptimizationError):
            history.apply_optimized(snapshot, [snapshot[0], snapshot[1]])

    def test_optimize_with_worker(self):
        history = PathHistory([Waypoint.at(i + 1, (x, 0, 0)) for i, x in enumerate([0, 5, 1, 4, 2, 3])])
        worker = OptimizerWorker()
        future = history.optimize(worker)
        self.assertTrue(future.result(timeout=10))
        worker.join(10)
        self.assertEqual([p.x for p in history.points], [0, 1, 2, 3, 4, 5])
        self.assertEqual(len(history.history), 1)
        history.undo()
        self.assertEqual([p.x for p in history.points], [0, 5, 1, 4, 2, 3])

    def test_optimize_short_path(self):
        history = PathHistory(three_points())
        future = history.optimize(OptimizerWorker())
        self.assertIsInstance(future, Future)
        self.assertFalse(future.result(timeout=1))

    def test_optimize_failure_keeps_points(self):
        history = PathHistory([Waypoint.at(i + 1, (x, 0, 0)) for i, x in enumerate([0, 3, 1, 2])])
        before = history.points
        worker = OptimizerWorker()
        with mock.patch.object(PathOptimizer, "optimize", side_effect=RuntimeError("boom")):
            with self.assertLogs("skypath", level="ERROR"):
                future = history.optimize(worker)
                error = future.exception(timeout=10)
                worker.join(10)
        self.assertIsInstance(error, OptimizationError)
        self.assertEqual(history.points, before)
        self.assertFalse(history.can_undo)

    def test_optimize_with_failing_subscriber(self):
        """Ошибка подписчика on_changed логируется, future всё равно завершается."""
        history = PathHistory([Waypoint.at(i + 1, (x, 0, 0)) for i, x in enumerate([0, 3, 1, 2])])

        def broken(points):
            raise RuntimeError("subscriber failed")

        history.on_changed += broken
        worker = OptimizerWorker()
        with self.assertLogs("skypath", level="ERROR"):
            future = history.optimize(worker)
            self.assertTrue(future.result(timeout=10))
            worker.join(10)
        self.assertEqual([p.x for p in history.points], [0, 1, 2, 3])

    def test_optimize_apply_error_resolves_future(self):
        """Любая ошибка при применении результата передаётся в future."""
        history = PathHistory([Waypoint.at(i + 1, (x, 0, 0)) for i, x in enumerate([0, 3, 1, 2])])
        worker = OptimizerWorker()
        with mock.patch.object(PathHistory, "apply_optimized", side_effect=RuntimeError("apply failed")):
            with self.assertLogs("skypath", level="ERROR"):
                future = history.optimize(worker)
                error = future.exception(timeout=10)
                worker.join(10)
        self.assertIsInstance(error, RuntimeError)


if __name__ == "__main__":
    unittest.main()
