"""
PathHistory — точки маршрута и линейная история правок с undo/redo.

История — список действий и курсор:
- cursor == -1 — исходное состояние;
- cursor == len(history) - 1 — все действия применены.

Новое действие отбрасывает ветку redo. При переполнении удаляется
самое старое действие; вернуться дальше него уже нельзя.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
import threading
import time
from typing import Optional, Sequence

import numpy as np

from skypath import log
from skypath.errors import OptimizationError, PathInputError
from skypath.events import Event
from skypath.records import waypoint_to_record
from skypath.waypoint import Waypoint

# Сдвиг новой точки по X, если в маршруте она единственная
LONE_POINT_OFFSET = 10.0


class ActionType(Enum):
    UPDATE_POSITION = "updatePosition"
    UPDATE_NORMAL = "updateNormal"
    ADD_POINT = "addPoint"
    DELETE_POINT = "deletePoint"
    REPLACE_PATH = "replacePath"


@dataclass(frozen=True)
class HistoryAction:
    """
    Одна правка маршрута.

    old_data / new_data по типам:
    - UPDATE_POSITION: {"position": (x, y, z)}
    - UPDATE_NORMAL:   {"normal": (nx, ny, nz)}
    - ADD_POINT:       new_data {"point": Waypoint}
    - DELETE_POINT:    old_data {"point": Waypoint}
    - REPLACE_PATH:    {"path": tuple[Waypoint, ...]}
    """

    type: ActionType
    point_id: int
    point_index: int
    old_data: dict = field(default_factory=dict)
    new_data: dict = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "type": self.type.value,
            "point_id": self.point_id,
            "point_index": self.point_index,
            "old_data": _data_to_dict(self.old_data),
            "new_data": _data_to_dict(self.new_data),
            "timestamp": self.timestamp,
        }


def _data_to_dict(data: dict) -> dict:
    out = {}
    for key, value in data.items():
        if isinstance(value, Waypoint):
            out[key] = waypoint_to_record(value)
        elif key == "path":
            out[key] = [waypoint_to_record(w) for w in value]
        else:
            out[key] = list(value)
    return out


def _unit(v: np.ndarray) -> tuple[float, float, float]:
    n = float(np.linalg.norm(v))
    if n == 0.0:
        n = 1.0
    return tuple(float(c) for c in v / n)


class PathHistory:
    """
    Владелец точек маршрута.

    Остальные компоненты получают снимок `points` (кортеж неизменяемых
    Waypoint) и не могут изменить маршрут в обход истории.

    Attributes:
        on_changed: Event[tuple[Waypoint, ...]], вызывается после каждой
            применённой правки, включая undo и redo.
    """

    def __init__(self, points: Sequence[Waypoint] = (), max_size: int = 100) -> None:
        if max_size < 1:
            raise ValueError("max_size must be positive")
        self.max_size = max_size
        self.on_changed: Event[tuple] = Event("PathHistory.on_changed")
        self._lock = threading.RLock()
        self._points: list[Waypoint] = []
        self._history: list[HistoryAction] = []
        self._cursor = -1
        self._next_id = 1
        self.set_points(points, notify=False)

    # ----------------------------------------------------------------
    # Состояние
    # ----------------------------------------------------------------

    @property
    def points(self) -> tuple[Waypoint, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    @property
    def history(self) -> tuple[HistoryAction, ...]:
        return tuple(self._history)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor >= 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._history) - 1

    def get_point_by_index(self, index: int) -> Optional[Waypoint]:
        if 0 <= index < len(self._points):
            return self._points[index]
        return None

    def get_point_by_id(self, point_id: int) -> Optional[Waypoint]:
        for point in self._points:
            if point.id == point_id:
                return point
        return None

    def index_of(self, point_id: int) -> int:
        for i, point in enumerate(self._points):
            if point.id == point_id:
                return i
        return -1

    def allocate_id(self) -> int:
        """Новый идентификатор точки. Идентификаторы не переиспользуются."""
        with self._lock:
            point_id = self._next_id
            self._next_id += 1
            return point_id

    def _reserve_ids(self, points: Sequence[Waypoint]) -> None:
        if points:
            self._next_id = max(self._next_id, max(p.id for p in points) + 1)

    def _notify(self) -> None:
        self.on_changed.emit(self.points)

    # ----------------------------------------------------------------
    # История
    # ----------------------------------------------------------------

    def set_points(self, points: Sequence[Waypoint], notify: bool = True) -> None:
        """Загрузить маршрут. История очищается."""
        points = list(points)
        ids = [p.id for p in points]
        if len(set(ids)) != len(ids):
            raise PathInputError("waypoint ids must be unique")
        with self._lock:
            self._points = points
            self._history.clear()
            self._cursor = -1
            self._reserve_ids(points)
        if notify:
            self._notify()

    def clear_history(self) -> None:
        """Очистить историю. Точки не трогаются."""
        with self._lock:
            self._history.clear()
            self._cursor = -1

    def push_action(self, action: HistoryAction) -> None:
        """
        Записать уже выполненное действие.

        Ветка redo отбрасывается; при превышении max_size удаляется
        самое старое действие.
        """
        with self._lock:
            if self._cursor < len(self._history) - 1:
                del self._history[self._cursor + 1:]
            self._history.append(action)
            self._cursor += 1
            if len(self._history) > self.max_size:
                self._history.pop(0)
                self._cursor -= 1

    def undo(self) -> bool:
        with self._lock:
            if self._cursor < 0:
                log.warning("[PathHistory] Nothing to undo")
                return False
            action = self._history[self._cursor]
            if not self._apply(action, forward=False):
                return False
            self._cursor -= 1
        self._notify()
        return True

    def redo(self) -> bool:
        with self._lock:
            if self._cursor >= len(self._history) - 1:
                log.warning("[PathHistory] Nothing to redo")
                return False
            action = self._history[self._cursor + 1]
            if not self._apply(action, forward=True):
                return False
            self._cursor += 1
        self._notify()
        return True

    def _apply(self, action: HistoryAction, forward: bool) -> bool:
        data = action.new_data if forward else action.old_data
        kind = action.type

        if kind == ActionType.REPLACE_PATH:
            self._points = list(data["path"])
            return True

        adding = (kind == ActionType.ADD_POINT) == forward
        if kind in (ActionType.ADD_POINT, ActionType.DELETE_POINT):
            if adding:
                point = (action.new_data if kind == ActionType.ADD_POINT else action.old_data)["point"]
                index = min(action.point_index, len(self._points))
                self._points.insert(index, point)
            else:
                index = self.index_of(action.point_id)
                if index < 0:
                    log.warning(f"[PathHistory] Point {action.point_id} not found, history is inconsistent")
                    return False
                del self._points[index]
            return True

        point = self.get_point_by_index(action.point_index)
        if point is None:
            log.warning(f"[PathHistory] No point at index {action.point_index}, cannot apply {kind.value}")
            return False
        if kind == ActionType.UPDATE_POSITION:
            point = point.with_position(*data["position"])
        else:
            point = point.with_normal(data["normal"])
        self._points[action.point_index] = point
        return True

    # ----------------------------------------------------------------
    # Правки
    # ----------------------------------------------------------------

    def update_position(self, point_id: int, x: float, y: float, z: float) -> bool:
        with self._lock:
            index = self.index_of(point_id)
            if index < 0:
                log.warning(f"[PathHistory] Point {point_id} not found")
                return False
            old = self._points[index]
            new = old.with_position(x, y, z)
            if new == old:
                return False
            self.push_action(HistoryAction(
                ActionType.UPDATE_POSITION, point_id, index,
                old_data={"position": (old.x, old.y, old.z)},
                new_data={"position": (new.x, new.y, new.z)},
            ))
            self._points[index] = new
        self._notify()
        return True

    def update_normal(self, point_id: int, normal) -> bool:
        with self._lock:
            index = self.index_of(point_id)
            if index < 0:
                log.warning(f"[PathHistory] Point {point_id} not found")
                return False
            old = self._points[index]
            new = old.with_normal(normal)
            if new == old:
                return False
            self.push_action(HistoryAction(
                ActionType.UPDATE_NORMAL, point_id, index,
                old_data={"normal": old.normal},
                new_data={"normal": new.normal},
            ))
            self._points[index] = new
        self._notify()
        return True

    def _insert(self, index: int, point: Waypoint) -> int:
        self.push_action(HistoryAction(
            ActionType.ADD_POINT, point.id, index, old_data={}, new_data={"point": point},
        ))
        self._points.insert(index, point)
        return index

    def _between(self, a: Waypoint, b: Waypoint) -> Waypoint:
        position = (a.position + b.position) * 0.5
        normal = _unit((a.normal_vector + b.normal_vector) * 0.5)
        return Waypoint.at(self.allocate_id(), position, normal)

    def _beyond(self, anchor: Waypoint, other: Waypoint) -> Waypoint:
        """Точка на продолжении отрезка other→anchor на половину его длины."""
        direction = anchor.position - other.position
        position = anchor.position + direction * 0.5
        return Waypoint.at(self.allocate_id(), position, anchor.normal)

    def _lone(self, anchor: Waypoint) -> Waypoint:
        position = anchor.position + np.array([LONE_POINT_OFFSET, 0.0, 0.0])
        return Waypoint.at(self.allocate_id(), position, anchor.normal)

    def insert_before(self, index: int) -> Optional[int]:
        """
        Вставить точку перед index.

        Между предыдущей и выбранной — в середине; перед первой —
        на продолжении отрезка второй→первой.

        Returns:
            Индекс новой точки или None для пустого маршрута.
        """
        with self._lock:
            if not self._points:
                return None
            idx = max(0, min(index, len(self._points) - 1))
            selected = self._points[idx]
            if idx > 0:
                point = self._between(self._points[idx - 1], selected)
            elif len(self._points) > 1:
                point = self._beyond(selected, self._points[idx + 1])
            else:
                point = self._lone(selected)
            result = self._insert(idx, point)
        self._notify()
        return result

    def insert_after(self, index: int) -> Optional[int]:
        """
        Вставить точку после index.

        Между выбранной и следующей — в середине; после последней —
        на продолжении отрезка предпоследней→последней.
        """
        with self._lock:
            if not self._points:
                return None
            idx = max(0, min(index, len(self._points) - 1))
            selected = self._points[idx]
            if idx < len(self._points) - 1:
                point = self._between(selected, self._points[idx + 1])
            elif idx > 0:
                point = self._beyond(selected, self._points[idx - 1])
            else:
                point = self._lone(selected)
            result = self._insert(idx + 1, point)
        self._notify()
        return result

    def delete_point(self, index: int) -> bool:
        """Удалить точку; index прижимается к допустимому диапазону."""
        with self._lock:
            if not self._points:
                return False
            idx = max(0, min(index, len(self._points) - 1))
            point = self._points[idx]
            self.push_action(HistoryAction(
                ActionType.DELETE_POINT, point.id, idx, old_data={"point": point}, new_data={},
            ))
            del self._points[idx]
        self._notify()
        return True

    def replace_path(self, points: Sequence[Waypoint]) -> bool:
        """Заменить маршрут целиком одним действием."""
        points = list(points)
        ids = [p.id for p in points]
        if len(set(ids)) != len(ids):
            raise PathInputError("waypoint ids must be unique")
        with self._lock:
            if points == self._points:
                return False
            self.push_action(HistoryAction(
                ActionType.REPLACE_PATH, -1, -1,
                old_data={"path": tuple(self._points)},
                new_data={"path": tuple(points)},
            ))
            self._points = points
            self._reserve_ids(points)
        self._notify()
        return True

    # ----------------------------------------------------------------
    # Оптимизация
    # ----------------------------------------------------------------

    def apply_optimized(self, snapshot: Sequence[Waypoint], optimized: Sequence[Waypoint]) -> bool:
        """
        Принять результат оптимизатора, посчитанный по snapshot.

        Порядок не изменился — ничего не делает. Маршрут правили, пока
        шла оптимизация, — OptimizationError, маршрут не трогается.
        """
        snapshot = list(snapshot)
        optimized = list(optimized)
        with self._lock:
            if self._points != snapshot:
                raise OptimizationError("path was edited while optimization was running")
            if sorted(p.id for p in optimized) != sorted(p.id for p in snapshot):
                raise OptimizationError("optimizer returned a different set of points")
            if [p.id for p in optimized] == [p.id for p in snapshot]:
                return False
            return self.replace_path(optimized)

    def optimize(self, worker, mesh=None) -> Future:
        """
        Запустить оптимизацию порядка точек в worker (OptimizerWorker).

        Returns:
            Future[bool]: True, если маршрут заменён. Маршрут меняется
            только после получения полного результата.
        """
        outer: Future = Future()
        snapshot = self.points
        if len(snapshot) < worker.config.min_points:
            outer.set_result(False)
            return outer

        inner = worker.submit(snapshot, mesh)

        def done(f: Future):
            if f.cancelled():
                outer.cancel()
                return
            exc = f.exception()
            if exc is not None:
                if not isinstance(exc, OptimizationError):
                    exc = OptimizationError(str(exc))
                outer.set_exception(exc)
                return
            try:
                outer.set_result(self.apply_optimized(snapshot, f.result()))
            except OptimizationError as e:
                log.warning(f"[PathHistory] {e}")
                outer.set_exception(e)
            except Exception as e:
                log.error(e, "[PathHistory] Failed to apply optimized path")
                outer.set_exception(e)

        inner.add_done_callback(done)
        return outer
