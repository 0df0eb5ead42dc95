"""
OptimizerWorker — оптимизация маршрута в фоновом потоке.

Граница с потоком — обмен сообщениями: на вход поток получает словарь
с записями точек и мешем, на выход отдаёт словарь с записями точек или
текстом ошибки. Общих изменяемых объектов у потоков нет.
"""

from __future__ import annotations

from concurrent.futures import Future, InvalidStateError
from enum import Enum
import threading
from typing import Optional, Sequence

from skypath import log
from skypath.config import OptimizerConfig
from skypath.errors import OptimizationCancelled, OptimizationError
from skypath.mesh.flat_mesh import FlatMesh
from skypath.planning.optimizer import PathOptimizer
from skypath.records import mesh_from_dict, mesh_to_dict, waypoints_from_records, waypoints_to_records
from skypath.waypoint import Waypoint


class WorkerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


def solve_message(message: dict, config: OptimizerConfig, cancel_event: threading.Event) -> dict:
    """
    Обработать сообщение-запрос.

    Запрос: {"points": [...], "mesh": {...} | None}.
    Ответ: {"ok": True, "points": [...]} или {"ok": False, "error": str, "cancelled": bool}.
    """
    try:
        points = waypoints_from_records(message["points"])
        mesh = mesh_from_dict(message.get("mesh"))
        result = PathOptimizer(config, cancel_event).optimize(points, mesh)
        return {"ok": True, "points": waypoints_to_records(result)}
    except OptimizationCancelled as e:
        return {"ok": False, "error": str(e), "cancelled": True}
    except Exception as e:
        log.error(e, "[OptimizerWorker] Optimization failed")
        return {"ok": False, "error": str(e), "cancelled": False}


class OptimizerWorker:
    """
    Одна оптимизация за раз; новый submit отменяет предыдущую.

    Состояния: IDLE → RUNNING → {DONE, FAILED, CANCELLED}.

    Usage:
        worker = OptimizerWorker()
        future = worker.submit(points, mesh)
        new_points = future.result()  # OptimizationError при сбое
    """

    def __init__(self, config: Optional[OptimizerConfig] = None):
        self.config = config or OptimizerConfig()
        self._lock = threading.Lock()
        self._state = WorkerState.IDLE
        self._thread: Optional[threading.Thread] = None
        self._cancel_event: Optional[threading.Event] = None
        self._future: Optional[Future] = None

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == WorkerState.RUNNING

    def submit(self, points: Sequence[Waypoint], mesh: Optional[FlatMesh] = None) -> Future:
        """Запустить оптимизацию. Future разрешается списком Waypoint."""
        self.cancel()

        message = {"points": waypoints_to_records(points), "mesh": mesh_to_dict(mesh)}
        cancel_event = threading.Event()
        future: Future = Future()
        thread = threading.Thread(
            target=self._run,
            args=(message, cancel_event, future),
            name="skypath-optimizer",
            daemon=True,
        )
        with self._lock:
            self._cancel_event = cancel_event
            self._future = future
            self._thread = thread
            self._state = WorkerState.RUNNING
        thread.start()
        return future

    def cancel(self) -> bool:
        """Прервать текущую оптимизацию. True, если было что прерывать."""
        with self._lock:
            if self._state != WorkerState.RUNNING:
                return False
            self._cancel_event.set()
            self._future.cancel()
            self._state = WorkerState.CANCELLED
        log.info("[OptimizerWorker] Optimization cancelled")
        return True

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self, message: dict, cancel_event: threading.Event, future: Future) -> None:
        reply = solve_message(message, self.config, cancel_event)
        with self._lock:
            current = future is self._future
            if cancel_event.is_set() or future.cancelled():
                return
            if current:
                self._state = WorkerState.DONE if reply["ok"] else WorkerState.FAILED
        try:
            if reply["ok"]:
                future.set_result(waypoints_from_records(reply["points"]))
            elif reply.get("cancelled"):
                future.set_exception(OptimizationCancelled(reply["error"]))
            else:
                future.set_exception(OptimizationError(reply["error"]))
        except InvalidStateError:
            log.debug("[OptimizerWorker] Result arrived after cancellation")
