"""
KpiScheduler — отложенный пересчёт KPI после правок маршрута.

Каждая новая заявка откладывает расчёт на debounce секунд и делает
устаревшими все предыдущие. Результат устаревшей заявки, если расчёт
уже шёл, отбрасывается и не перезаписывает более свежий.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional, Sequence

from skypath import log
from skypath.errors import InputError, KpiCancelled
from skypath.events import Event
from skypath.kpi.metrics import KPIMetrics
from skypath.mesh.flat_mesh import FlatMesh
from skypath.waypoint import Waypoint


class KpiScheduler:
    """
    Attributes:
        on_result: Event[KPIMetrics], свежий результат.
        on_error: Event[Exception], ошибка свежей заявки.
    """

    def __init__(
        self,
        compute: Callable[[Sequence[Waypoint], Optional[FlatMesh]], KPIMetrics],
        debounce: float = 0.5,
    ):
        self._compute = compute
        self.debounce = debounce
        self.on_result: Event[KPIMetrics] = Event("KpiScheduler.on_result")
        self.on_error: Event[Exception] = Event("KpiScheduler.on_error")
        self._lock = threading.Lock()
        self._generation = 0
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple] = None
        self._latest: Optional[KPIMetrics] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def latest(self) -> Optional[KPIMetrics]:
        """Последний принятый результат."""
        return self._latest

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def request(self, path: Sequence[Waypoint], mesh: Optional[FlatMesh]) -> int:
        """Запланировать пересчёт. Возвращает номер заявки."""
        snapshot = tuple(path)
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (generation, snapshot, mesh)
            self._timer = threading.Timer(self.debounce, self._fire, args=(generation,))
            self._timer.daemon = True
            self._timer.start()
        return generation

    def flush(self) -> Optional[KPIMetrics]:
        """Выполнить ожидающую заявку немедленно в текущем потоке."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            pending = self._pending
            self._pending = None
        if pending is None:
            return None
        return self._run(*pending)

    def cancel(self) -> None:
        """Отменить ожидающую заявку; идущий расчёт станет устаревшим."""
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._pending is None or self._pending[0] != generation:
                return
            pending = self._pending
            self._pending = None
            self._timer = None
        self._run(*pending)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _run(self, generation, path, mesh) -> Optional[KPIMetrics]:
        try:
            result = self._compute(path, mesh)
        except (InputError, KpiCancelled) as e:
            if self._is_current(generation):
                log.warning(f"[KpiScheduler] Recompute #{generation} skipped: {e}")
                self.on_error.emit(e)
            return None
        except Exception as e:
            if self._is_current(generation):
                log.error(e, f"[KpiScheduler] Recompute #{generation} failed")
                self.on_error.emit(e)
            return None

        if not self._is_current(generation):
            log.debug(f"[KpiScheduler] Dropping stale result #{generation}")
            return None
        self._latest = result
        self.on_result.emit(result)
        return result
