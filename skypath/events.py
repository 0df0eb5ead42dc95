"""Observer events used to notify about path, selection and KPI changes."""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

from skypath import log

T = TypeVar("T")


class Event(Generic[T]):
    """
    Список подписчиков с синхронной рассылкой.

    Usage:
        history.on_changed += handler     # subscribe
        history.on_changed -= handler     # unsubscribe
        history.on_changed.emit(points)   # notify all subscribers

    Обработчики вызываются в порядке подписки, в потоке вызывающего
    (для KpiScheduler и оптимизатора это фоновый поток). Ошибка одного
    обработчика логируется и не мешает остальным: изменение маршрута
    к моменту рассылки уже применено.
    """

    def __init__(self, name: str = "Event"):
        self.name = name
        self._handlers: list[Callable[[T], None]] = []
        self._lock = threading.Lock()

    def __iadd__(self, handler: Callable[[T], None]) -> "Event[T]":
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return self

    def __isub__(self, handler: Callable[[T], None]) -> "Event[T]":
        with self._lock:
            if handler in self._handlers:
                self._handlers.remove(handler)
        return self

    def emit(self, value: T) -> int:
        """Разослать value. Возвращает число обработчиков, завершившихся с ошибкой."""
        with self._lock:
            handlers = tuple(self._handlers)
        failed = 0
        for handler in handlers:
            try:
                handler(value)
            except Exception as e:
                failed += 1
                log.error(e, f"[{self.name}] handler {handler!r} failed")
        return failed

    def clear(self) -> None:
        with self._lock:
            self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)

    def __bool__(self) -> bool:
        return len(self._handlers) > 0
