"""Выбранная точка маршрута."""

from __future__ import annotations

from typing import Optional

from skypath.events import Event


class SelectionContext:
    """
    Индекс выбранной точки.

    Передаётся явно тем компонентам, которым он нужен. После каждой
    правки маршрута индекс проверяется: выход за конец прижимается
    к последней точке, пустой маршрут снимает выбор.
    """

    def __init__(self) -> None:
        self._index: Optional[int] = None
        self._count = 0
        self.on_selection_changed: Event[Optional[int]] = Event("SelectionContext.on_selection_changed")

    @property
    def index(self) -> Optional[int]:
        return self._index

    def attach(self, history) -> None:
        """Следить за маршрутом PathHistory."""
        self._count = len(history)
        history.on_changed += self._on_path_changed
        self.validate(self._count)

    def detach(self, history) -> None:
        history.on_changed -= self._on_path_changed

    def select(self, index: Optional[int]) -> None:
        if index is not None and not (0 <= index < self._count):
            raise IndexError(f"waypoint index {index} out of range [0, {self._count})")
        self._set(index)

    def clear(self) -> None:
        self._set(None)

    def validate(self, count: int) -> None:
        self._count = count
        if self._index is None:
            return
        if count == 0:
            self._set(None)
        elif self._index >= count:
            self._set(count - 1)

    def _on_path_changed(self, points) -> None:
        self.validate(len(points))

    def _set(self, index: Optional[int]) -> None:
        if index == self._index:
            return
        self._index = index
        self.on_selection_changed.emit(index)
