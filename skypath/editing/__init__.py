"""Правка маршрута: история undo/redo и выбор точки."""

from skypath.editing.history import ActionType, HistoryAction, PathHistory, LONE_POINT_OFFSET
from skypath.editing.selection import SelectionContext

__all__ = [
    "ActionType",
    "HistoryAction",
    "PathHistory",
    "LONE_POINT_OFFSET",
    "SelectionContext",
]
