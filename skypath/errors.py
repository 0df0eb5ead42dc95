"""Исключения skypath."""


class SkypathError(Exception):
    """Базовое исключение библиотеки."""


class InputError(SkypathError, ValueError):
    """Некорректные входные данные. Проверяется сразу, до любых вычислений."""


class MeshInputError(InputError):
    """Меш не проходит валидацию (длины массивов, индексы вне диапазона)."""


class PathInputError(InputError):
    """Путь не подходит для запрошенной операции."""


class OptimizationError(SkypathError):
    """Оптимизатор завершился с ошибкой. Путь при этом не меняется."""

    def __init__(self, message: str):
        if not message.startswith("Optimization failed"):
            message = f"Optimization failed: {message}"
        super().__init__(message)


class OptimizationCancelled(OptimizationError):
    """Оптимизация отменена вызывающей стороной."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)


class KpiCancelled(SkypathError):
    """Расчёт KPI отменён."""
