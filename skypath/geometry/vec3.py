"""Операции над трёхмерными векторами (numpy, shape (3,))."""

from __future__ import annotations

import numpy as np

EPSILON = 1e-9


def vec3(x, y=None, z=None) -> np.ndarray:
    """
    Собрать вектор float64.

    vec3(1, 2, 3), vec3((1, 2, 3)) и vec3({"x": 1, "y": 2, "z": 3}) эквивалентны.
    """
    if y is None and z is None:
        if isinstance(x, dict):
            return np.array([x.get("x", 0.0), x.get("y", 0.0), x.get("z", 0.0)], dtype=np.float64)
        return np.asarray(x, dtype=np.float64).reshape(3).copy()
    return np.array([x, y, z], dtype=np.float64)


def length(v: np.ndarray) -> float:
    return float(np.linalg.norm(v))


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.linalg.norm(np.asarray(b, dtype=np.float64) - np.asarray(a, dtype=np.float64)))


def normalize(v: np.ndarray, fallback: np.ndarray | None = None, eps: float = EPSILON) -> np.ndarray:
    """
    Единичный вектор того же направления.

    Если длина меньше eps, возвращается fallback (или сам вектор без изменений,
    когда fallback не задан). Деления на ноль не бывает.
    """
    v = np.asarray(v, dtype=np.float64)
    n = np.linalg.norm(v)
    if n < eps:
        if fallback is not None:
            return np.asarray(fallback, dtype=np.float64).copy()
        return v.copy()
    return v / n


def normalize_rows(v: np.ndarray, eps: float = EPSILON) -> np.ndarray:
    """Нормализация массива векторов (N, 3). Нулевые строки остаются нулевыми."""
    n = np.linalg.norm(v, axis=1, keepdims=True)
    safe = np.where(n < eps, 1.0, n)
    out = v / safe
    out[n[:, 0] < eps] = 0.0
    return out
