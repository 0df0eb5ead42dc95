"""Видимость и покрытие меша."""

from skypath.coverage.visibility import visible_triangles
from skypath.coverage.calculator import CoverageCalculator, CoverageMetrics, ViewpointMetrics

__all__ = [
    "visible_triangles",
    "CoverageCalculator",
    "CoverageMetrics",
    "ViewpointMetrics",
]
