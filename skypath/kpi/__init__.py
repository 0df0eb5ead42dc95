"""KPI миссии: энергия, метрики, расчёт и отложенный пересчёт."""

from skypath.kpi.energy import (
    segment_lengths,
    path_length,
    flight_time,
    segment_energies,
    path_energy,
    cumulative_time,
    remaining_battery,
    WaypointDetail,
    waypoint_detail,
)
from skypath.kpi.metrics import KPIMetrics, KpiStatus
from skypath.kpi.calculator import KpiCalculator, KpiOptions, compute_kpis, compute_cumulative_coverage
from skypath.kpi.scheduler import KpiScheduler

__all__ = [
    "segment_lengths",
    "path_length",
    "flight_time",
    "segment_energies",
    "path_energy",
    "cumulative_time",
    "remaining_battery",
    "WaypointDetail",
    "waypoint_detail",
    "KPIMetrics",
    "KpiStatus",
    "KpiCalculator",
    "KpiOptions",
    "compute_kpis",
    "compute_cumulative_coverage",
    "KpiScheduler",
]
