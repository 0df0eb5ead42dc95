"""
Преобразование между простыми словарями (формат хранения и обмена
с потоком оптимизатора) и моделями skypath.

Точка маршрута: {"id", "x", "y", "z", "normal": {"x", "y", "z"}};
допускается и {"id", "position": {"x", "y", "z"}, "normal": ...}.
Меш: {"vertices": [...], "indices": [...]}.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from skypath.errors import MeshInputError, PathInputError
from skypath.mesh.flat_mesh import FlatMesh
from skypath.waypoint import Waypoint


def _xyz(data, what: str) -> tuple[float, float, float]:
    try:
        if isinstance(data, dict):
            x, y, z = data["x"], data["y"], data["z"]
        else:
            x, y, z = data
        values = float(x), float(y), float(z)
    except KeyError as e:
        raise PathInputError(f"{what} is missing component {e}") from e
    except (TypeError, ValueError) as e:
        raise PathInputError(f"{what} must have 3 numeric components: {data!r}") from e
    if not all(math.isfinite(v) for v in values):
        raise PathInputError(f"{what} has non-finite components: {data!r}")
    return values


def waypoint_from_record(record: dict) -> Waypoint:
    if not isinstance(record, dict):
        raise PathInputError(f"waypoint record must be a dict, got {type(record).__name__}")
    if "id" not in record:
        raise PathInputError("waypoint record has no id")
    try:
        point_id = int(record["id"])
    except (TypeError, ValueError) as e:
        raise PathInputError(f"bad waypoint id: {record['id']!r}") from e

    if "position" in record:
        x, y, z = _xyz(record["position"], "position")
    else:
        x, y, z = _xyz(record, "waypoint")

    normal = record.get("normal")
    normal = _xyz(normal, "normal") if normal is not None else (0.0, 0.0, 0.0)
    return Waypoint(point_id, x, y, z, normal)


def waypoint_to_record(waypoint: Waypoint) -> dict:
    nx, ny, nz = waypoint.normal
    return {
        "id": waypoint.id,
        "x": waypoint.x,
        "y": waypoint.y,
        "z": waypoint.z,
        "normal": {"x": nx, "y": ny, "z": nz},
    }


def waypoints_from_records(records: Iterable[dict]) -> list[Waypoint]:
    return [waypoint_from_record(r) for r in records]


def waypoints_to_records(path: Iterable[Waypoint]) -> list[dict]:
    return [waypoint_to_record(w) for w in path]


def mesh_from_dict(data: Optional[dict]) -> Optional[FlatMesh]:
    """Меш из {"vertices", "indices"?}; None для None."""
    if data is None:
        return None
    if not isinstance(data, dict) or "vertices" not in data:
        raise MeshInputError("mesh record must be a dict with 'vertices'")
    return FlatMesh.from_flat(data["vertices"], data.get("indices"))


def mesh_to_dict(mesh: Optional[FlatMesh]) -> Optional[dict]:
    return None if mesh is None else mesh.to_flat()
