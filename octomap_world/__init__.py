"""
Octomap World - sensor ingestion & calibration coordinator.

ORCHESTRATION ONLY: the occupancy representation is an external map
engine (see octomap_world.engine.MapEngine).

Modules:
- calibration: stereo reprojection matrix state
- transforms: pose resolution against the transform directory
- ingestion: forward-or-drop gate for disparity and point clouds
- operations: reset / publish / get / save / load / box occupancy
- manager: wiring of the above from one ManagerParams
- ros/: rclpy node, tf2 adapter and message conversions
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "CameraCalibration",
    "ReprojectionCalibration",
    "compute_reprojection",
    "ManagerParams",
    "OctomapParameters",
    "MapEngine",
    "MapSnapshot",
    "load_map_engine",
    "IngestionGate",
    "MapOperations",
    "MapPublishers",
    "OctomapManager",
    "PoseResolver",
    "Transformation",
]

_LAZY_ATTRS: dict[str, tuple[str, str]] = {
    "CameraCalibration": ("octomap_world.calibration", "CameraCalibration"),
    "ReprojectionCalibration": ("octomap_world.calibration", "ReprojectionCalibration"),
    "compute_reprojection": ("octomap_world.calibration", "compute_reprojection"),
    "ManagerParams": ("octomap_world.config", "ManagerParams"),
    "OctomapParameters": ("octomap_world.config", "OctomapParameters"),
    "MapEngine": ("octomap_world.engine", "MapEngine"),
    "MapSnapshot": ("octomap_world.engine", "MapSnapshot"),
    "load_map_engine": ("octomap_world.engine", "load_map_engine"),
    "IngestionGate": ("octomap_world.ingestion", "IngestionGate"),
    "MapOperations": ("octomap_world.operations", "MapOperations"),
    "MapPublishers": ("octomap_world.operations", "MapPublishers"),
    "OctomapManager": ("octomap_world.manager", "OctomapManager"),
    "PoseResolver": ("octomap_world.transforms", "PoseResolver"),
    "Transformation": ("octomap_world.transforms", "Transformation"),
}


def __getattr__(name: str) -> Any:
    target = _LAZY_ATTRS.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = target
    module = import_module(module_name)
    return getattr(module, attr_name)


def __dir__() -> list[str]:
    return sorted(set(globals().keys()) | set(_LAZY_ATTRS.keys()))
