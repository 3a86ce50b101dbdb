"""
Map engine interface and plugin loading.

The occupancy representation itself lives outside this package. A
concrete engine subclasses MapEngine and is selected at startup with the
`map_engine` parameter ("package.module:ClassName").
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field, replace
from importlib import import_module
from typing import TYPE_CHECKING, Any, Optional, Tuple

import numpy as np

from octomap_world import constants
from octomap_world.errors import MapEngineLoadError

if TYPE_CHECKING:
    from octomap_world.config import OctomapParameters
    from octomap_world.observations import DisparityImage
    from octomap_world.transforms import Transformation


@dataclass(frozen=True)
class MapSnapshot:
    """Serialized map as produced by an engine (binary or full encoding)."""
    map_id: str
    binary: bool
    resolution: float
    data: bytes = field(repr=False)
    frame_id: str = ""

    @classmethod
    def empty(cls, binary: bool) -> "MapSnapshot":
        return cls(map_id=constants.OCTOMAP_ID, binary=binary, resolution=0.0, data=b"")

    def stamped(self, frame_id: str) -> "MapSnapshot":
        return replace(self, frame_id=frame_id)


class MapEngine(abc.ABC):
    """Operations the coordinator needs from the occupancy map."""

    @abc.abstractmethod
    def set_octomap_parameters(self, params: "OctomapParameters") -> None:
        ...

    @abc.abstractmethod
    def insert_disparity_image(
        self,
        sensor_to_world: "Transformation",
        disparity: "DisparityImage",
        Q: np.ndarray,
        full_image_size: Tuple[int, int],
    ) -> None:
        ...

    @abc.abstractmethod
    def insert_pointcloud(self, sensor_to_world: "Transformation", points: np.ndarray) -> None:
        ...

    @abc.abstractmethod
    def set_occupied(self, center: np.ndarray, bounding_box_size: np.ndarray) -> None:
        ...

    @abc.abstractmethod
    def set_free(self, center: np.ndarray, bounding_box_size: np.ndarray) -> None:
        ...

    @abc.abstractmethod
    def reset_map(self) -> None:
        ...

    @abc.abstractmethod
    def generate_marker_array(self, frame_id: str) -> Tuple[Any, Any]:
        """Returns (occupied_markers, free_markers) expressed in frame_id."""

    @abc.abstractmethod
    def get_octomap_binary_msg(self) -> Optional[MapSnapshot]:
        """None when the engine cannot serialize (e.g. empty map)."""

    @abc.abstractmethod
    def get_octomap_full_msg(self) -> Optional[MapSnapshot]:
        """None when the engine cannot serialize (e.g. empty map)."""

    @abc.abstractmethod
    def write_octomap_to_file(self, path: str) -> bool:
        ...

    @abc.abstractmethod
    def load_octomap_from_file(self, path: str) -> bool:
        ...


def _resolve_class(spec: str):
    module_name, sep, attr_name = spec.partition(":")
    if not sep or not module_name or not attr_name:
        raise MapEngineLoadError(
            f"Invalid map_engine spec. Expected 'package.module:ClassName', got: {spec!r}"
        )
    try:
        module = import_module(module_name)
    except ImportError as e:
        raise MapEngineLoadError(f"Cannot import map engine module {module_name!r}: {e}") from e
    try:
        return getattr(module, attr_name)
    except AttributeError as e:
        raise MapEngineLoadError(f"Module {module_name!r} has no attribute {attr_name!r}") from e


def load_map_engine(spec: str, params: "OctomapParameters") -> MapEngine:
    """Import, instantiate and configure the engine named by `spec`."""
    cls = _resolve_class(spec)
    if not (isinstance(cls, type) and issubclass(cls, MapEngine)):
        raise MapEngineLoadError(f"{spec!r} is not a MapEngine subclass")
    try:
        engine = cls()
    except TypeError as e:
        raise MapEngineLoadError(f"Cannot construct map engine {spec!r}: {e}") from e
    engine.set_octomap_parameters(params)
    return engine
