"""
Map maintenance operations exposed as request/response calls.

Each operation is a synchronous call-through to the map engine; the
periodic publish timer calls publish_all() exactly like the service does.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol

import numpy as np

from octomap_world.engine import MapEngine, MapSnapshot


class Publisher(Protocol):
    def publish(self, msg: Any) -> None:
        ...


@dataclass
class MapPublishers:
    """The four artifacts emitted on every publish_all."""
    occupied_nodes: Publisher
    free_nodes: Publisher
    binary_map: Publisher
    full_map: Publisher


def vector_to_array(vec) -> Optional[np.ndarray]:
    """
    Message-level 3-vector (geometry_msgs/Vector3 or a sequence) to float64.

    Returns None unless exactly three finite components are present.
    """
    if all(hasattr(vec, axis) for axis in ("x", "y", "z")):
        values = [vec.x, vec.y, vec.z]
    else:
        values = vec
    try:
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError):
        return None
    if arr.shape != (3,) or not np.all(np.isfinite(arr)):
        return None
    return arr


class MapOperations:
    """reset / publish-all / get / save / load / set-box-occupancy."""

    def __init__(self, engine: MapEngine, world_frame: str, publishers: MapPublishers, logger):
        self.engine = engine
        self.world_frame = world_frame
        self.publishers = publishers
        self._logger = logger

    def reset_map(self) -> bool:
        self.engine.reset_map()
        self._logger.info("Map reset")
        return True

    def publish_all(self) -> bool:
        occupied_nodes, free_nodes = self.engine.generate_marker_array(self.world_frame)
        self.publishers.occupied_nodes.publish(occupied_nodes)
        self.publishers.free_nodes.publish(free_nodes)

        binary_map = self.engine.get_octomap_binary_msg()
        full_map = self.engine.get_octomap_full_msg()
        # An unserializable map still publishes, as an empty message.
        if binary_map is None:
            binary_map = MapSnapshot.empty(binary=True)
        if full_map is None:
            full_map = MapSnapshot.empty(binary=False)
        self.publishers.binary_map.publish(binary_map.stamped(self.world_frame))
        self.publishers.full_map.publish(full_map.stamped(self.world_frame))
        return True

    def get_map(self) -> Optional[MapSnapshot]:
        full_map = self.engine.get_octomap_full_msg()
        if full_map is None:
            self._logger.error("Map engine could not serialize the full map")
            return None
        return full_map.stamped(self.world_frame)

    def save_map(self, path: str) -> bool:
        ok = bool(self.engine.write_octomap_to_file(path))
        if not ok:
            self._logger.error(f"Failed to save map to {path!r}")
        return ok

    def load_map(self, path: str) -> bool:
        ok = bool(self.engine.load_octomap_from_file(path))
        if not ok:
            self._logger.error(f"Failed to load map from {path!r}")
        return ok

    def set_box_occupancy(self, center, size, set_occupied: bool) -> bool:
        bounding_box_center = vector_to_array(center)
        bounding_box_size = vector_to_array(size)
        if bounding_box_center is None or bounding_box_size is None:
            self._logger.error("set_box_occupancy: center and size need 3 finite components")
            return False
        if np.any(bounding_box_size < 0.0):
            self._logger.error(f"set_box_occupancy: negative box size {bounding_box_size.tolist()}")
            return False

        try:
            if set_occupied:
                self.engine.set_occupied(bounding_box_center, bounding_box_size)
            else:
                self.engine.set_free(bounding_box_center, bounding_box_size)
        except Exception as e:
            self._logger.error(f"set_box_occupancy failed: {type(e).__name__}: {e}")
            return False
        return True
