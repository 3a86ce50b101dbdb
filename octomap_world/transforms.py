"""
Sensor pose resolution against the transform directory.

NO caching: every observation resolves its own pose. The transform
directory (tf2 in the ROS runtime) is consumed only through the
TransformSource protocol below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import numpy as np
from scipy.spatial.transform import Rotation

from octomap_world.errors import TransformLookupError


# Stamp sentinel meaning "latest available transform".
LATEST = None


@dataclass(frozen=True, eq=False)
class Transformation:
    """Rigid-body transform (source frame -> target frame)."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))  # (3, 3)
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))  # (3,)

    @classmethod
    def from_quaternion(cls, translation, quaternion_xyzw) -> "Transformation":
        R = Rotation.from_quat(np.asarray(quaternion_xyzw, dtype=float)).as_matrix()
        return cls(rotation=R, translation=np.asarray(translation, dtype=float).reshape(3))

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        """Apply to (N, 3) points."""
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        return points @ self.rotation.T + self.translation


class TransformSource(Protocol):
    """Time-indexed transform directory (target <- source)."""

    def can_transform(self, target_frame: str, source_frame: str, stamp: Any) -> bool:
        ...

    def lookup_transform(self, target_frame: str, source_frame: str, stamp: Any) -> Transformation:
        """Raises TransformLookupError when no transform exists at `stamp`."""
        ...


class PoseResolver:
    """
    Maps (sensor frame, stamp) to a world-frame pose.

    Falls back to the latest transform when the exact-time one is not
    available (bag playback, static publishers with stale stamps).
    """

    def __init__(self, source: TransformSource, logger, stats=None):
        self._source = source
        self._logger = logger
        self._stats = stats

    def resolve(self, from_frame: str, to_frame: str, stamp: Any) -> Optional[Transformation]:
        time_to_lookup = stamp
        if not self._source.can_transform(to_frame, from_frame, time_to_lookup):
            time_to_lookup = LATEST
            self._logger.warn("Using latest TF transform instead of timestamp match.")
            if self._stats is not None:
                self._stats.note_latest_fallback()

        try:
            return self._source.lookup_transform(to_frame, from_frame, time_to_lookup)
        except TransformLookupError as e:
            self._logger.error(f"Error getting TF transform from sensor data: {e}")
            return None
