"""
Lightweight observation data types for the ingestion gate.

Only data structures live here; message decoding is in
octomap_world.ros.conversions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass(frozen=True, eq=False)
class DisparityImage:
    """Dense disparity (pixels) plus the stereo constants needed to range it."""
    disparity: np.ndarray = field(repr=False)  # (H, W) float32, invalid < min_disparity
    focal_length: float
    baseline: float
    min_disparity: float = 0.0
    max_disparity: float = float("inf")

    @property
    def width(self) -> int:
        return int(self.disparity.shape[1])

    @property
    def height(self) -> int:
        return int(self.disparity.shape[0])


@dataclass(frozen=True, eq=False)
class DisparityObservation:
    frame_id: str
    stamp: Any  # transform-source time type (rclpy Time / builtin Time)
    disparity: DisparityImage


@dataclass(frozen=True, eq=False)
class PointcloudObservation:
    frame_id: str
    stamp: Any
    points: np.ndarray = field(repr=False)  # (N, 3) in the sensor frame
