"""
Ingestion gate: forward-or-drop decision per observation.

Orchestration only. Insertion math belongs to the map engine, and no
observation is buffered, reordered or retried here. Every failure drops
exactly one observation and never stops the stream.
"""

from __future__ import annotations

from typing import Optional

from octomap_world import constants
from octomap_world.calibration import ReprojectionCalibration
from octomap_world.diagnostics import IngestionStats
from octomap_world.engine import MapEngine
from octomap_world.observations import DisparityObservation, PointcloudObservation
from octomap_world.transforms import PoseResolver


class IngestionGate:
    """Disparity and point-cloud entry points into the map engine."""

    def __init__(
        self,
        engine: MapEngine,
        calibration: ReprojectionCalibration,
        resolver: PoseResolver,
        world_frame: str,
        logger,
        stats: Optional[IngestionStats] = None,
    ):
        self.engine = engine
        self.calibration = calibration
        self.resolver = resolver
        self.world_frame = world_frame
        self._logger = logger
        self.stats = stats if stats is not None else IngestionStats()

    def insert_disparity(self, obs: DisparityObservation) -> bool:
        """Returns True if the disparity image reached the engine."""
        self.stats.bump("disparity", "received")

        # One read: Q and image size come from the same state.
        ready = self.calibration.ready_state()
        if ready is None:
            self.stats.bump("disparity", "dropped_not_ready")
            self._logger.warn(
                "No camera info available yet, skipping adding disparity.",
                throttle_duration_sec=constants.DISPARITY_WARN_THROTTLE_SEC,
            )
            return False

        sensor_to_world = self.resolver.resolve(obs.frame_id, self.world_frame, obs.stamp)
        if sensor_to_world is None:
            self.stats.bump("disparity", "dropped_no_pose")
            return False

        try:
            self.engine.insert_disparity_image(
                sensor_to_world, obs.disparity, ready.q, ready.image_size
            )
        except Exception as e:
            self.stats.bump("disparity", "dropped_engine_error")
            self._logger.error(
                f"Disparity insertion failed ({obs.frame_id}): {type(e).__name__}: {e}"
            )
            return False

        if self.stats.bump("disparity", "inserted") == 1:
            self._logger.info(
                f"First disparity image inserted, frame_id={obs.frame_id}, "
                f"size={obs.disparity.width}x{obs.disparity.height}"
            )
        return True

    def insert_pointcloud(self, obs: PointcloudObservation) -> bool:
        """Returns True if the point cloud reached the engine."""
        self.stats.bump("pointcloud", "received")

        sensor_to_world = self.resolver.resolve(obs.frame_id, self.world_frame, obs.stamp)
        if sensor_to_world is None:
            self.stats.bump("pointcloud", "dropped_no_pose")
            return False

        try:
            self.engine.insert_pointcloud(sensor_to_world, obs.points)
        except Exception as e:
            self.stats.bump("pointcloud", "dropped_engine_error")
            self._logger.error(
                f"Pointcloud insertion failed ({obs.frame_id}): {type(e).__name__}: {e}"
            )
            return False

        if self.stats.bump("pointcloud", "inserted") == 1:
            self._logger.info(
                f"First pointcloud inserted, frame_id={obs.frame_id}, points={len(obs.points)}"
            )
        return True
