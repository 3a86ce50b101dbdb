"""
Octomap manager - framework-agnostic coordinator.

Wires calibration state, pose resolution, the ingestion gate and the map
operations from one ManagerParams instance. The ROS node in
octomap_world.ros.manager_node only decodes messages and calls in here.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

from octomap_world.calibration import CameraCalibration, ReprojectionCalibration
from octomap_world.config import ManagerParams
from octomap_world.diagnostics import IngestionStats, build_status
from octomap_world.engine import MapEngine, MapSnapshot
from octomap_world.ingestion import IngestionGate
from octomap_world.observations import DisparityObservation, PointcloudObservation
from octomap_world.operations import MapOperations, MapPublishers
from octomap_world.transforms import PoseResolver, TransformSource


class OctomapManager:
    """Single owner of the coordinator state for one map engine."""

    def __init__(
        self,
        params: ManagerParams,
        engine: MapEngine,
        transform_source: TransformSource,
        publishers: MapPublishers,
        logger,
    ):
        self.params = params
        self.engine = engine
        self._logger = logger
        self.start_time = time.time()

        self.stats = IngestionStats()
        self.calibration = ReprojectionCalibration(logger, params.full_image_size)
        # Try to initialize Q from parameters, if available.
        if params.Q is not None:
            self.calibration.set_from_config(params.Q)

        self.resolver = PoseResolver(transform_source, logger, stats=self.stats)
        self.gate = IngestionGate(
            engine, self.calibration, self.resolver, params.world_frame, logger, stats=self.stats
        )
        self.operations = MapOperations(engine, params.world_frame, publishers, logger)

    # -------------------------------------------------------------------------
    # Sensor entry points
    # -------------------------------------------------------------------------

    def on_left_camera_info(self, record: CameraCalibration) -> None:
        self.calibration.on_left_calibration(record)

    def on_right_camera_info(self, record: CameraCalibration) -> None:
        self.calibration.on_right_calibration(record)

    def insert_disparity(self, obs: DisparityObservation) -> bool:
        return self.gate.insert_disparity(obs)

    def insert_pointcloud(self, obs: PointcloudObservation) -> bool:
        return self.gate.insert_pointcloud(obs)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def reset_map(self) -> bool:
        return self.operations.reset_map()

    def publish_all(self) -> bool:
        return self.operations.publish_all()

    def get_map(self) -> Optional[MapSnapshot]:
        return self.operations.get_map()

    def save_map(self, path: str) -> bool:
        return self.operations.save_map(path)

    def load_map(self, path: str) -> bool:
        return self.operations.load_map(path)

    def set_box_occupancy(self, center, size, set_occupied: bool) -> bool:
        return self.operations.set_box_occupancy(center, size, set_occupied)

    def status(self) -> Dict[str, Any]:
        return build_status(self.stats, self.calibration, self.start_time)
