"""
Octomap Manager Node.

ROS 2 front door for the ingestion coordinator:
- cam0/cam1 camera_info -> reprojection calibration state
- disparity / pointcloud -> ingestion gate -> map engine
- reset_map / publish_all / get_map / save_map / load_map /
  set_box_occupancy services -> map operations
- latched occupied/free markers and binary/full octomaps, optionally on a timer

The map engine is a plugin named by the `map_engine` parameter.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

import rclpy
from octomap_msgs.msg import Octomap
from octomap_msgs.srv import GetOctomap
from rclpy.node import Node
from rclpy.qos import DurabilityPolicy, HistoryPolicy, QoSProfile, ReliabilityPolicy
from sensor_msgs.msg import CameraInfo, PointCloud2
from std_msgs.msg import String
from std_srvs.srv import Empty
from stereo_msgs.msg import DisparityImage
from visualization_msgs.msg import MarkerArray
from volumetric_msgs.srv import LoadMap, SaveMap, SetBoxOccupancy

from octomap_world import constants
from octomap_world.config import declare_manager_parameters, validate_manager_params
from octomap_world.engine import MapSnapshot, load_map_engine
from octomap_world.manager import OctomapManager
from octomap_world.operations import MapPublishers
from octomap_world.ros.conversions import (
    camera_info_to_calibration,
    disparity_msg_to_observation,
    pointcloud_msg_to_observation,
    snapshot_to_octomap_msg,
)
from octomap_world.ros.tf_source import TfTransformSource


class _OctomapPublisher:
    """Publishes MapSnapshots as octomap_msgs/Octomap stamped with node time."""

    def __init__(self, node: Node, publisher):
        self._node = node
        self._publisher = publisher

    def publish(self, snapshot: MapSnapshot) -> None:
        stamp = self._node.get_clock().now().to_msg()
        self._publisher.publish(snapshot_to_octomap_msg(snapshot, stamp))


class OctomapManagerNode(Node):
    """Sensor ingestion + map maintenance for one map engine."""

    def __init__(self, parameter_overrides: Optional[Dict[str, Any]] = None) -> None:
        overrides = None
        if parameter_overrides:
            from rclpy.parameter import Parameter
            overrides = [Parameter(k, value=v) for k, v in parameter_overrides.items()]
        super().__init__("octomap_manager", parameter_overrides=overrides)

        declare_manager_parameters(self)
        self.params = validate_manager_params(self)
        self._log_startup_manifest()

        if not self.params.map_engine:
            raise ValueError("octomap_manager: map_engine must be set ('package.module:ClassName')")
        self.engine = load_map_engine(self.params.map_engine, self.params.octomap)

        self.tf_source = TfTransformSource(self, self.params.tf_timeout_sec)
        publishers = self._advertise_publishers()
        self.manager = OctomapManager(
            self.params, self.engine, self.tf_source, publishers, self.get_logger()
        )

        self._subscribe()
        self._advertise_services()
        self._create_timers()

        self.get_logger().info(
            f"Octomap manager ready: world frame {self.params.world_frame!r}, "
            f"engine {self.params.map_engine}, calibration {self.manager.calibration.state.name}"
        )

    def _log_startup_manifest(self) -> None:
        self.get_logger().info("=" * 60)
        self.get_logger().info("OCTOMAP MANAGER PARAMETERS")
        self.get_logger().info("=" * 60)
        for key, value in self.params.to_flat().items():
            self.get_logger().info(f"  {key}: {value}")
        self.get_logger().info("=" * 60)

    def _subscribe(self) -> None:
        self.sub_left_info = self.create_subscription(
            CameraInfo, constants.LEFT_CAMERA_INFO_TOPIC,
            self.on_left_camera_info, constants.CAMERA_INFO_QUEUE_DEPTH)
        self.sub_right_info = self.create_subscription(
            CameraInfo, constants.RIGHT_CAMERA_INFO_TOPIC,
            self.on_right_camera_info, constants.CAMERA_INFO_QUEUE_DEPTH)
        self.sub_disparity = self.create_subscription(
            DisparityImage, constants.DISPARITY_TOPIC,
            self.on_disparity, constants.OBSERVATION_QUEUE_DEPTH)
        self.sub_pointcloud = self.create_subscription(
            PointCloud2, constants.POINTCLOUD_TOPIC,
            self.on_pointcloud, constants.OBSERVATION_QUEUE_DEPTH)

    def _advertise_publishers(self) -> MapPublishers:
        # Latched: late subscribers (rviz) get the last map.
        latched = QoSProfile(
            reliability=ReliabilityPolicy.RELIABLE,
            durability=DurabilityPolicy.TRANSIENT_LOCAL,
            history=HistoryPolicy.KEEP_LAST,
            depth=1,
        )
        self.pub_occupied = self.create_publisher(
            MarkerArray, constants.OCCUPIED_MARKERS_TOPIC, latched)
        self.pub_free = self.create_publisher(
            MarkerArray, constants.FREE_MARKERS_TOPIC, latched)
        self.pub_binary = self.create_publisher(Octomap, constants.BINARY_MAP_TOPIC, latched)
        self.pub_full = self.create_publisher(Octomap, constants.FULL_MAP_TOPIC, latched)
        self.pub_status = self.create_publisher(String, constants.INGESTION_STATUS_TOPIC, 10)

        return MapPublishers(
            occupied_nodes=self.pub_occupied,
            free_nodes=self.pub_free,
            binary_map=_OctomapPublisher(self, self.pub_binary),
            full_map=_OctomapPublisher(self, self.pub_full),
        )

    def _advertise_services(self) -> None:
        self.srv_reset = self.create_service(
            Empty, constants.RESET_MAP_SERVICE, self.reset_map_callback)
        self.srv_publish_all = self.create_service(
            Empty, constants.PUBLISH_ALL_SERVICE, self.publish_all_callback)
        self.srv_get_map = self.create_service(
            GetOctomap, constants.GET_MAP_SERVICE, self.get_map_callback)
        self.srv_save = self.create_service(
            SaveMap, constants.SAVE_MAP_SERVICE, self.save_map_callback)
        self.srv_load = self.create_service(
            LoadMap, constants.LOAD_MAP_SERVICE, self.load_map_callback)
        self.srv_set_box = self.create_service(
            SetBoxOccupancy, constants.SET_BOX_OCCUPANCY_SERVICE, self.set_box_occupancy_callback)

    def _create_timers(self) -> None:
        self.map_publish_timer = None
        period = self.params.map_publish_period_sec
        if period is not None:
            self.map_publish_timer = self.create_timer(period, self.publish_all_event)

        self.status_timer = None
        if self.params.status_publish_period_sec > 0.0:
            self.status_timer = self.create_timer(
                self.params.status_publish_period_sec, self._publish_status)

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def on_left_camera_info(self, msg: CameraInfo) -> None:
        self.manager.on_left_camera_info(camera_info_to_calibration(msg))

    def on_right_camera_info(self, msg: CameraInfo) -> None:
        self.manager.on_right_camera_info(camera_info_to_calibration(msg))

    def on_disparity(self, msg: DisparityImage) -> None:
        try:
            obs = disparity_msg_to_observation(msg)
        except ValueError as e:
            self.get_logger().warn(f"Disparity conversion failed: {e}", throttle_duration_sec=5.0)
            return
        self.manager.insert_disparity(obs)

    def on_pointcloud(self, msg: PointCloud2) -> None:
        try:
            obs = pointcloud_msg_to_observation(msg)
        except ValueError as e:
            self.get_logger().warn(f"Pointcloud conversion failed: {e}", throttle_duration_sec=5.0)
            return
        self.manager.insert_pointcloud(obs)

    # -------------------------------------------------------------------------
    # Services and timers
    # -------------------------------------------------------------------------

    def publish_all_event(self) -> None:
        self.manager.publish_all()

    def reset_map_callback(self, request, response):
        self.manager.reset_map()
        return response

    def publish_all_callback(self, request, response):
        self.manager.publish_all()
        return response

    def get_map_callback(self, request, response):
        snapshot = self.manager.get_map()
        if snapshot is not None:
            response.map = snapshot_to_octomap_msg(snapshot, self.get_clock().now().to_msg())
        return response

    def save_map_callback(self, request, response):
        response.success = self.manager.save_map(request.file_path)
        return response

    def load_map_callback(self, request, response):
        response.success = self.manager.load_map(request.file_path)
        return response

    def set_box_occupancy_callback(self, request, response):
        response.success = self.manager.set_box_occupancy(
            request.box_center, request.box_size, bool(request.set_occupied))
        return response

    def _publish_status(self) -> None:
        msg = String()
        msg.data = json.dumps(self.manager.status())
        self.pub_status.publish(msg)


def main() -> None:
    rclpy.init()
    node = None
    try:
        node = OctomapManagerNode()
        rclpy.spin(node)
    except KeyboardInterrupt:
        pass
    finally:
        if node is not None:
            node.destroy_node()
        rclpy.shutdown()


if __name__ == "__main__":
    main()
