"""
ROS message <-> octomap_world type conversions - NO LOGIC.

Buffer decoding lives in octomap_world.decoding (numpy directly on the
message buffers; no cv_bridge or sensor_msgs_py dependency).
"""

from __future__ import annotations

import numpy as np
from octomap_msgs.msg import Octomap
from sensor_msgs.msg import CameraInfo, PointCloud2
from stereo_msgs.msg import DisparityImage as DisparityImageMsg

from octomap_world.calibration import CameraCalibration
from octomap_world.decoding import image_32fc1_to_array, pointcloud2_to_xyz
from octomap_world.engine import MapSnapshot
from octomap_world.observations import DisparityImage, DisparityObservation, PointcloudObservation
from octomap_world.transforms import Transformation


def camera_info_to_calibration(msg: CameraInfo) -> CameraCalibration:
    return CameraCalibration(
        frame_id=msg.header.frame_id,
        width=int(msg.width),
        height=int(msg.height),
        K=np.asarray(msg.k, dtype=np.float64).reshape(3, 3),
        P=np.asarray(msg.p, dtype=np.float64).reshape(3, 4),
    )


def disparity_msg_to_observation(msg: DisparityImageMsg) -> DisparityObservation:
    disparity = DisparityImage(
        disparity=image_32fc1_to_array(msg.image),
        focal_length=float(msg.f),
        baseline=float(msg.t),
        min_disparity=float(msg.min_disparity),
        max_disparity=float(msg.max_disparity),
    )
    return DisparityObservation(
        frame_id=msg.header.frame_id, stamp=msg.header.stamp, disparity=disparity
    )


def pointcloud_msg_to_observation(msg: PointCloud2) -> PointcloudObservation:
    return PointcloudObservation(
        frame_id=msg.header.frame_id, stamp=msg.header.stamp, points=pointcloud2_to_xyz(msg)
    )


def transform_stamped_to_transformation(t) -> Transformation:
    trans = t.transform.translation
    rot = t.transform.rotation
    return Transformation.from_quaternion(
        [trans.x, trans.y, trans.z], [rot.x, rot.y, rot.z, rot.w]
    )


def snapshot_to_octomap_msg(snapshot: MapSnapshot, stamp=None) -> Octomap:
    msg = Octomap()
    msg.header.frame_id = snapshot.frame_id
    if stamp is not None:
        msg.header.stamp = stamp
    msg.binary = bool(snapshot.binary)
    msg.id = snapshot.map_id
    msg.resolution = float(snapshot.resolution)
    msg.data = np.frombuffer(snapshot.data, dtype=np.int8).tolist()
    return msg
