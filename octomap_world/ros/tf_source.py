"""
tf2 adapter for the TransformSource protocol.

Owns the tf2 buffer and listener; all coordinator code only sees
can_transform / lookup_transform and TransformLookupError.
"""

from __future__ import annotations

import tf2_ros
from rclpy.duration import Duration
from rclpy.node import Node
from rclpy.qos import DurabilityPolicy, HistoryPolicy, QoSProfile, ReliabilityPolicy
from rclpy.time import Time
from tf2_ros import TransformException

from octomap_world.errors import TransformLookupError
from octomap_world.ros.conversions import transform_stamped_to_transformation
from octomap_world.transforms import Transformation


def coerce_time(stamp) -> Time:
    """
    Coerce various stamp types into `rclpy.time.Time`.

    `None` (the LATEST sentinel) maps to `Time()`, which tf2 reads as
    "latest available". `tf2_ros.Buffer.lookup_transform()` expects an
    `rclpy.time.Time`; passing `builtin_interfaces.msg.Time` can raise
    `TypeError` during rosbag playback.
    """
    if stamp is None:
        return Time()
    if isinstance(stamp, Time):
        return stamp
    return Time.from_msg(stamp)


class TfTransformSource:
    """tf2_ros.Buffer + TransformListener behind the TransformSource protocol."""

    def __init__(self, node: Node, timeout_sec: float):
        self._timeout = Duration(seconds=float(timeout_sec))
        self.buffer = tf2_ros.Buffer()
        # Rosbag playback frequently publishes static transforms on /tf_static.
        # Use TRANSIENT_LOCAL for static TF so late-joining subscribers receive it.
        tf_qos = QoSProfile(
            depth=100,
            reliability=ReliabilityPolicy.RELIABLE,
            durability=DurabilityPolicy.VOLATILE,
            history=HistoryPolicy.KEEP_LAST,
        )
        tf_static_qos = QoSProfile(
            depth=100,
            reliability=ReliabilityPolicy.RELIABLE,
            durability=DurabilityPolicy.TRANSIENT_LOCAL,
            history=HistoryPolicy.KEEP_LAST,
        )
        self.listener = tf2_ros.TransformListener(
            self.buffer, node, qos=tf_qos, static_qos=tf_static_qos
        )

    def can_transform(self, target_frame: str, source_frame: str, stamp) -> bool:
        try:
            return bool(self.buffer.can_transform(target_frame, source_frame, coerce_time(stamp)))
        except (TypeError, ValueError):
            return False

    def lookup_transform(self, target_frame: str, source_frame: str, stamp) -> Transformation:
        try:
            t = self.buffer.lookup_transform(
                target_frame, source_frame, coerce_time(stamp), timeout=self._timeout
            )
        except (TransformException, TypeError, ValueError) as e:
            raise TransformLookupError(f"{target_frame} <- {source_frame}: {e}") from e
        return transform_stamped_to_transformation(t)
