"""
ROS 2 bindings for octomap_world.

Everything importing rclpy, tf2_ros or message packages lives here; the
parent package stays importable (and testable) without a ROS install.
"""
