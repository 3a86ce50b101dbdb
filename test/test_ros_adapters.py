"""
Tests for the rclpy-facing adapters (skipped outside a ROS 2 environment).
"""

import pytest

from octomap_world.errors import MapEngineLoadError


class TestCoerceTime:
    @pytest.fixture
    def tf_source_module(self):
        pytest.importorskip("rclpy")
        return pytest.importorskip("octomap_world.ros.tf_source")

    def test_latest_is_zero_time(self, tf_source_module):
        from rclpy.time import Time

        from octomap_world.transforms import LATEST

        stamp = tf_source_module.coerce_time(LATEST)

        assert isinstance(stamp, Time)
        assert stamp.nanoseconds == 0

    def test_builtin_stamp_converted(self, tf_source_module):
        from builtin_interfaces.msg import Time as TimeMsg

        stamp = tf_source_module.coerce_time(TimeMsg(sec=3, nanosec=5))

        assert stamp.nanoseconds == 3_000_000_005

    def test_rclpy_time_passed_through(self, tf_source_module):
        from rclpy.time import Time

        t = Time(seconds=7)

        assert tf_source_module.coerce_time(t) is t


class TestMain:
    def test_shutdown_when_construction_fails(self, monkeypatch):
        pytest.importorskip("rclpy")
        manager_node = pytest.importorskip("octomap_world.ros.manager_node")

        calls = []
        monkeypatch.setattr(manager_node.rclpy, "init", lambda *a, **k: calls.append("init"))
        monkeypatch.setattr(manager_node.rclpy, "shutdown", lambda *a, **k: calls.append("shutdown"))
        monkeypatch.setattr(manager_node.rclpy, "spin", lambda *a, **k: calls.append("spin"))

        def failing_node():
            raise MapEngineLoadError("Cannot import map engine module 'missing'")

        monkeypatch.setattr(manager_node, "OctomapManagerNode", failing_node)

        with pytest.raises(MapEngineLoadError):
            manager_node.main()

        assert calls == ["init", "shutdown"]
