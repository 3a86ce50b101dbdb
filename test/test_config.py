"""
Tests for the manager parameter models and YAML loading.
"""

import sys
import types
from pathlib import Path
from types import SimpleNamespace

import pytest
import yaml
from pydantic import ValidationError

from fakes import RecordingLogger
from octomap_world import constants
from octomap_world.config import (
    ManagerParams,
    OctomapParameters,
    declare_manager_parameters,
    get_default_config_path,
    load_manager_config,
    merge_configs,
    validate_manager_params,
)


class TestDefaults:
    def test_manager_defaults(self):
        params = ManagerParams()

        assert params.world_frame == "world"
        assert params.full_image_size == (752, 480)
        assert params.Q is None
        assert params.map_publish_period_sec is None

    def test_octomap_defaults(self):
        octomap = OctomapParameters()

        assert octomap.resolution == pytest.approx(0.15)
        assert octomap.probability_hit == pytest.approx(0.65)
        assert octomap.probability_miss == pytest.approx(0.4)
        assert octomap.threshold_min == pytest.approx(0.12)
        assert octomap.threshold_max == pytest.approx(0.97)
        assert octomap.threshold_occupancy == pytest.approx(0.7)
        assert octomap.filter_speckles is True
        assert octomap.sensor_max_range == pytest.approx(5.0)

    def test_shipped_yaml_matches_defaults(self, prod_config):
        from_yaml = ManagerParams.from_flat(prod_config)
        assert from_yaml == ManagerParams()


class TestFromFlat:
    def test_engine_keys_split_out(self):
        params = ManagerParams.from_flat({"tf_frame": "map", "resolution": 0.05, "filter_speckles": False})

        assert params.tf_frame == "map"
        assert params.octomap.resolution == pytest.approx(0.05)
        assert params.octomap.filter_speckles is False

    def test_empty_q_means_unset(self):
        assert ManagerParams.from_flat({"Q": []}).Q is None

    def test_q_kept_verbatim(self):
        q = [float(i) for i in range(16)]
        assert ManagerParams.from_flat({"Q": q}).Q == q

    def test_malformed_q_is_not_a_config_error(self):
        # Length is checked by the calibration state, which logs and carries on.
        assert len(ManagerParams.from_flat({"Q": [1.0] * 9}).Q) == 9

    def test_to_flat_roundtrip(self):
        params = ManagerParams.from_flat({"tf_frame": "odom", "sensor_max_range": 8.0})
        assert ManagerParams.from_flat(params.to_flat()) == params

    @pytest.mark.parametrize("frequency,period", [(0.0, None), (-1.0, None), (2.0, 0.5), (10.0, 0.1)])
    def test_publish_period(self, frequency, period):
        params = ManagerParams(map_publish_frequency=frequency)
        if period is None:
            assert params.map_publish_period_sec is None
        else:
            assert params.map_publish_period_sec == pytest.approx(period)


class TestValidation:
    @pytest.mark.parametrize("values", [
        {"resolution": 0.0},
        {"probability_hit": 1.5},
        {"threshold_min": 0.9, "threshold_max": 0.5},
        {"visualize_min_z": 2.0, "visualize_max_z": 1.0},
        {"full_image_width": 0},
        {"tf_frame": ""},
        {"not_a_parameter": 1},
    ])
    def test_rejected(self, values):
        with pytest.raises(ValidationError):
            ManagerParams.from_flat(values)

    def test_assignment_validated(self):
        params = ManagerParams()
        with pytest.raises(ValidationError):
            params.octomap.resolution = -1.0


class TestLoadManagerConfig:
    def test_shipped_config(self, prod_config_path):
        params = load_manager_config(prod_config_path)

        assert params.world_frame == constants.WORLD_FRAME_DEFAULT
        assert params.map_engine == ""
        assert params.octomap.resolution == pytest.approx(constants.RESOLUTION_DEFAULT)

    def test_preset_and_overrides(self, prod_config_path, tmp_path):
        preset = tmp_path / "preset.yaml"
        preset.write_text(yaml.safe_dump({
            "/**": {"ros__parameters": {"resolution": 0.1, "map_publish_frequency": 1.0}}
        }))

        params = load_manager_config(
            prod_config_path, preset, overrides={"map_publish_frequency": 4.0}
        )

        assert params.octomap.resolution == pytest.approx(0.1)
        assert params.map_publish_period_sec == pytest.approx(0.25)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_manager_config(tmp_path / "missing.yaml")

    def test_merge_is_deep(self):
        merged = merge_configs({"octomap": {"resolution": 0.2, "sensor_max_range": 3.0}},
                               {"octomap": {"resolution": 0.1}})
        assert merged == {"octomap": {"resolution": 0.1, "sensor_max_range": 3.0}}


class _ParameterNode:
    """Node-shaped parameter store: declare/has/get plus a logger."""

    def __init__(self, values=None):
        self.values = dict(values or {})
        self.declared = []
        self.logger = RecordingLogger()

    def declare_parameter(self, name, value=None, descriptor=None):
        self.declared.append((name, value, descriptor))
        self.values.setdefault(name, value)

    def has_parameter(self, name):
        return name in self.values

    def get_parameter(self, name):
        return SimpleNamespace(value=self.values[name])

    def get_logger(self):
        return self.logger


class TestRosParameters:
    def test_declarations_are_dynamically_typed(self):
        pytest.importorskip("rcl_interfaces")
        node = _ParameterNode()

        declare_manager_parameters(node)

        names = [name for name, _, _ in node.declared]
        assert "map_publish_frequency" in names and "resolution" in names
        assert all(d.dynamic_typing for _, _, d in node.declared)
        assert ("Q", None) in [(name, value) for name, value, _ in node.declared]

    def test_integer_values_coerced(self):
        q = [1, 0, 0, -376, 0, 1, 0, -240, 0, 0, 0, 450, 0, 0, 9, 0]
        node = _ParameterNode({"map_publish_frequency": 1, "resolution": 1, "Q": q})

        params = validate_manager_params(node)

        assert params.map_publish_period_sec == pytest.approx(1.0)
        assert isinstance(params.octomap.resolution, float)
        assert params.Q == [float(v) for v in q]
        assert all(isinstance(v, float) for v in params.Q)

    def test_unset_q_skipped(self):
        node = _ParameterNode({"Q": None, "tf_frame": "map"})

        params = validate_manager_params(node)

        assert params.Q is None
        assert params.world_frame == "map"

    def test_invalid_value_logged_then_raised(self):
        node = _ParameterNode({"probability_hit": 2.0})

        with pytest.raises(ValidationError):
            validate_manager_params(node)
        assert any("Invalid octomap manager parameters" in m for m in node.logger.messages("error"))


class TestDefaultConfigPath:
    def _fake_ament(self, monkeypatch, get_share):
        package = types.ModuleType("ament_index_python")
        packages = types.ModuleType("ament_index_python.packages")
        packages.get_package_share_directory = get_share
        package.packages = packages
        monkeypatch.setitem(sys.modules, "ament_index_python", package)
        monkeypatch.setitem(sys.modules, "ament_index_python.packages", packages)

    def test_workspace_fallback_without_ament(self, monkeypatch, prod_config_path):
        monkeypatch.setitem(sys.modules, "ament_index_python.packages", None)

        path = get_default_config_path()

        assert path.resolve() == Path(prod_config_path).resolve()
        assert path.exists()

    def test_workspace_fallback_when_not_installed(self, monkeypatch, prod_config_path):
        def not_installed(name):
            raise LookupError(f"package '{name}' not found")

        self._fake_ament(monkeypatch, not_installed)

        assert get_default_config_path().resolve() == Path(prod_config_path).resolve()

    def test_installed_share_dir(self, monkeypatch, tmp_path):
        self._fake_ament(monkeypatch, lambda name: str(tmp_path / name))

        path = get_default_config_path()

        assert path == tmp_path / "octomap_world" / "config" / "octomap_manager.yaml"

    def test_loads_as_manager_config(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "ament_index_python.packages", None)

        assert load_manager_config(get_default_config_path()) == ManagerParams()
