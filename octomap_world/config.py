"""
Octomap manager configuration models and loaders.

Provides utilities for loading, validating, and managing node configuration
from YAML files and ROS 2 parameters.

This module bridges the gap between:
1. YAML configuration files (config/octomap_manager.yaml)
2. Pydantic validation models (OctomapParameters, ManagerParams)
3. ROS 2 parameter system

Usage:
    from octomap_world.config import load_manager_config, validate_manager_params

    # Load from YAML
    params = load_manager_config("/path/to/octomap_manager.yaml")

    # Validate ROS params against model
    params = validate_manager_params(node)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from octomap_world import constants

if TYPE_CHECKING:
    from rclpy.node import Node


NODE_CONFIG_SECTION = "octomap_manager"


class OctomapParameters(BaseModel):
    """Parameters handed to the map engine."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    resolution: float = Field(constants.RESOLUTION_DEFAULT, gt=0.0)
    probability_hit: float = Field(constants.PROBABILITY_HIT_DEFAULT, gt=0.0, lt=1.0)
    probability_miss: float = Field(constants.PROBABILITY_MISS_DEFAULT, gt=0.0, lt=1.0)
    threshold_min: float = Field(constants.THRESHOLD_MIN_DEFAULT, ge=0.0, le=1.0)
    threshold_max: float = Field(constants.THRESHOLD_MAX_DEFAULT, ge=0.0, le=1.0)
    threshold_occupancy: float = Field(constants.THRESHOLD_OCCUPANCY_DEFAULT, ge=0.0, le=1.0)
    filter_speckles: bool = constants.FILTER_SPECKLES_DEFAULT
    sensor_max_range: float = Field(constants.SENSOR_MAX_RANGE_DEFAULT, gt=0.0)
    visualize_min_z: float = constants.VISUALIZE_MIN_Z_DEFAULT
    visualize_max_z: float = constants.VISUALIZE_MAX_Z_DEFAULT

    @model_validator(mode="after")
    def _check_bounds(self) -> "OctomapParameters":
        if self.threshold_min > self.threshold_max:
            raise ValueError(
                f"threshold_min ({self.threshold_min}) must not exceed "
                f"threshold_max ({self.threshold_max})"
            )
        if self.visualize_min_z > self.visualize_max_z:
            raise ValueError(
                f"visualize_min_z ({self.visualize_min_z}) must not exceed "
                f"visualize_max_z ({self.visualize_max_z})"
            )
        return self


class ManagerParams(BaseModel):
    """
    Octomap manager node parameter model.

    Built once at startup and passed to every component that needs it.
    `Q` is not length-checked here: a malformed matrix is a
    recoverable condition handled by the calibration state.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    tf_frame: str = Field(constants.WORLD_FRAME_DEFAULT, min_length=1)
    full_image_width: int = Field(constants.FULL_IMAGE_WIDTH_DEFAULT, gt=0)
    full_image_height: int = Field(constants.FULL_IMAGE_HEIGHT_DEFAULT, gt=0)
    map_publish_frequency: float = constants.MAP_PUBLISH_FREQUENCY_DEFAULT
    Q: Optional[List[float]] = None
    tf_timeout_sec: float = Field(constants.TF_TIMEOUT_SEC_DEFAULT, gt=0.0)
    status_publish_period_sec: float = constants.STATUS_PUBLISH_PERIOD_SEC_DEFAULT
    map_engine: str = ""

    octomap: OctomapParameters = Field(default_factory=OctomapParameters)

    @property
    def world_frame(self) -> str:
        return self.tf_frame

    @property
    def full_image_size(self) -> tuple[int, int]:
        return (self.full_image_width, self.full_image_height)

    @property
    def map_publish_period_sec(self) -> Optional[float]:
        """Timer period, or None when periodic publishing is disabled."""
        if self.map_publish_frequency <= 0.0:
            return None
        return 1.0 / self.map_publish_frequency

    @classmethod
    def from_flat(cls, values: Dict[str, Any]) -> "ManagerParams":
        """
        Build from a flat parameter namespace.

        ROS parameters for the engine live next to the node parameters
        (`resolution`, `probability_hit`, ...); split them into `octomap`.
        An explicit nested `octomap` mapping is merged underneath.
        """
        values = dict(values)
        octomap_values = dict(values.pop("octomap", None) or {})
        for name in OctomapParameters.model_fields:
            if name in values:
                octomap_values[name] = values.pop(name)
        # An empty list is how ROS 2 spells "Q not given".
        if values.get("Q") is not None and len(values["Q"]) == 0:
            values["Q"] = None
        return cls(octomap=OctomapParameters(**octomap_values), **values)

    def to_flat(self) -> Dict[str, Any]:
        """Inverse of from_flat; used for the startup manifest and declarations."""
        flat = self.model_dump(exclude={"octomap"})
        flat.update(self.octomap.model_dump())
        return flat


def load_yaml_config(config_path: str | Path) -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """Merge multiple configuration dictionaries (later configs override earlier)."""
    result: Dict[str, Any] = {}
    for config in configs:
        if config:
            _deep_merge(result, config)
    return result


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override dict into base dict (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _node_section(data: Dict[str, Any]) -> Dict[str, Any]:
    # Accept both the named node section and the "/**" wildcard wrapper.
    for key in (NODE_CONFIG_SECTION, "/**"):
        section = data.get(key)
        if isinstance(section, dict) and "ros__parameters" in section:
            return dict(section["ros__parameters"] or {})
    return {}


def load_manager_config(
    base_path: Optional[str | Path] = None,
    preset_path: Optional[str | Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ManagerParams:
    """
    Load and validate manager configuration from YAML files.

    Args:
        base_path: Path to base configuration YAML (octomap_manager.yaml)
        preset_path: Optional path to a preset override YAML
        overrides: Optional dictionary of parameter overrides

    Raises:
        ValidationError: If configuration is invalid
    """
    base_config: Dict[str, Any] = {}
    if base_path:
        base_config = _node_section(load_yaml_config(base_path))

    preset_config: Dict[str, Any] = {}
    if preset_path:
        preset_config = _node_section(load_yaml_config(preset_path))

    merged = merge_configs(base_config, preset_config, overrides or {})
    return ManagerParams.from_flat(merged)


def declare_manager_parameters(node: "Node", defaults: Optional[ManagerParams] = None) -> None:
    """
    Declare every ManagerParams field (flattened) on the node.

    Declarations are dynamically typed: YAML writes `1` for a float
    parameter and leaves `Q` out entirely. Types are enforced by
    ManagerParams in validate_manager_params instead.
    """
    from rcl_interfaces.msg import ParameterDescriptor

    defaults = defaults or ManagerParams()
    for name, value in defaults.to_flat().items():
        node.declare_parameter(name, value, ParameterDescriptor(dynamic_typing=True))


def validate_manager_params(node: "Node") -> ManagerParams:
    """
    Validate ROS 2 node parameters against ManagerParams.

    Raises:
        ValidationError: If parameters are invalid
    """
    names = list(ManagerParams.model_fields) + list(OctomapParameters.model_fields)
    values: Dict[str, Any] = {}
    for name in names:
        if name == "octomap" or not node.has_parameter(name):
            continue
        value = node.get_parameter(name).value
        if value is None:
            # Declared but never set (Q left out of the YAML).
            continue
        values[name] = list(value) if name == "Q" else value

    try:
        return ManagerParams.from_flat(values)
    except ValidationError as exc:
        node.get_logger().error(f"Invalid octomap manager parameters: {exc}")
        raise


def get_default_config_path() -> Path:
    """Path to the shipped configuration, preferring the installed share dir."""
    try:
        from ament_index_python.packages import get_package_share_directory

        share = Path(get_package_share_directory("octomap_world"))
        return share / "config" / "octomap_manager.yaml"
    except (ImportError, LookupError):
        # Workspace-relative fallback for dev.
        return Path(__file__).parent.parent / "config" / "octomap_manager.yaml"
