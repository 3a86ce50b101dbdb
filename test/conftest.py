import os
import pytest
from typing import Dict, Any

import numpy as np

from fakes import (
    FakeTransformSource,
    RecordingLogger,
    RecordingMapEngine,
    RecordingPublisher,
)

# =============================================================================
# Production Config Fixtures
# =============================================================================
# These fixtures load the configuration shipped with the package, ensuring
# tests validate the same defaults the node starts with.


def _load_yaml_file(path: str) -> Dict[str, Any]:
    """Load a YAML config file, handling the ros__parameters wrapper."""
    import yaml
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    for key in ("octomap_manager", "/**"):
        if key in data and "ros__parameters" in data.get(key, {}):
            return data[key]["ros__parameters"]
    return data


@pytest.fixture
def prod_config_path() -> str:
    test_dir = os.path.dirname(__file__)
    pkg_root = os.path.dirname(test_dir)
    return os.path.join(pkg_root, "config", "octomap_manager.yaml")


@pytest.fixture
def prod_config(prod_config_path) -> Dict[str, Any]:
    """
    Flat ros__parameters of config/octomap_manager.yaml.

    Usage:
        def test_something(prod_config):
            assert prod_config["tf_frame"] == "world"
    """
    if not os.path.exists(prod_config_path):
        pytest.skip("octomap_manager.yaml not found")
    return _load_yaml_file(prod_config_path)


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def tf_source():
    return FakeTransformSource()


@pytest.fixture
def engine():
    return RecordingMapEngine()


@pytest.fixture
def publishers():
    from octomap_world.operations import MapPublishers
    return MapPublishers(
        occupied_nodes=RecordingPublisher(),
        free_nodes=RecordingPublisher(),
        binary_map=RecordingPublisher(),
        full_map=RecordingPublisher(),
    )


# =============================================================================
# Stereo Calibration Fixtures
# =============================================================================
# Rectified pair: fx = fy = 450 px, principal point (376, 240), 11 cm baseline.

FX = 450.0
CX = 376.0
CY = 240.0
BASELINE = 0.11


def make_calibration(frame_id: str, tx: float, width: int = 752, height: int = 480,
                     fx: float = FX, cx: float = CX, cy: float = CY):
    from octomap_world.calibration import CameraCalibration
    K = np.array([[fx, 0.0, cx], [0.0, fx, cy], [0.0, 0.0, 1.0]])
    P = np.array([[fx, 0.0, cx, tx], [0.0, fx, cy, 0.0], [0.0, 0.0, 1.0, 0.0]])
    return CameraCalibration(frame_id=frame_id, width=width, height=height, K=K, P=P)


@pytest.fixture
def left_calibration():
    return make_calibration("cam0", tx=0.0)


@pytest.fixture
def right_calibration():
    return make_calibration("cam1", tx=-FX * BASELINE)


@pytest.fixture
def config_q():
    """Row-major flat Q as it would appear in the YAML."""
    return [
        1.0, 0.0, 0.0, -320.0,
        0.0, 1.0, 0.0, -200.0,
        0.0, 0.0, 0.0, 400.0,
        0.0, 0.0, 10.0, 0.0,
    ]


# =============================================================================
# Test Utility Fixtures
# =============================================================================

@pytest.fixture
def small_pointcloud():
    """Generate a small test point cloud."""
    np.random.seed(42)
    return np.random.randn(100, 3)


@pytest.fixture
def disparity_image():
    from octomap_world.observations import DisparityImage
    disparity = np.full((480, 752), 8.0, dtype=np.float32)
    return DisparityImage(disparity=disparity, focal_length=FX, baseline=BASELINE)
