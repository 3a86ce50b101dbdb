"""
Stereo reprojection calibration state.

Accumulates the left/right camera calibration records, which arrive
asynchronously, and produces the 4x4 reprojection matrix Q that turns
(u, v, disparity) into 3D points. Q comes either from a flat 16-element
startup parameter or from the first complete left/right pair.

State is tagged so Q and the working image size are reachable only once
a transition has happened:

    Uninitialized ──set_from_config──▶ ConfiguredFromStartup
          │
          └──second calibration record──▶ DerivedFromCalibration

Both ready states are terminal for the lifetime of the process.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from octomap_world import constants
from octomap_world.errors import CalibrationError


ImageSize = Tuple[int, int]  # (width, height)


@dataclass(frozen=True, eq=False)
class CameraCalibration:
    """Intrinsics of one camera of the stereo pair."""

    frame_id: str
    width: int
    height: int
    K: np.ndarray = field(repr=False)  # (3, 3)
    P: np.ndarray = field(repr=False)  # (3, 4)

    @property
    def fx(self) -> float:
        return float(self.P[0, 0])

    @property
    def cx(self) -> float:
        return float(self.P[0, 2])

    @property
    def cy(self) -> float:
        return float(self.P[1, 2])

    @property
    def Tx(self) -> float:
        """P[0, 3]; -fx * baseline for the right camera, 0 for the left."""
        return float(self.P[0, 3])


def compute_reprojection(left: CameraCalibration, right: CameraCalibration) -> np.ndarray:
    """
    Reprojection matrix for a rectified stereo pair.

        [x y z w]^T = Q [u v d 1]^T,  point = (x, y, z) / w

    Raises:
        CalibrationError: if the right projection carries no baseline
    """
    if right.fx == 0.0:
        raise CalibrationError(f"Right camera ({right.frame_id}) has fx == 0")
    baseline = -right.Tx / right.fx
    if baseline == 0.0:
        raise CalibrationError(
            f"Stereo baseline is zero (right camera {right.frame_id} P[0,3] == 0)"
        )
    Tx = -baseline

    Q = np.zeros((4, 4), dtype=np.float64)
    Q[0, 0] = 1.0
    Q[0, 3] = -left.cx
    Q[1, 1] = 1.0
    Q[1, 3] = -left.cy
    Q[2, 3] = left.fx
    Q[3, 2] = -1.0 / Tx
    Q[3, 3] = (left.cx - right.cx) / Tx
    return Q


# =============================================================================
# Tagged calibration state
# =============================================================================


@dataclass(frozen=True)
class Uninitialized:
    name = "uninitialized"
    ready = False


@dataclass(frozen=True, eq=False)
class ConfiguredFromStartup:
    q: np.ndarray = field(repr=False)
    image_size: ImageSize
    name = "configured_from_startup"
    ready = True


@dataclass(frozen=True, eq=False)
class DerivedFromCalibration:
    q: np.ndarray = field(repr=False)
    image_size: ImageSize
    name = "derived_from_calibration"
    ready = True


CalibrationState = Union[Uninitialized, ConfiguredFromStartup, DerivedFromCalibration]
ReadyState = Union[ConfiguredFromStartup, DerivedFromCalibration]


class ReprojectionCalibration:
    """
    Holds the latest left/right records and the one-way readiness transition.

    A single lock guards the record pair and the state so the
    check-then-set transition derives Q at most once even when both
    camera-info callbacks run on different executor threads.
    """

    def __init__(self, logger, full_image_size: ImageSize = (
            constants.FULL_IMAGE_WIDTH_DEFAULT, constants.FULL_IMAGE_HEIGHT_DEFAULT)):
        self._logger = logger
        self._configured_image_size = (int(full_image_size[0]), int(full_image_size[1]))
        self._lock = threading.Lock()
        self._left: Optional[CameraCalibration] = None
        self._right: Optional[CameraCalibration] = None
        self._state: CalibrationState = Uninitialized()

    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state.ready

    @property
    def left(self) -> Optional[CameraCalibration]:
        return self._left

    @property
    def right(self) -> Optional[CameraCalibration]:
        return self._right

    def ready_state(self) -> Optional[ReadyState]:
        """The current state if ready, else None. Read once per observation."""
        state = self._state
        return state if state.ready else None

    def set_from_config(self, values: Optional[Sequence[float]]) -> bool:
        """Use a flat row-major 16-element Q; returns False if malformed."""
        if values is None:
            return False
        values = list(values)
        if len(values) != constants.Q_MATRIX_SIZE:
            self._logger.error(
                f"Invalid Q matrix size, expected size: {constants.Q_MATRIX_SIZE}, "
                f"actual size: {len(values)}"
            )
            return False

        q = np.asarray(values, dtype=np.float64).reshape(4, 4)
        q.setflags(write=False)
        with self._lock:
            if self._state.ready:
                self._logger.warn(f"Q already {self._state.name}; ignoring startup Q")
                return False
            self._state = ConfiguredFromStartup(q=q, image_size=self._configured_image_size)
        self._logger.info("Reprojection matrix Q set from parameters")
        return True

    def on_left_calibration(self, record: CameraCalibration) -> None:
        with self._lock:
            self._left = record
            self._maybe_derive_locked()

    def on_right_calibration(self, record: CameraCalibration) -> None:
        with self._lock:
            self._right = record
            self._maybe_derive_locked()

    def _maybe_derive_locked(self) -> None:
        if self._state.ready or self._left is None or self._right is None:
            return
        try:
            q = compute_reprojection(self._left, self._right)
        except CalibrationError as e:
            # Stay uninitialized; the next camera info retries.
            self._logger.error(f"Cannot derive Q from camera info: {e}")
            return
        q.setflags(write=False)
        image_size = (int(self._left.width), int(self._left.height))
        self._state = DerivedFromCalibration(q=q, image_size=image_size)
        self._logger.info(
            f"Reprojection matrix Q derived from camera info "
            f"({self._left.frame_id}, {self._right.frame_id}), image size {image_size[0]}x{image_size[1]}"
        )
