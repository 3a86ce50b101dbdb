"""Exception types raised by octomap_world."""

from __future__ import annotations


class OctomapWorldError(Exception):
    """Base class for octomap_world errors."""


class CalibrationError(OctomapWorldError):
    """Stereo calibration records cannot produce a reprojection matrix."""


class TransformLookupError(OctomapWorldError):
    """The transform directory has no transform for the requested frames/time."""


class MapEngineLoadError(OctomapWorldError):
    """The configured map engine plugin cannot be imported or constructed."""
