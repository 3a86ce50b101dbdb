"""
Raw sensor buffer decoding with numpy.

Operates on attribute-shaped messages (sensor_msgs/Image and
sensor_msgs/PointCloud2 field names) so it never imports ROS.
"""

from __future__ import annotations

import numpy as np


# sensor_msgs/PointField datatype codes
POINTFIELD_FLOAT32 = 7
POINTFIELD_FLOAT64 = 8

_POINTFIELD_DTYPES = {
    POINTFIELD_FLOAT32: "f4",
    POINTFIELD_FLOAT64: "f8",
}


def image_32fc1_to_array(img) -> np.ndarray:
    """
    Decode a 32FC1 image (disparity) into an (H, W) float32 array.

    Row padding beyond `width` (from `step`) is dropped.

    Raises:
        ValueError: on another encoding, a step smaller than a row, or a short buffer
    """
    if img.encoding != "32FC1":
        raise ValueError(f"Expected 32FC1 disparity image, got encoding {img.encoding!r}")
    height, width, step = int(img.height), int(img.width), int(img.step)
    dtype = np.dtype(">f4" if img.is_bigendian else "<f4")
    if step % dtype.itemsize != 0 or step // dtype.itemsize < width:
        raise ValueError(f"Image step {step} invalid for width {width}")
    data = bytes(img.data)
    if len(data) < step * height:
        raise ValueError(f"Image buffer has {len(data)} bytes, expected {step * height}")

    row_elems = step // dtype.itemsize
    flat = np.frombuffer(data, dtype=dtype, count=row_elems * height)
    return flat.reshape(height, row_elems)[:, :width].astype(np.float32)


def pointcloud2_to_xyz(msg) -> np.ndarray:
    """
    Extract finite xyz points as an (N, 3) float64 array.

    Honours field offsets, `point_step`, per-row `row_step` padding and
    `is_bigendian`. Points with any NaN/inf coordinate are dropped.

    Raises:
        ValueError: if x/y/z are missing or not float32/float64, or the buffer is short
    """
    field_map = {f.name: f for f in msg.fields}
    if not all(axis in field_map for axis in ("x", "y", "z")):
        raise ValueError("PointCloud2 has no x/y/z fields")

    endian = ">" if msg.is_bigendian else "<"
    formats = []
    for axis in ("x", "y", "z"):
        code = _POINTFIELD_DTYPES.get(field_map[axis].datatype)
        if code is None:
            raise ValueError(f"Unsupported datatype {field_map[axis].datatype} for field {axis!r}")
        formats.append(endian + code)

    width, height = int(msg.width), int(msg.height)
    point_step, row_step = int(msg.point_step), int(msg.row_step)
    n_points = width * height
    if n_points == 0:
        return np.zeros((0, 3), dtype=np.float64)
    if row_step < width * point_step:
        raise ValueError(f"row_step {row_step} smaller than width * point_step ({width * point_step})")

    raw = np.frombuffer(bytes(msg.data), dtype=np.uint8)
    if raw.size < row_step * height:
        raise ValueError(f"PointCloud2 buffer has {raw.size} bytes, expected {row_step * height}")

    dtype = np.dtype({
        "names": ["x", "y", "z"],
        "formats": formats,
        "offsets": [field_map[a].offset for a in ("x", "y", "z")],
        "itemsize": point_step,
    })
    # Drop per-row padding before reinterpreting as points.
    rows = raw[: row_step * height].reshape(height, row_step)
    packed = np.ascontiguousarray(rows[:, : width * point_step])
    structured = np.frombuffer(packed.tobytes(), dtype=dtype, count=n_points)

    points = np.stack(
        [structured["x"], structured["y"], structured["z"]], axis=1
    ).astype(np.float64)
    return points[np.all(np.isfinite(points), axis=1)]
