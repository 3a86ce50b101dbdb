"""
Tests for raw disparity / point cloud buffer decoding.

Messages are attribute-shaped stand-ins with the sensor_msgs field names.
"""

from types import SimpleNamespace

import numpy as np
import pytest

from octomap_world.decoding import (
    POINTFIELD_FLOAT32,
    POINTFIELD_FLOAT64,
    image_32fc1_to_array,
    pointcloud2_to_xyz,
)


def _image(values, width, step, big_endian=False, encoding="32FC1"):
    dtype = ">f4" if big_endian else "<f4"
    data = np.asarray(values, dtype=dtype).tobytes()
    height = len(values) * 4 // step
    return SimpleNamespace(
        encoding=encoding, is_bigendian=big_endian,
        width=width, height=height, step=step, data=data,
    )


def _cloud(rows, big_endian=False, datatype=POINTFIELD_FLOAT32, row_padding=8):
    """rows: list of rows, each a list of (x, y, z) tuples of equal length."""
    endian = ">" if big_endian else "<"
    code = "f4" if datatype == POINTFIELD_FLOAT32 else "f8"
    # xyz plus a trailing intensity channel the decoder must skip
    point_dtype = np.dtype([(n, endian + code) for n in ("x", "y", "z", "intensity")])
    size = point_dtype.fields["y"][1]

    data = b""
    for row in rows:
        arr = np.zeros(len(row), dtype=point_dtype)
        for i, (x, y, z) in enumerate(row):
            arr[i] = (x, y, z, 100.0)
        data += arr.tobytes() + b"\xab" * row_padding

    width = len(rows[0]) if rows else 0
    fields = [
        SimpleNamespace(name=n, offset=i * size, datatype=datatype, count=1)
        for i, n in enumerate(("x", "y", "z", "intensity"))
    ]
    return SimpleNamespace(
        fields=fields, is_bigendian=big_endian,
        width=width, height=len(rows),
        point_step=point_dtype.itemsize,
        row_step=width * point_dtype.itemsize + row_padding,
        data=data,
    )


class TestImage32FC1:
    def test_row_stride_padding_dropped(self):
        img = _image([0, 1, 2, -1, 4, 5, 6, -1], width=3, step=16)

        out = image_32fc1_to_array(img)

        assert out.dtype == np.float32
        assert out.tolist() == [[0.0, 1.0, 2.0], [4.0, 5.0, 6.0]]

    def test_big_endian(self):
        img = _image([1.5, 2.5, 3.5, 4.5], width=2, step=8, big_endian=True)

        assert image_32fc1_to_array(img).tolist() == [[1.5, 2.5], [3.5, 4.5]]

    def test_wrong_encoding(self):
        with pytest.raises(ValueError, match="32FC1"):
            image_32fc1_to_array(_image([0.0] * 4, width=2, step=8, encoding="16UC1"))

    def test_step_smaller_than_row(self):
        img = _image([0.0] * 4, width=2, step=8)
        img.step = 4
        with pytest.raises(ValueError):
            image_32fc1_to_array(img)

    def test_short_buffer(self):
        img = _image([0.0] * 4, width=2, step=8)
        img.data = img.data[:-1]
        with pytest.raises(ValueError):
            image_32fc1_to_array(img)


class TestPointCloud2:
    def test_row_padding_skipped(self):
        msg = _cloud([[(1, 2, 3), (4, 5, 6)], [(7, 8, 9), (10, 11, 12)]])

        out = pointcloud2_to_xyz(msg)

        assert out.dtype == np.float64
        assert out.tolist() == [[1, 2, 3], [4, 5, 6], [7, 8, 9], [10, 11, 12]]

    def test_non_finite_points_dropped(self):
        nan, inf = float("nan"), float("inf")
        msg = _cloud([[(1, 2, 3), (nan, 0, 0)], [(0, inf, 0), (7, 8, 9)]])

        assert pointcloud2_to_xyz(msg).tolist() == [[1, 2, 3], [7, 8, 9]]

    @pytest.mark.parametrize("datatype", [POINTFIELD_FLOAT32, POINTFIELD_FLOAT64])
    def test_big_endian(self, datatype):
        msg = _cloud([[(0.5, -1.25, 2.0)]], big_endian=True, datatype=datatype)

        assert pointcloud2_to_xyz(msg).tolist() == [[0.5, -1.25, 2.0]]

    def test_empty_cloud(self):
        msg = _cloud([[(1, 2, 3)]])
        msg.width = 0

        assert pointcloud2_to_xyz(msg).shape == (0, 3)

    def test_short_buffer(self):
        msg = _cloud([[(1, 2, 3), (4, 5, 6)]])
        msg.data = msg.data[: -msg.point_step]
        with pytest.raises(ValueError):
            pointcloud2_to_xyz(msg)

    def test_missing_axis(self):
        msg = _cloud([[(1, 2, 3)]])
        msg.fields = [f for f in msg.fields if f.name != "z"]
        with pytest.raises(ValueError, match="x/y/z"):
            pointcloud2_to_xyz(msg)

    def test_unsupported_datatype(self):
        msg = _cloud([[(1, 2, 3)]])
        msg.fields[0].datatype = 2  # UINT8
        with pytest.raises(ValueError, match="Unsupported datatype"):
            pointcloud2_to_xyz(msg)
