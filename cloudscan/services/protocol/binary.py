"""
Binary protocol utilities for point cloud input and range scan output.

LIDR point cloud format (input, POST /clouds):
    Offset | Size | Type    | Description
    -------|------|---------|------------
    0      | 4    | char[4] | Magic "LIDR"
    4      | 4    | uint32  | Version
    8      | 8    | float64 | Timestamp
    16     | 4    | uint32  | Point count
    20     | N*12 | float32 | Points (x, y, z) * count

LSCN range scan format (output, websocket topics):
    Offset | Size | Type       | Description
    -------|------|------------|------------
    0      | 4    | char[4]    | Magic "LSCN"
    4      | 4    | uint32     | Version
    8      | 8    | float64    | Timestamp
    16     | 56   | float64[7] | angle_min, angle_max, angle_increment,
           |      |            | time_increment, scan_time, range_min, range_max
    72     | 4    | uint32     | Frame id length F (bytes, UTF-8)
    76     | 4    | uint32     | Bin count N
    80     | F    | char[F]    | Frame id
    80+F   | N*4  | float32    | Ranges
"""
import struct
from typing import Tuple

import numpy as np

from cloudscan.modules.scan.models import RangeScan


MAGIC_BYTES = b'LIDR'
VERSION = 1

SCAN_MAGIC_BYTES = b'LSCN'
SCAN_VERSION = 1

_POINTS_HEADER = struct.Struct('<4sIdI')
_SCAN_HEADER = struct.Struct('<4sId7dII')


def pack_points_binary(points: np.ndarray, timestamp: float) -> bytes:
    """
    Packs point cloud data into LIDR binary format.
    
    Args:
        points: Numpy array of shape (N, 3) or (N, M) where M >= 3
                Only the first 3 columns (x, y, z) are packed
        timestamp: Unix timestamp as float64
    """
    count = len(points)
    header = _POINTS_HEADER.pack(MAGIC_BYTES, VERSION, timestamp, count)
    points_xyz = np.asarray(points)[:, :3].astype(np.float32)
    return header + points_xyz.tobytes()


def unpack_points_binary(data: bytes) -> Tuple[np.ndarray, float]:
    """
    Unpacks point cloud data from LIDR binary format.
    
    Returns:
        Tuple of (points, timestamp), points shaped (N, 3) float32
    
    Raises:
        ValueError: If the data is truncated, magic bytes don't match or
                    the version is unsupported
    """
    if len(data) < _POINTS_HEADER.size:
        raise ValueError("Data too short to contain LIDR header")

    magic, version, timestamp, count = _POINTS_HEADER.unpack(data[:_POINTS_HEADER.size])
    
    if magic != MAGIC_BYTES:
        raise ValueError(f"Invalid magic bytes: {magic}")
    
    if version != VERSION:
        raise ValueError(f"Unsupported version: {version}")
    
    points_data = data[_POINTS_HEADER.size:]
    expected_size = count * 12  # 3 floats * 4 bytes each
    
    if len(points_data) != expected_size:
        raise ValueError(
            f"Points data size mismatch: expected {expected_size} bytes, got {len(points_data)}"
        )
    
    points = np.frombuffer(points_data, dtype=np.float32).reshape(count, 3)
    return points, timestamp


def pack_scan_binary(scan: RangeScan) -> bytes:
    """Packs a RangeScan into LSCN binary format."""
    frame_id = scan.frame_id.encode("utf-8")
    ranges = np.asarray(scan.ranges, dtype=np.float32)
    header = _SCAN_HEADER.pack(
        SCAN_MAGIC_BYTES, SCAN_VERSION, scan.stamp,
        scan.angle_min, scan.angle_max, scan.angle_increment,
        scan.time_increment, scan.scan_time, scan.range_min, scan.range_max,
        len(frame_id), len(ranges),
    )
    return header + frame_id + ranges.tobytes()


def unpack_scan_binary(data: bytes) -> RangeScan:
    """
    Unpacks an LSCN message back into a RangeScan (ranges as float32).
    
    Raises:
        ValueError: If the data is truncated or the header is not LSCN v1
    """
    if len(data) < _SCAN_HEADER.size:
        raise ValueError("Data too short to contain LSCN header")

    (magic, version, stamp,
     angle_min, angle_max, angle_increment,
     time_increment, scan_time, range_min, range_max,
     frame_len, count) = _SCAN_HEADER.unpack(data[:_SCAN_HEADER.size])

    if magic != SCAN_MAGIC_BYTES:
        raise ValueError(f"Invalid magic bytes: {magic}")
    if version != SCAN_VERSION:
        raise ValueError(f"Unsupported version: {version}")

    offset = _SCAN_HEADER.size
    expected_size = offset + frame_len + count * 4
    if len(data) != expected_size:
        raise ValueError(f"Scan data size mismatch: expected {expected_size} bytes, got {len(data)}")

    frame_id = data[offset:offset + frame_len].decode("utf-8")
    ranges = np.frombuffer(data[offset + frame_len:], dtype=np.float32)
    return RangeScan(
        frame_id=frame_id,
        stamp=stamp,
        angle_min=angle_min,
        angle_max=angle_max,
        angle_increment=angle_increment,
        time_increment=time_increment,
        scan_time=scan_time,
        range_min=range_min,
        range_max=range_max,
        ranges=ranges,
    )
