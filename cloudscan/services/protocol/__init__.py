"""
Binary wire formats for point clouds in and range scans out.
"""
from .binary import (
    pack_points_binary,
    unpack_points_binary,
    pack_scan_binary,
    unpack_scan_binary,
)

__all__ = [
    "pack_points_binary",
    "unpack_points_binary",
    "pack_scan_binary",
    "unpack_scan_binary",
]
