"""
Frame-level data carried through one conversion pass.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np


@dataclass(eq=False)
class PointCloudFrame:
    """
    One input frame: (N, 3+) points in `frame_id`, captured at `stamp`.

    Only the first three columns (x, y, z) take part in the projection.
    """
    points: np.ndarray
    frame_id: str
    stamp: float

    def __post_init__(self):
        points = np.asarray(self.points, dtype=np.float64)
        if points.size == 0:
            points = points.reshape(0, 3)
        if points.ndim != 2 or points.shape[1] < 3:
            raise ValueError(f"points must have shape (N, 3+), got {points.shape}")
        self.points = points

    def __len__(self) -> int:
        return len(self.points)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], default_frame_id: str = "") -> "PointCloudFrame":
        """Build a frame from a feed payload dict (points, frame_id, timestamp)."""
        return cls(
            points=payload["points"],
            frame_id=payload.get("frame_id") or default_frame_id,
            stamp=float(payload.get("timestamp") or 0.0),
        )


@dataclass
class ProjectionStats:
    """Per-pass counters: accepted points and rejections by reason."""
    total: int = 0
    accepted: int = 0
    nan: int = 0
    height: int = 0
    range: int = 0
    angle: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "accepted": self.accepted,
            "rejected_nan": self.nan,
            "rejected_height": self.height,
            "rejected_range": self.range,
            "rejected_angle": self.angle,
        }


@dataclass(eq=False)
class RangeScan:
    """Planar range scan: one range per angular bin, sentinel where empty."""
    frame_id: str
    stamp: float
    angle_min: float
    angle_max: float
    angle_increment: float
    time_increment: float
    scan_time: float
    range_min: float
    range_max: float
    ranges: np.ndarray
    stats: ProjectionStats = field(default_factory=ProjectionStats)

    @property
    def sentinel(self) -> float:
        return self.range_max + 1.0

    def bin_angle(self, index: int) -> float:
        return self.angle_min + index * self.angle_increment

    def to_dict(self) -> Dict[str, Any]:
        ranges: List[float] = [float(r) for r in self.ranges]
        return {
            "frame_id": self.frame_id,
            "stamp": self.stamp,
            "angle_min": self.angle_min,
            "angle_max": self.angle_max,
            "angle_increment": self.angle_increment,
            "time_increment": self.time_increment,
            "scan_time": self.scan_time,
            "range_min": self.range_min,
            "range_max": self.range_max,
            "ranges": ranges,
            "stats": self.stats.to_dict(),
        }
