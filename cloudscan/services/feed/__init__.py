"""
Point cloud input feeds.

A feed is started and stopped by the node's lazy subscription and delivers
one complete frame per payload onto the NodeManager's data queue:
    {"node_id": str, "points": np.ndarray, "frame_id": str, "timestamp": float}
"""
from .push import PushFeed
from .pcd import PcdPlaybackFeed

__all__ = [
    "PushFeed",
    "PcdPlaybackFeed",
]
