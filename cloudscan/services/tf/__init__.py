"""
In-process transform resolver: a time-indexed tree of frames.
"""
from .buffer import TransformBuffer, normalize_frame_id

__all__ = [
    "TransformBuffer",
    "normalize_frame_id",
]
