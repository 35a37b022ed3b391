"""
Point cloud to planar range scan conversion.
"""
from .errors import ConfigurationInvalid, TransformUnavailable
from .frame_builder import ScanFrame, ScanFrameBuilder
from .models import PointCloudFrame, ProjectionStats, RangeScan
from .parameters import ParameterStore, ScanParameters, build_parameters
from .projector import project_points
from .transforms import RigidTransform, StampedTransform

__all__ = [
    "ConfigurationInvalid",
    "TransformUnavailable",
    "ScanFrame",
    "ScanFrameBuilder",
    "PointCloudFrame",
    "ProjectionStats",
    "RangeScan",
    "ParameterStore",
    "ScanParameters",
    "build_parameters",
    "project_points",
    "RigidTransform",
    "StampedTransform",
]
