"""
Virtual scanning-plane frame.

The virtual laser sits at the sensor's x/y position in the reference frame,
halfway up the height slab, and faces along the horizontal projection of the
sensor's optical (z) axis, whatever the sensor's tilt.
"""
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np

from cloudscan.core.logging_config import get_logger

from .parameters import ScanParameters
from .transforms import RigidTransform, StampedTransform, yaw_of_axis

logger = get_logger(__name__)


@dataclass(frozen=True)
class ScanFrame:
    ref_to_out: StampedTransform
    cloud_to_out: RigidTransform
    yaw: float


class ScanFrameBuilder:
    """
    Derives the scanning plane from `cloud_to_ref` and publishes it.

    Args:
        publisher: Object with a publish(StampedTransform) method, usually the
            TransformBuffer. None disables publishing.
    """

    def __init__(self, publisher: Optional[Any] = None):
        self.publisher = publisher

    def build(self, cloud_to_ref: RigidTransform, params: ScanParameters, stamp: float) -> ScanFrame:
        origin = np.array(cloud_to_ref.translation, dtype=np.float64)
        origin[2] = (params.min_height + params.max_height) * 0.5

        yaw = yaw_of_axis(cloud_to_ref, (0.0, 0.0, 1.0))

        ref_to_out = StampedTransform(
            parent_frame=params.ref_frame_id,
            child_frame=params.output_frame_id,
            stamp=stamp,
            transform=RigidTransform.from_yaw(yaw, origin),
        )
        if self.publisher is not None:
            self.publisher.publish(ref_to_out)

        # Points are projected into the same pose dropped to z = 0
        origin[2] = 0.0
        ground = RigidTransform.from_yaw(yaw, origin)
        cloud_to_out = ground.inverse().compose(cloud_to_ref)

        logger.debug(
            f"Scan frame {params.output_frame_id}: origin=({origin[0]:.3f}, {origin[1]:.3f}) yaw={yaw:.4f}"
        )
        return ScanFrame(ref_to_out=ref_to_out, cloud_to_out=cloud_to_out, yaw=yaw)
