"""
Point projection and nearest-range reduction into angular bins.
"""
import logging
from typing import Tuple

import numpy as np

from cloudscan.core.logging_config import TRACE, get_logger

from .models import ProjectionStats
from .parameters import ScanParameters
from .transforms import RigidTransform

logger = get_logger(__name__)

# Slack, in bins, so that angle_min + k * angle_increment lands in bin k
# despite rounding in the angle computation.
BIN_EPSILON = 1e-9


def bin_indices(angles: np.ndarray, params: ScanParameters) -> np.ndarray:
    """
    Map admitted angles (angle_min <= a <= angle_max) to bin indices.

    angle_max itself would index one past the last bin when the angular span
    is a whole number of increments; it is clamped into the last bin.
    """
    idx = np.floor((angles - params.angle_min) / params.angle_increment + BIN_EPSILON).astype(np.int64)
    return np.clip(idx, 0, params.bin_count - 1)


def project_points(
    points: np.ndarray,
    cloud_to_out: RigidTransform,
    params: ScanParameters,
) -> Tuple[np.ndarray, ProjectionStats]:
    """
    Project cloud points into the scan plane and keep the nearest range per bin.
    
    Args:
        points: (N, 3+) array in the cloud's source frame
        cloud_to_out: Transform from the cloud frame into the zero-height scan frame
        params: Snapshot of the scan parameters for this pass
    
    Returns:
        Tuple of (ranges, stats) where ranges has params.bin_count entries and
        holds params.sentinel in every bin no point reached
    """
    bin_count = params.bin_count
    sentinel = params.sentinel
    ranges = np.full(bin_count, sentinel, dtype=np.float64)

    p = cloud_to_out.apply(points)
    stats = ProjectionStats(total=len(p))
    if len(p) == 0:
        return ranges, stats

    x, y, z = p[:, 0], p[:, 1], p[:, 2]

    valid = ~np.isnan(p).any(axis=1)
    stats.nan = int(len(p) - np.count_nonzero(valid))
    if stats.nan and logger.isEnabledFor(TRACE):
        for bad in p[~valid]:
            logger.log(TRACE, f"rejected for nan in point({bad[0]}, {bad[1]}, {bad[2]})")

    # NaN comparisons are False, so nan rows never pass the remaining masks
    with np.errstate(invalid="ignore"):
        in_band = valid & (z <= params.max_height) & (z >= params.min_height)
        stats.height = int(np.count_nonzero(valid & ~in_band))

        range_sq = x * x + y * y
        in_range = in_band & (range_sq >= params.range_min_sq)
        stats.range = int(np.count_nonzero(in_band & ~in_range))

        angles = -np.arctan2(-y, x)
        in_sweep = in_range & (angles >= params.angle_min) & (angles <= params.angle_max)
        stats.angle = int(np.count_nonzero(in_range & ~in_sweep))

    stats.accepted = int(np.count_nonzero(in_sweep))
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Projection stats: {stats.to_dict()}")
    if stats.accepted == 0:
        return ranges, stats

    idx = bin_indices(angles[in_sweep], params)

    # Streaming min-reduction over squared ranges; untouched bins keep the exact sentinel
    nearest_sq = np.full(bin_count, sentinel * sentinel, dtype=np.float64)
    np.minimum.at(nearest_sq, idx, range_sq[in_sweep])
    hit = nearest_sq < sentinel * sentinel
    ranges[hit] = np.sqrt(nearest_sq[hit])
    return ranges, stats
