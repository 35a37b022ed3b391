"""
Scan parameters and the atomically swappable store that holds them.

A ScanParameters instance is immutable; reconfiguration builds a new one and
swaps the store's reference, so a processing pass that took a snapshot keeps
a consistent set (including derived values such as range_min_sq) until it
finishes.
"""
import json
import math
import threading
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from cloudscan.core.logging_config import get_logger

from .errors import ConfigurationInvalid

logger = get_logger(__name__)


class ScanParameters(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Height slab, relative to the reference frame
    min_height: float = 0.10
    max_height: float = 0.15

    # Angular coverage, radians
    angle_min: float = -math.pi / 2
    angle_max: float = math.pi / 2
    angle_increment: float = math.pi / 360.0

    scan_time: float = 1.0 / 30.0
    range_min: float = 0.45
    range_max: float = 10.0

    output_frame_id: str = "kinect_depth_frame"
    ref_frame_id: str = "kinect_link"

    # Seconds to wait for cloud -> reference transform
    transform_timeout: float = 1.0

    @model_validator(mode="after")
    def _check_invariants(self) -> "ScanParameters":
        errors = []
        values = [self.min_height, self.max_height, self.angle_min, self.angle_max,
                  self.angle_increment, self.scan_time, self.range_min, self.range_max,
                  self.transform_timeout]
        if not all(math.isfinite(v) for v in values):
            errors.append("all numeric parameters must be finite")
        if not self.angle_increment > 0:
            errors.append(f"angle_increment must be > 0 (got {self.angle_increment})")
        if not self.angle_max > self.angle_min:
            errors.append(f"angle_max ({self.angle_max}) must be > angle_min ({self.angle_min})")
        if not self.range_min >= 0:
            errors.append(f"range_min must be >= 0 (got {self.range_min})")
        if not self.range_max > self.range_min:
            errors.append(f"range_max ({self.range_max}) must be > range_min ({self.range_min})")
        if not self.max_height >= self.min_height:
            errors.append(f"max_height ({self.max_height}) must be >= min_height ({self.min_height})")
        if not self.scan_time >= 0:
            errors.append(f"scan_time must be >= 0 (got {self.scan_time})")
        if not self.transform_timeout > 0:
            errors.append(f"transform_timeout must be > 0 (got {self.transform_timeout})")
        if not self.output_frame_id.strip("/ ") or not self.ref_frame_id.strip("/ "):
            errors.append("output_frame_id and ref_frame_id must be non-empty")
        elif self.output_frame_id.strip("/ ") == self.ref_frame_id.strip("/ "):
            errors.append(f"output_frame_id must differ from ref_frame_id (both '{self.ref_frame_id}')")
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def range_min_sq(self) -> float:
        return self.range_min * self.range_min

    @property
    def bin_count(self) -> int:
        return int(math.ceil((self.angle_max - self.angle_min) / self.angle_increment))

    @property
    def sentinel(self) -> float:
        """Range written to bins that received no point."""
        return self.range_max + 1.0


def build_parameters(data: Mapping[str, Any]) -> ScanParameters:
    """Validate a configuration mapping, raising ConfigurationInvalid on any violation."""
    try:
        return ScanParameters(**dict(data))
    except ValidationError as e:
        messages = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()))
            msg = err.get("msg", "invalid value")
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            messages.append(f"{loc}: {msg}" if loc else msg)
        raise ConfigurationInvalid(messages) from e


def load_parameters(path: str) -> ScanParameters:
    """Load parameter overrides from a JSON file on top of the defaults."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigurationInvalid([f"{path}: expected a JSON object"])
    return build_parameters(data)


class ParameterStore:
    """
    Holds the current ScanParameters snapshot.

    Writers serialize on a lock; readers just take the reference returned by
    snapshot() and never see a half-applied update.
    """

    def __init__(self, initial: Optional[ScanParameters] = None):
        self._current = initial or ScanParameters()
        self._write_lock = threading.Lock()

    def snapshot(self) -> ScanParameters:
        return self._current

    def replace(self, config: Union[ScanParameters, Mapping[str, Any]]) -> ScanParameters:
        """Swap in a complete new configuration. Invalid input leaves the current one in place."""
        params = config if isinstance(config, ScanParameters) else build_parameters(config)
        with self._write_lock:
            self._current = params
        return params

    def update(self, **changes: Any) -> ScanParameters:
        """Merge `changes` onto the current snapshot, validate, then swap."""
        with self._write_lock:
            merged: Dict[str, Any] = {**self._current.model_dump(), **changes}
            params = build_parameters(merged)
            self._current = params
        return params
