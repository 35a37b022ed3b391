"""
Rigid transforms between named coordinate frames.

A RigidTransform maps points expressed in a child frame into its parent frame:
p_parent = R * p_child + t. Rotations are kept as unit quaternions through
scipy's Rotation.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Sequence

import numpy as np
from scipy.spatial.transform import Rotation


def transform_points(points: np.ndarray, T: np.ndarray) -> np.ndarray:
    """
    Applies a 4x4 transformation matrix T to (N, 3) or (N, M) points.
    
    Args:
        points: Numpy array of shape (N, 3) or (N, M) where M >= 3
        T: 4x4 transformation matrix
    
    Returns:
        Float64 array of shape (N, 3) with the transformed x, y, z columns
    """
    points = np.asarray(points, dtype=np.float64)
    if points.ndim != 2 or points.shape[0] == 0:
        return np.zeros((0, 3), dtype=np.float64)

    R = T[:3, :3]
    t = T[:3, 3]

    # points_transformed = points * R^T + t
    return points[:, :3] @ R.T + t


@dataclass(frozen=True, eq=False)
class RigidTransform:
    """Rotation (unit quaternion) followed by a translation."""

    rotation: Rotation = field(default_factory=Rotation.identity)
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        t = np.array(self.translation, dtype=np.float64).reshape(3)
        t.setflags(write=False)
        object.__setattr__(self, "translation", t)

    @classmethod
    def identity(cls) -> "RigidTransform":
        return cls()

    @classmethod
    def from_quaternion(cls, quaternion: Sequence[float], translation: Sequence[float] = (0.0, 0.0, 0.0)) -> "RigidTransform":
        """Build from an (x, y, z, w) quaternion; it is normalized on the way in."""
        return cls(Rotation.from_quat(np.asarray(quaternion, dtype=np.float64)), np.asarray(translation))

    @classmethod
    def from_euler(
        cls, x: float, y: float, z: float,
        roll: float = 0, pitch: float = 0, yaw: float = 0
    ) -> "RigidTransform":
        """
        Creates a transform from translation and rotation parameters.
        
        Args:
            x, y, z: Translation in meters
            roll, pitch, yaw: Rotation in degrees, applied in Z-Y-X order
        """
        rotation = Rotation.from_euler("xyz", [roll, pitch, yaw], degrees=True)
        return cls(rotation, np.array([x, y, z], dtype=np.float64))

    @classmethod
    def from_yaw(cls, yaw: float, translation: Sequence[float]) -> "RigidTransform":
        """Rotation of `yaw` radians about the z axis."""
        return cls(Rotation.from_rotvec([0.0, 0.0, yaw]), np.asarray(translation))

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> "RigidTransform":
        T = np.asarray(T, dtype=np.float64)
        return cls(Rotation.from_matrix(T[:3, :3]), T[:3, 3])

    @property
    def quaternion(self) -> np.ndarray:
        """Unit quaternion as (x, y, z, w)."""
        return self.rotation.as_quat()

    def as_matrix(self) -> np.ndarray:
        """4x4 homogeneous matrix."""
        T = np.eye(4)
        T[:3, :3] = self.rotation.as_matrix()
        T[:3, 3] = self.translation
        return T

    def compose(self, other: "RigidTransform") -> "RigidTransform":
        """self ∘ other: apply `other` first, then `self`."""
        rotation = self.rotation * other.rotation
        # Rotation.apply needs a writable buffer
        translation = self.rotation.apply(np.array(other.translation)) + self.translation
        return RigidTransform(rotation, translation)

    def inverse(self) -> "RigidTransform":
        inv_rot = self.rotation.inv()
        return RigidTransform(inv_rot, -inv_rot.apply(np.array(self.translation)))

    def apply(self, points: np.ndarray) -> np.ndarray:
        """Rotate then translate (N, 3) points; returns a new float64 array."""
        return transform_points(points, self.as_matrix())

    def apply_vector(self, vector: Sequence[float]) -> np.ndarray:
        """Rotate a direction vector; translation is not applied."""
        return self.rotation.apply(np.array(vector, dtype=np.float64))

    def to_dict(self) -> Dict[str, float]:
        """
        Converts the transform to a flat dictionary.
        
        Returns:
            Dictionary with translation (x, y, z), quaternion (qx, qy, qz, qw)
            and roll, pitch, yaw in degrees
        """
        qx, qy, qz, qw = self.quaternion
        roll, pitch, yaw = self.rotation.as_euler("xyz", degrees=True)
        return {
            "x": float(self.translation[0]),
            "y": float(self.translation[1]),
            "z": float(self.translation[2]),
            "qx": float(qx),
            "qy": float(qy),
            "qz": float(qz),
            "qw": float(qw),
            "roll": float(roll),
            "pitch": float(pitch),
            "yaw": float(yaw),
        }


@dataclass(frozen=True)
class StampedTransform:
    """A RigidTransform from child_frame into parent_frame, valid at stamp."""

    parent_frame: str
    child_frame: str
    stamp: float
    transform: RigidTransform

    def to_dict(self) -> Dict[str, object]:
        return {
            "parent_frame": self.parent_frame,
            "child_frame": self.child_frame,
            "stamp": self.stamp,
            **self.transform.to_dict(),
        }


def yaw_of_axis(transform: RigidTransform, axis: Sequence[float] = (0.0, 0.0, 1.0)) -> float:
    """Heading of `axis` after rotation, projected onto the horizontal plane."""
    rotated = transform.apply_vector(axis)
    return math.atan2(rotated[1], rotated[0])
