import time
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, model_validator

from cloudscan.modules.scan.errors import TransformUnavailable
from cloudscan.modules.scan.transforms import RigidTransform, StampedTransform
from cloudscan.services.nodes.instance import node_manager

router = APIRouter(prefix="/transforms")


class TransformBody(BaseModel):
    """
    A parent->child transform. Orientation is given either as a quaternion
    (qx, qy, qz, qw) or as roll/pitch/yaw in degrees.
    """
    parent_frame: str
    child_frame: str
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    qx: Optional[float] = None
    qy: Optional[float] = None
    qz: Optional[float] = None
    qw: Optional[float] = None
    stamp: Optional[float] = None
    static: bool = True

    @model_validator(mode="after")
    def _check_quaternion(self):
        quat = (self.qx, self.qy, self.qz, self.qw)
        if any(q is not None for q in quat) and not all(q is not None for q in quat):
            raise ValueError("quaternion requires all of qx, qy, qz, qw")
        if all(q is not None for q in quat) and sum(q * q for q in quat) == 0.0:
            raise ValueError("quaternion must not be zero")
        return self

    def to_transform(self) -> RigidTransform:
        if self.qw is not None:
            return RigidTransform.from_quaternion((self.qx, self.qy, self.qz, self.qw), (self.x, self.y, self.z))
        return RigidTransform.from_euler(self.x, self.y, self.z, self.roll, self.pitch, self.yaw)


@router.get("")
async def list_transforms():
    """All transforms currently held by the resolver."""
    return [
        {**stamped.to_dict(), "static": static}
        for stamped, static in node_manager.resolver.frames()
    ]


@router.post("")
async def set_transform(body: TransformBody):
    stamped = StampedTransform(
        parent_frame=body.parent_frame,
        child_frame=body.child_frame,
        stamp=body.stamp if body.stamp is not None else time.time(),
        transform=body.to_transform(),
    )
    try:
        node_manager.resolver.set_transform(stamped, static=body.static, authority="api")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"status": "success", "transform": {**stamped.to_dict(), "static": body.static}}


@router.get("/lookup")
async def lookup_transform(
    target_frame: str,
    source_frame: str,
    stamp: float = Query(0.0, description="Time of the lookup; 0 means latest available"),
):
    try:
        transform = node_manager.resolver.lookup(target_frame, source_frame, stamp)
    except TransformUnavailable as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {
        "target_frame": target_frame,
        "source_frame": source_frame,
        "stamp": stamp,
        **transform.to_dict(),
    }
