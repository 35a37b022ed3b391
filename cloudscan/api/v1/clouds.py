from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from cloudscan.core.config import settings
from cloudscan.modules.scan.models import PointCloudFrame
from cloudscan.services.nodes.instance import node_manager
from cloudscan.services.protocol.binary import unpack_points_binary

router = APIRouter(prefix="/clouds")


@router.post("/{node_id}")
async def push_cloud(node_id: str, request: Request, frame_id: Optional[str] = None):
    """
    Accepts one LIDR-encoded point cloud for a node with a push feed.

    The frame is only taken while the node has scan listeners; otherwise the
    feed is idle and the response reports accepted=false.
    """
    node = node_manager.nodes.get(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")

    body = await request.body()
    try:
        points, timestamp = unpack_points_binary(body)
        frame = PointCloudFrame(points=points, frame_id=frame_id or settings.SCAN_CLOUD_FRAME_ID, stamp=timestamp)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    accepted = node.push(frame)
    return {"accepted": accepted, "points": len(points), "stamp": timestamp}
