import asyncio

from fastapi import APIRouter, HTTPException, Query, Response, WebSocket, WebSocketDisconnect

from cloudscan.services.nodes.instance import node_manager
from cloudscan.services.protocol.binary import unpack_scan_binary
from cloudscan.services.websocket.manager import manager

router = APIRouter()

@router.get("/topics")
async def list_topics():
    """Scan topics, each streaming LSCN binary frames while it has listeners."""
    topics = manager.get_public_topics()
    owners = {node.topic: node.id for node in node_manager.nodes.values()}
    return {
        "topics": topics,
        "description": {
            topic: {
                "node_id": owners.get(topic),
                "format": "LSCN",
                "listeners": manager.listener_count(topic),
            }
            for topic in topics
        },
    }

@router.get("/topics/capture")
async def capture_frame(
    topic: str,
    timeout: float = 5.0,
    format: str = Query("binary", pattern="^(binary|json)$"),
):
    """
    Wait for the next scan on a topic. A pending capture counts as a listener,
    so it starts the node's feed on its own.
    """
    try:
        data = await manager.wait_for_next(topic, timeout=timeout)
    except asyncio.TimeoutError:
        raise HTTPException(status_code=504, detail="Timeout waiting for scan")

    if format == "json":
        return unpack_scan_binary(data).to_dict()
    return Response(content=data, media_type="application/octet-stream")

@router.websocket("/ws/{topic}")
async def websocket_endpoint(websocket: WebSocket, topic: str):
    await manager.connect(websocket, topic)
    try:
        # Clients only listen; drain until they go away
        while True:
            msg = await websocket.receive()
            if msg.get("type") == "websocket.disconnect":
                break
    except (WebSocketDisconnect, RuntimeError):
        pass
    finally:
        manager.disconnect(websocket, topic)
