import asyncio

from fastapi import APIRouter

from cloudscan.core.config import settings
from cloudscan.services.nodes.instance import node_manager
from cloudscan.services.nodes.node_factory import NodeFactory

router = APIRouter()

@router.get("/status")
async def get_status():
    """System status endpoint"""
    return {
        "is_running": node_manager.is_running,
        "active_nodes": list(node_manager.nodes.keys()),
        "node_types": NodeFactory.types(),
        "version": settings.VERSION
    }

@router.post("/start")
async def start_system():
    if not node_manager.is_running:
        if not node_manager.nodes:
            node_manager.load_config()
        node_manager.start(asyncio.get_running_loop())
    return {"status": "success", "is_running": node_manager.is_running}

@router.post("/stop")
async def stop_system():
    if node_manager.is_running:
        node_manager.stop()
    return {"status": "success", "is_running": node_manager.is_running}

@router.post("/reload")
async def reload_system():
    node_manager.reload_config(asyncio.get_running_loop())
    return {"status": "success", "is_running": node_manager.is_running, "active_nodes": list(node_manager.nodes.keys())}
