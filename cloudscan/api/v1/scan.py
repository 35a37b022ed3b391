"""
Scan node configuration and output endpoints.

PUT replaces a node's scan parameters as a whole; PATCH merges the given
fields onto the current ones. Either way an update that violates a parameter
invariant is rejected with 400 and the node keeps its previous parameters.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from cloudscan.modules.scan.errors import ConfigurationInvalid
from cloudscan.services.nodes.instance import node_manager
from cloudscan.services.nodes.schema import node_schema_registry

router = APIRouter(prefix="/scan")


class ScanConfigPatch(BaseModel):
    min_height: Optional[float] = None
    max_height: Optional[float] = None
    angle_min: Optional[float] = None
    angle_max: Optional[float] = None
    angle_increment: Optional[float] = None
    scan_time: Optional[float] = None
    range_min: Optional[float] = None
    range_max: Optional[float] = None
    output_frame_id: Optional[str] = None
    ref_frame_id: Optional[str] = None
    transform_timeout: Optional[float] = None


def _get_node(node_id: str) -> Any:
    node = node_manager.nodes.get(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


def _config_response(node: Any) -> Dict[str, Any]:
    params = node.parameters.snapshot()
    return {
        "id": node.id,
        "parameters": params.model_dump(),
        "bin_count": params.bin_count,
    }


@router.get("/definitions")
async def list_node_definitions():
    """Returns the available node types and their configuration schemas"""
    return node_schema_registry.get_all()


@router.get("/definitions/{node_type}")
async def get_node_definition(node_type: str):
    definition = node_schema_registry.get(node_type)
    if definition is None:
        raise HTTPException(status_code=404, detail="Unknown node type")
    return definition


@router.get("/nodes")
async def list_nodes():
    """Runtime status of every scan node"""
    return [node.get_status(node_manager.node_runtime_status) for node in node_manager.nodes.values()]


@router.get("/nodes/{node_id}")
async def get_node_status(node_id: str):
    node = _get_node(node_id)
    return node.get_status(node_manager.node_runtime_status)


@router.get("/nodes/{node_id}/config")
async def get_config(node_id: str):
    return _config_response(_get_node(node_id))


@router.put("/nodes/{node_id}/config")
async def replace_config(node_id: str, config: Dict[str, Any]):
    node = _get_node(node_id)
    try:
        node.on_configuration_changed(config)
    except ConfigurationInvalid as e:
        raise HTTPException(status_code=400, detail={"message": "Configuration rejected", "errors": e.errors})
    return _config_response(node)


@router.patch("/nodes/{node_id}/config")
async def update_config(node_id: str, patch: ScanConfigPatch):
    node = _get_node(node_id)
    changes = patch.model_dump(exclude_none=True)
    if not changes:
        return _config_response(node)
    try:
        node.update_configuration(**changes)
    except ConfigurationInvalid as e:
        raise HTTPException(status_code=400, detail={"message": "Configuration rejected", "errors": e.errors})
    return _config_response(node)


@router.get("/nodes/{node_id}/latest")
async def get_latest_scan(node_id: str):
    node = _get_node(node_id)
    if node.last_scan is None:
        raise HTTPException(status_code=404, detail="No scan produced yet")
    return node.last_scan.to_dict()
