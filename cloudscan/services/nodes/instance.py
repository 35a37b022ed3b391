"""
Process-wide NodeManager shared by the API routers and the app lifespan.
"""
from cloudscan.core.config import settings
from cloudscan.modules import discover_modules
from cloudscan.services.tf import TransformBuffer
from cloudscan.services.websocket.manager import manager

from .config_loader import ConfigLoader
from .orchestrator import NodeManager

# Node types register themselves with NodeFactory as a side effect of discovery
loaded_modules = discover_modules()

node_manager = NodeManager(
    resolver=TransformBuffer(cache_time=settings.TF_CACHE_TIME),
    connections=manager,
    config_loader=ConfigLoader.from_settings(),
)
