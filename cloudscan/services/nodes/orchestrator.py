import asyncio
import multiprocessing as mp
from typing import Any, Dict, List, Optional

from cloudscan.core.config import settings
from cloudscan.core.logging_config import get_logger
from cloudscan.services.protocol.binary import pack_scan_binary
from cloudscan.services.shared.topics import TopicRegistry
from cloudscan.services.tf import TransformBuffer
from cloudscan.services.websocket.manager import ConnectionManager, manager

from .config_loader import ConfigLoader
from .node_factory import NodeFactory

logger = get_logger(__name__)


class NodeManager:
    """
    Hosts the processing nodes: creates them from definitions, drains the
    shared data queue into them and routes their scans to websocket topics.
    """

    def __init__(
        self,
        resolver: Optional[TransformBuffer] = None,
        connections: Optional[ConnectionManager] = None,
        config_loader: Optional[ConfigLoader] = None,
    ):
        self.nodes_data: List[Dict[str, Any]] = []
        self.data_queue: Any = mp.Queue(maxsize=100)
        self.is_running = False
        self._loop: Any = None
        self._listener_task: Any = None
        self._topic_registry = TopicRegistry()
        self._config_loader = config_loader

        self.resolver = resolver or TransformBuffer(cache_time=settings.TF_CACHE_TIME)
        self.connections = connections or manager

        # Runtime tracking instances
        self.nodes: Dict[str, Any] = {}
        self.node_runtime_status: Dict[str, Dict[str, Any]] = {}

    def load_config(self):
        """Loads node definitions and instantiates them through the NodeFactory."""
        loader = self._config_loader or ConfigLoader.from_settings()
        try:
            self.nodes_data = loader.load()
        except Exception as e:
            logger.error(f"Error loading node definitions: {e}", exc_info=True)
            return

        for node in self.nodes_data:
            self.add_node(node)

        logger.info(f"Initialized {len(self.nodes)} nodes: {list(self.nodes)}")

    def add_node(self, node: Dict[str, Any]) -> Optional[Any]:
        """Create, register and (if running) start a single node."""
        node_id = node.get("id")
        if not node_id or node_id in self.nodes:
            logger.error(f"Cannot add node with missing or duplicate id: {node_id}")
            return None

        config = node.setdefault("config", {})
        config["topic"] = self._topic_registry.register(config.get("topic") or node.get("name") or node_id, node_id)

        try:
            node_instance = NodeFactory.create(node, self)
        except Exception as e:
            self._topic_registry.unregister(config["topic"])
            logger.error(f"Failed to create node {node_id}: {e}", exc_info=True)
            return None

        self.nodes[node_id] = node_instance
        self.connections.register_topic(node_instance.topic)
        logger.debug(f"Created node: {node_id} with topic: {node_instance.topic}")

        if self.is_running:
            node_instance.start(self.data_queue, self.node_runtime_status)
        return node_instance

    def reload_config(self, loop=None):
        """Stops all nodes, reloads definitions, and restarts."""
        was_running = self.is_running

        self.stop()
        
        for node_id in list(self.nodes.keys()):
            self.remove_node(node_id)
            
        self._topic_registry.clear()
        self.load_config()

        if was_running:
            self.start(loop or self._loop)

    def start(self, loop=None):
        self._loop = loop or asyncio.get_event_loop()
        self.is_running = True
        self.data_queue = mp.Queue(maxsize=100)

        for node_instance in self.nodes.values():
            node_instance.start(self.data_queue, self.node_runtime_status)
                
        self._listener_task = self._loop.create_task(self._queue_listener())

    def stop(self):
        self.is_running = False
        if self._listener_task:
            self._listener_task.cancel()
            self._listener_task = None
        
        for node_instance in self.nodes.values():
            node_instance.stop()
                
        logger.info("All nodes stopped.")

    def remove_node(self, node_id: str):
        """Dynamically removes a node, stopping its feed and releasing its topic."""
        node_instance = self.nodes.pop(node_id, None)
        if not node_instance:
            return

        logger.info(f"Removing node {node_id} from running orchestrator")
        node_instance.stop()

        self.connections.unregister_topic(node_instance.topic)
        self._topic_registry.unregister(node_instance.topic)
        self.node_runtime_status.pop(node_id, None)

    async def _queue_listener(self):
        loop = asyncio.get_running_loop()
        while self.is_running:
            try:
                if not self.data_queue.empty():
                    payload = await loop.run_in_executor(None, self.data_queue.get)
                    await self.handle_incoming_data(payload)
                else:
                    await asyncio.sleep(0.005)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Listener error: {e}", exc_info=True)
                await asyncio.sleep(0.1)

    async def handle_incoming_data(self, payload: Dict[str, Any]):
        node_id = payload.get("node_id")
        node_instance = self.nodes.get(node_id)
        if node_instance is None:
            logger.warning(f"Received data for unknown node: {node_id}")
            return
        await node_instance.on_input(payload)

    async def forward_data(self, source_id: str, payload: Dict[str, Any]):
        """
        Deliver a node's output scan to its websocket topic.
        
        Args:
            source_id: Node that produced the scan
            payload: Dict with at least a "scan" RangeScan entry
        """
        source_node = self.nodes.get(source_id)
        if not source_node:
            logger.warning(f"forward_data called for unknown node: {source_id}")
            return

        scan = payload.get("scan")
        topic = source_node.topic
        if scan is None or not self.connections.has_subscribers(topic):
            return

        try:
            await self.connections.broadcast(topic, pack_scan_binary(scan))
            logger.debug(f"Broadcasted scan with {len(scan.ranges)} bins from {source_id} on topic '{topic}'")
        except Exception as e:
            logger.error(f"Error broadcasting from node '{source_id}': {e}", exc_info=True)
