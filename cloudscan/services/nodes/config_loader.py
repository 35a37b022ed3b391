"""
Node definition loading.

Node definitions come from the JSON file named by SCAN_NODES_FILE, or, when
unset, a single default cloud-to-scan node built from the environment
settings. Scan parameter overrides from SCAN_PARAMS_FILE apply to every node
that does not carry its own.
"""
import json
import os
from typing import Any, Dict, List

from cloudscan.core.config import settings
from cloudscan.core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_NODE_ID = "cloud_to_scan"


class ConfigLoader:
    """Builds the list of node definitions the NodeManager should create."""

    def __init__(self, nodes_file: str = "", params_file: str = ""):
        self.nodes_file = nodes_file
        self.params_file = params_file

    @classmethod
    def from_settings(cls) -> "ConfigLoader":
        return cls(nodes_file=settings.SCAN_NODES_FILE, params_file=settings.SCAN_PARAMS_FILE)

    def load(self) -> List[Dict[str, Any]]:
        """
        Load node definitions.
        
        Returns:
            List of dicts with keys id, name, type, enabled and config
        """
        if self.nodes_file:
            nodes = self._read_json(self.nodes_file)
            if not isinstance(nodes, list):
                raise ValueError(f"{self.nodes_file}: expected a JSON list of node definitions")
        else:
            nodes = [self.default_node()]

        overrides = self._read_json(self.params_file) if self.params_file else None
        enabled = []
        for node in nodes:
            if not node.get("enabled", True):
                continue
            node.setdefault("type", "cloud_to_scan")
            node.setdefault("name", node.get("id", DEFAULT_NODE_ID))
            config = node.setdefault("config", {})
            if overrides is not None and "parameters" not in config:
                config["parameters"] = dict(overrides)
            enabled.append(node)

        logger.info(f"Loaded {len(enabled)} enabled node definitions")
        return enabled

    @staticmethod
    def default_node() -> Dict[str, Any]:
        return {
            "id": DEFAULT_NODE_ID,
            "name": "Cloud To Scan",
            "type": "cloud_to_scan",
            "enabled": True,
            "config": {
                "source": settings.SCAN_SOURCE,
                "pcd_path": settings.SCAN_PCD_PATH,
                "cloud_frame_id": settings.SCAN_CLOUD_FRAME_ID,
                "rate_hz": settings.SCAN_RATE_HZ,
            },
        }

    @staticmethod
    def _read_json(path: str) -> Any:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
