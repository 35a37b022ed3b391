"""
Node registry for the cloud-to-scan module.

Registers the node type with the NodeManager. Loaded automatically via
discover_modules() at application startup.
"""
import math
from typing import Any, Dict

from cloudscan.core.config import settings
from cloudscan.services.nodes.node_factory import NodeFactory
from cloudscan.services.nodes.schema import (
    NodeDefinition, PropertySchema, PortSchema, node_schema_registry
)

from .parameters import ScanParameters

NODE_TYPE = "cloud_to_scan"

_defaults = ScanParameters()


def _number(name: str, label: str, unit: str, **bounds: Any) -> PropertySchema:
    return PropertySchema(
        name=name, label=label, type="number", unit=unit,
        default=getattr(_defaults, name), **bounds
    )


# --- Schema Definition ---

CLOUD_TO_SCAN_DEFINITION = NodeDefinition(
    type=NODE_TYPE,
    display_name="Cloud To Scan",
    category="operation",
    description="Projects a height slab of a 3D point cloud into a planar range scan",
    icon="radar",
    properties=[
        # Input feed
        PropertySchema(name="source", label="Input Source", type="select", default="push", options=[
            {"label": "Pushed frames (HTTP)", "value": "push"},
            {"label": "PCD playback", "value": "pcd"}
        ]),
        PropertySchema(name="pcd_path", label="PCD Path", type="string", help_text="Path to .pcd file (playback only)"),
        PropertySchema(name="cloud_frame_id", label="Cloud Frame", type="string", help_text="Frame of played-back clouds"),
        PropertySchema(name="rate_hz", label="Playback Rate", type="number", unit="Hz", min=0.1, step=0.5),

        # Scan parameters
        _number("min_height", "Min Height", "m", step=0.01),
        _number("max_height", "Max Height", "m", step=0.01),
        _number("angle_min", "Angle Min", "rad", min=-math.pi, max=math.pi, step=0.01),
        _number("angle_max", "Angle Max", "rad", min=-math.pi, max=math.pi, step=0.01),
        _number("angle_increment", "Angle Increment", "rad", min=0.0, step=0.001),
        _number("scan_time", "Scan Time", "s", min=0.0, step=0.001),
        _number("range_min", "Range Min", "m", min=0.0, step=0.01),
        _number("range_max", "Range Max", "m", min=0.0, step=0.1),
        PropertySchema(name="output_frame_id", label="Output Frame", type="string", default=_defaults.output_frame_id, required=True),
        PropertySchema(name="ref_frame_id", label="Reference Frame", type="string", default=_defaults.ref_frame_id, required=True),
        _number("transform_timeout", "Transform Timeout", "s", min=0.0, step=0.1),
    ],
    inputs=[
        PortSchema(id="cloud", label="Point Cloud")
    ],
    outputs=[
        PortSchema(id="scan", label="Range Scan", data_type="laserscan")
    ]
)

node_schema_registry.register(CLOUD_TO_SCAN_DEFINITION)


# --- Factory Builder ---

@NodeFactory.register(NODE_TYPE)
def build_cloud_to_scan(node: Dict[str, Any], service_context: Any) -> Any:
    """Build a CloudToScanNode and its input feed from a node definition."""
    from cloudscan.services.feed import PcdPlaybackFeed, PushFeed  # lazy import
    from .node import CloudToScanNode  # lazy import avoids circular dep

    node_id = node["id"]
    config = {**CLOUD_TO_SCAN_DEFINITION.defaults(), **node.get("config", {})}
    source = config["source"]

    if source == "pcd":
        feed = PcdPlaybackFeed(
            node_id,
            pcd_path=config.get("pcd_path") or settings.SCAN_PCD_PATH,
            frame_id=config.get("cloud_frame_id") or settings.SCAN_CLOUD_FRAME_ID,
            rate_hz=float(config.get("rate_hz") or settings.SCAN_RATE_HZ),
        )
    elif source == "push":
        feed = PushFeed(node_id)
    else:
        raise ValueError(f"Unknown input source '{source}' for node {node_id}")

    node_instance = CloudToScanNode(
        service_context,
        node_id,
        name=node.get("name"),
        topic=config.get("topic"),
        feed=feed,
    )
    # Scan parameters may sit flat in the node config or under "parameters"
    parameters = {k: v for k, v in config.items() if k in ScanParameters.model_fields}
    parameters.update(config.get("parameters") or {})
    node_instance.initialize(parameters)
    return node_instance
