"""
Property schemas describing each node type's configuration, served by
/api/v1/scan/definitions so a client can render a settings form.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

class PropertySchema(BaseModel):
    name: str
    label: str
    type: str  # "string", "number", "boolean", "select"
    default: Optional[Any] = None
    options: Optional[List[Dict[str, Any]]] = None  # For "select" type
    required: bool = False
    help_text: Optional[str] = None
    unit: Optional[str] = None  # "m", "rad", "s", "Hz"
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None

class PortSchema(BaseModel):
    id: str
    label: str
    data_type: str = "pointcloud"  # "pointcloud" or "laserscan"

class NodeDefinition(BaseModel):
    type: str
    display_name: str
    category: str
    description: Optional[str] = None
    icon: str = "radar"
    properties: List[PropertySchema] = []
    inputs: List[PortSchema] = []
    outputs: List[PortSchema] = []

    def defaults(self) -> Dict[str, Any]:
        """Default value of every property that declares one."""
        return {p.name: p.default for p in self.properties if p.default is not None}

class SchemaRegistry:
    def __init__(self):
        self._definitions: Dict[str, NodeDefinition] = {}

    def register(self, definition: NodeDefinition):
        if definition.type in self._definitions:
            raise ValueError(f"Node type '{definition.type}' is already registered")
        self._definitions[definition.type] = definition

    def get_all(self) -> List[NodeDefinition]:
        return list(self._definitions.values())

    def get(self, type_name: str) -> Optional[NodeDefinition]:
        return self._definitions.get(type_name)

node_schema_registry = SchemaRegistry()
