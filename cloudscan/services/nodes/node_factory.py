from typing import Any, Callable, Dict, List

from cloudscan.core.logging_config import get_logger

logger = get_logger(__name__)

NodeBuilder = Callable[[Dict[str, Any], Any], Any]


class NodeFactory:
    """
    Maps a node definition's "type" to the builder that instantiates it.

    Builders take (node_definition, service_context) where the context is the
    NodeManager, and return a ready-to-start ModuleNode.
    """
    _registry: Dict[str, NodeBuilder] = {}

    @classmethod
    def register(cls, node_type: str):
        """Decorator registering `builder_func` for `node_type`."""
        def decorator(builder_func: NodeBuilder) -> NodeBuilder:
            if node_type in cls._registry and cls._registry[node_type] is not builder_func:
                logger.warning(f"Replacing builder for node type '{node_type}'")
            cls._registry[node_type] = builder_func
            return builder_func
        return decorator

    @classmethod
    def types(cls) -> List[str]:
        return sorted(cls._registry)

    @classmethod
    def create(cls, node_data: Dict[str, Any], service_context: Any) -> Any:
        """
        Build a node from its definition.
        
        Raises:
            ValueError: If the definition has no type or the type is unknown
        """
        node_type = node_data.get("type")
        if not node_type:
            raise ValueError(f"Node definition '{node_data.get('id', 'unknown')}' has no 'type'")

        builder = cls._registry.get(node_type)
        if builder is None:
            raise ValueError(f"Unknown node type '{node_type}' (known: {', '.join(cls.types()) or 'none'})")

        return builder(node_data, service_context)
