"""
Pluggable node modules.

Every sub-package that ships a `registry` module is a node type. Importing
the registry registers its NodeDefinition with node_schema_registry and its
builder with NodeFactory.
"""
import importlib
import pkgutil
import os
from typing import List

from cloudscan.core.logging_config import get_logger

logger = get_logger(__name__)


def discover_modules() -> List[str]:
    """
    Import the registry of every sub-package once.
    
    Returns:
        Names of the modules whose registry loaded
    """
    loaded = []
    for info in pkgutil.iter_modules([os.path.dirname(__file__)]):
        if not info.ispkg:
            continue

        registry = f"{__name__}.{info.name}.registry"
        try:
            importlib.import_module(registry)
        except ModuleNotFoundError as e:
            if e.name != registry:
                logger.error(f"Module '{info.name}' registry has a missing dependency: {e}", exc_info=True)
            continue
        except Exception as e:
            # A broken module must not take the others down with it
            logger.error(f"Failed to load module '{info.name}' registry: {e}", exc_info=True)
            continue
        loaded.append(info.name)

    logger.info(f"Loaded node modules: {loaded}")
    return loaded
