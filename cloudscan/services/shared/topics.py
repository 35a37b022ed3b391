"""
Topic name generation for scan output streams.
"""
import re
from typing import Set


def slugify_topic_prefix(name: str) -> str:
    """
    Converts a node name into a URL-friendly, stable topic name.
    
    Rules:
    - Lowercase, so topics are unique regardless of case
    - Runs of characters outside [a-z0-9_-] become a single underscore
    - Leading and trailing underscores or hyphens are stripped
    - An empty result falls back to "scan"
    
    Args:
        name: Raw name to convert
    
    Returns:
        Lowercase slugified topic, "scan" if nothing usable remains
    
    Examples:
        >>> slugify_topic_prefix("Front Kinect #1")
        'front_kinect_1'
        >>> slugify_topic_prefix("")
        'scan'
    """
    base = (name or "").strip().lower()
    
    # Replace non [a-z0-9_-] with underscore
    base = re.sub(r"[^a-z0-9_-]+", "_", base)
    
    # Collapse repeats, strip edges
    base = re.sub(r"_+", "_", base).strip("_-")
    
    return base or "scan"


def generate_unique_topic_prefix(
    desired: str,
    node_id: str,
    existing_prefixes: Set[str]
) -> str:
    """
    Generates a unique topic, adding suffixes if needed to avoid collisions.
    
    Strategy:
    1. Try the slugified desired name
    2. If taken, append a shortened node_id suffix
    3. If still taken, append incrementing numbers
    
    Args:
        desired: Requested topic name, slugified before use
        node_id: ID of the node that will own the topic, used for the suffix
        existing_prefixes: Topic names already handed out
    
    Returns:
        Lowercase topic name not present in existing_prefixes
    
    Examples:
        >>> generate_unique_topic_prefix("Scan", "abc123", {"rear"})
        'scan'
        >>> generate_unique_topic_prefix("Scan", "abc123", {"scan"})
        'scan_abc123'
        >>> generate_unique_topic_prefix("Scan", "abc123", {"scan", "scan_abc123"})
        'scan_abc123_2'
    """
    base = slugify_topic_prefix(desired)
    
    if base not in existing_prefixes:
        return base
    
    suffix = re.sub(r"[^a-z0-9_-]+", "_", (node_id or "").lower())[:8].strip("_-")
    candidate = f"{base}_{suffix}" if suffix else f"{base}_1"
    
    if candidate not in existing_prefixes:
        return candidate
    
    i = 2
    while True:
        candidate = f"{base}_{suffix}_{i}" if suffix else f"{base}_{i}"
        if candidate not in existing_prefixes:
            return candidate
        i += 1


class TopicRegistry:
    """
    Registry for managing topic uniqueness across nodes.
    """
    
    def __init__(self):
        self._prefixes: Set[str] = set()
    
    def register(self, desired: str, node_id: str) -> str:
        """
        Registers a topic for a node, ensuring uniqueness.
        
        Args:
            desired: Requested topic name
            node_id: Owning node ID for suffix generation
        
        Returns:
            The unique topic name actually assigned
        """
        prefix = generate_unique_topic_prefix(desired, node_id, self._prefixes)
        self._prefixes.add(prefix)
        return prefix
    
    def unregister(self, prefix: str) -> None:
        """
        Releases a topic name so another node may take it.
        
        Args:
            prefix: Topic name to release
        """
        self._prefixes.discard(prefix)
    
    def clear(self) -> None:
        """Forgets every registered topic."""
        self._prefixes.clear()
    
    def get_all(self) -> Set[str]:
        """Returns a copy of the registered topic names."""
        return self._prefixes.copy()
