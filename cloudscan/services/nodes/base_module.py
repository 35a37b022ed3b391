"""
Abstract base class for pluggable processing nodes.

This module defines the contract every node must implement to be hosted by
the NodeManager: lifecycle (initialize/start/stop), frame input and
configuration changes.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional


class ModuleNode(ABC):
    """
    Abstract base class for all pluggable module nodes.
    
    The NodeManager interacts with nodes exclusively through these methods.
    
    Required attributes:
        id (str): Unique identifier for this node instance
        name (str): Display name for this node
        manager (Any): Reference to the NodeManager orchestrator
    """

    id: str
    name: str
    manager: Any  # NodeManager reference (avoids circular import)

    @abstractmethod
    def initialize(self, config: Mapping[str, Any]) -> Any:
        """
        Apply the node's initial configuration.
        
        Called once by the factory builder before the node is started.
        """
        ...

    @abstractmethod
    async def on_input_frame(self, frame: Any) -> Any:
        """
        Process one complete input frame.
        
        Implementations must not raise for per-frame failures; they log,
        record the error in their status and drop the frame.
        """
        ...

    @abstractmethod
    def on_configuration_changed(self, config: Mapping[str, Any]) -> Any:
        """
        Replace the node's configuration as a whole.
        
        Raises:
            ConfigurationInvalid: If the new configuration is rejected; the
                previous configuration stays in effect
        """
        ...

    @abstractmethod
    async def on_input(self, payload: Dict[str, Any]) -> None:
        """
        Receive a raw payload from the data queue.
        
        The payload typically contains:
            - points: np.ndarray of point cloud data
            - frame_id: str (source coordinate frame)
            - timestamp: float (capture time, seconds)
            - node_id: str (target node ID)
        """
        ...

    @abstractmethod
    def get_status(self, runtime_status: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Return a status dictionary for the API.
        
        Must include at minimum:
            - id (str): Node ID
            - name (str): Node name
            - type (str): Node type
            - running (bool): Whether the node is active
        """
        ...

    def start(self, data_queue: Any = None, runtime_status: Optional[Dict[str, Any]] = None) -> None:
        """
        Called when the orchestrator starts.
        
        Args:
            data_queue: Queue that input feeds push payloads onto
            runtime_status: Shared runtime state dictionary
        """
        pass

    def stop(self) -> None:
        """Called when the orchestrator stops; release feeds and workers."""
        pass
