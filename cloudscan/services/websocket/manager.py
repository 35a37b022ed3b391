import asyncio
from typing import Any, Callable, Dict, List

from fastapi import WebSocket

from cloudscan.core.logging_config import get_logger

logger = get_logger(__name__)

# System topics that should not be listed in the /topics endpoint
SYSTEM_TOPICS = {
    "system_status",
}


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}
        self._interceptors: Dict[str, List[asyncio.Future]] = {}
        self._observers: Dict[str, List[Callable[[int], None]]] = {}

    def register_topic(self, topic: str):
        """Pre-registers a topic so it appears in the topic list even with no active connections."""
        if topic not in self.active_connections:
            self.active_connections[topic] = []

    def unregister_topic(self, topic: str):
        """Removes a topic completely and cleans up any tracking."""
        if topic in self.active_connections:
            del self.active_connections[topic]
        if topic in self._interceptors:
            del self._interceptors[topic]
        self._observers.pop(topic, None)

    def add_observer(self, topic: str, callback: Callable[[int], None]):
        """Calls `callback(listener_count)` whenever the topic's listeners change."""
        self._observers.setdefault(topic, []).append(callback)

    def remove_observer(self, topic: str, callback: Callable[[int], None]):
        callbacks = self._observers.get(topic, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def listener_count(self, topic: str) -> int:
        """Websocket connections plus pending capture interceptors on this topic."""
        return len(self.active_connections.get(topic, [])) + len(self._interceptors.get(topic, []))

    def has_subscribers(self, topic: str) -> bool:
        """Returns True if there are active websocket connections OR active interceptors listening to this topic."""
        return self.listener_count(topic) > 0

    def _notify(self, topic: str):
        count = self.listener_count(topic)
        for callback in list(self._observers.get(topic, [])):
            try:
                callback(count)
            except Exception as e:
                logger.error(f"Listener observer for topic '{topic}' failed: {e}", exc_info=True)

    def reset_active_connections(self):
        topics = set(self.active_connections) | set(self._interceptors)
        self.active_connections.clear()
        self._interceptors.clear()
        for topic in topics:
            self._notify(topic)

    async def connect(self, websocket: WebSocket, topic: str):
        await websocket.accept()
        if topic not in self.active_connections:
            self.active_connections[topic] = []
        self.active_connections[topic].append(websocket)
        self._notify(topic)

    def disconnect(self, websocket: WebSocket, topic: str):
        if topic in self.active_connections:
            try:
                self.active_connections[topic].remove(websocket)
            except ValueError:
                return
            self._notify(topic)

    async def broadcast(self, topic: str, message: Any):
        # Handle active websocket connections
        if topic in self.active_connections:
            for connection in list(self.active_connections[topic]):
                if getattr(connection, '_is_sending', False):
                    # Drop this frame for this client rather than queueing behind a slow send
                    continue

                async def _send(conn=connection, msg=message):
                    conn._is_sending = True
                    try:
                        if isinstance(msg, bytes):
                            await conn.send_bytes(msg)
                        else:
                            await conn.send_json(msg)
                    except Exception:
                        self.disconnect(conn, topic)
                    finally:
                        conn._is_sending = False

                # Fire and forget instead of awaiting sequentially
                asyncio.create_task(_send())

        # Handle pending interceptors (for HTTP capture etc)
        if topic in self._interceptors:
            futures = self._interceptors.pop(topic)
            for future in futures:
                if not future.done():
                    future.set_result(message)
            self._notify(topic)

    async def wait_for_next(self, topic: str, timeout: float = 5.0) -> Any:
        """Waits for the next message broadcast on a specific topic."""
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        if topic not in self._interceptors:
            self._interceptors[topic] = []
        self._interceptors[topic].append(future)
        self._notify(topic)

        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            # Cleanup on timeout
            if topic in self._interceptors and future in self._interceptors[topic]:
                self._interceptors[topic].remove(future)
                if not self._interceptors[topic]:
                    del self._interceptors[topic]
                self._notify(topic)
            raise

    def get_public_topics(self) -> List[str]:
        """Returns list of topics excluding system topics."""
        return sorted([
            topic for topic in self.active_connections.keys()
            if topic not in SYSTEM_TOPICS
        ])


manager = ConnectionManager()
