import queue
import threading
from typing import Any, Optional

from cloudscan.core.logging_config import get_logger
from cloudscan.modules.scan.models import PointCloudFrame

logger = get_logger(__name__)


class PushFeed:
    """
    Feed for frames handed in by callers (the /clouds endpoint).

    Frames pushed while the feed is stopped are refused, the same way an
    unsubscribed topic delivers nothing.
    """

    def __init__(self, node_id: str):
        self.node_id = node_id
        self._queue: Optional[Any] = None
        self._lock = threading.Lock()
        self.pushed_count = 0
        self.refused_count = 0

    @property
    def running(self) -> bool:
        return self._queue is not None

    def start(self, data_queue: Any) -> None:
        with self._lock:
            self._queue = data_queue
        logger.info(f"[{self.node_id}] Push feed accepting frames")

    def stop(self) -> None:
        with self._lock:
            self._queue = None
        logger.info(f"[{self.node_id}] Push feed stopped")

    def push(self, frame: PointCloudFrame) -> bool:
        with self._lock:
            data_queue = self._queue
            if data_queue is None:
                self.refused_count += 1
                return False
            try:
                data_queue.put_nowait({
                    "node_id": self.node_id,
                    "points": frame.points,
                    "frame_id": frame.frame_id,
                    "timestamp": frame.stamp,
                })
            except queue.Full:
                self.refused_count += 1
                logger.warning(f"[{self.node_id}] Data queue full, dropping pushed frame")
                return False
            self.pushed_count += 1
            return True
