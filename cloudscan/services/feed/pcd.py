import multiprocessing as mp
import queue
import time
from typing import Any, Optional

import numpy as np
import open3d as o3d  # type: ignore

from cloudscan.core.logging_config import get_logger

logger = get_logger(__name__)


def pcd_worker_process(node_id: str, pcd_path: str, frame_id: str, rate_hz: float, data_queue: Any, stop_event: Any):
    """
    Worker process that simulates a depth sensor by playing back a PCD file.
    """
    logger.info(f"[{node_id}] PCD feed starting with file: {pcd_path}")
    try:
        pcd = o3d.io.read_point_cloud(pcd_path)
        if pcd.is_empty():
            logger.error(f"[{node_id}] PCD file is empty or could not be loaded: {pcd_path}")
            return
        points = np.asarray(pcd.points, dtype=np.float32)
        logger.info(f"[{node_id}] Loaded {len(points)} points from {pcd_path}")
    except Exception as e:
        logger.error(f"[{node_id}] Error loading PCD file: {e}", exc_info=True)
        return

    period = 1.0 / rate_hz if rate_hz > 0 else 0.1
    while not stop_event.is_set():
        start_time = time.time()
        payload = {
            "node_id": node_id,
            "points": points.copy(),
            "frame_id": frame_id,
            "timestamp": start_time,
        }
        try:
            data_queue.put(payload, block=False)
        except queue.Full:
            pass  # Consumer is behind; drop this frame
        elapsed = time.time() - start_time
        stop_event.wait(max(0.0, period - elapsed))
    logger.info(f"[{node_id}] PCD feed stopped.")


class PcdPlaybackFeed:
    """Replays a PCD file at a fixed rate from a worker process."""

    def __init__(self, node_id: str, pcd_path: str, frame_id: str, rate_hz: float = 10.0):
        self.node_id = node_id
        self.pcd_path = pcd_path
        self.frame_id = frame_id
        self.rate_hz = rate_hz
        self._process: Optional[mp.Process] = None
        self._stop_event: Optional[Any] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def start(self, data_queue: Any) -> None:
        if self.running:
            return
        self._stop_event = mp.Event()
        self._process = mp.Process(
            target=pcd_worker_process,
            args=(self.node_id, self.pcd_path, self.frame_id, self.rate_hz, data_queue, self._stop_event),
            daemon=True,
        )
        self._process.start()

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._process is not None:
            self._process.join(timeout=2.0)
            if self._process.is_alive():
                logger.warning(f"[{self.node_id}] PCD feed did not stop in time, terminating")
                self._process.terminate()
        self._process = None
        self._stop_event = None
