import asyncio
import time
from typing import Any, Dict, Mapping, Optional

from cloudscan.core.logging_config import get_logger
from cloudscan.services.nodes.base_module import ModuleNode
from cloudscan.services.shared.subscription import LazySubscription
from cloudscan.services.shared.topics import slugify_topic_prefix

from .errors import ConfigurationInvalid, TransformUnavailable
from .frame_builder import ScanFrameBuilder
from .models import PointCloudFrame, RangeScan
from .parameters import ParameterStore, ScanParameters
from .projector import project_points

logger = get_logger(__name__)


class CloudToScanNode(ModuleNode):
    """
    Converts each incoming point cloud frame into a planar range scan.

    One frame is processed at a time; the heavy part runs in a worker thread
    against the parameter snapshot taken at the start of the pass.
    """
    type = "cloud_to_scan"

    def __init__(
        self,
        manager: Any,
        node_id: str,
        name: Optional[str] = None,
        topic: Optional[str] = None,
        feed: Any = None,
        resolver: Any = None,
        connections: Any = None,
    ):
        self.manager = manager
        self.id = node_id
        self.name = name or node_id
        self.topic = topic or slugify_topic_prefix(self.name)
        self.feed = feed
        self.resolver = resolver if resolver is not None else manager.resolver
        self.connections = connections if connections is not None else manager.connections

        self.parameters = ParameterStore()
        self.frame_builder = ScanFrameBuilder(self.resolver)
        self.subscription = LazySubscription(
            listener_count=lambda: self.connections.listener_count(self.topic),
            subscribe=self._subscribe,
            unsubscribe=self._unsubscribe,
            name=self.id,
        )
        self._data_queue: Any = None
        self._process_lock = asyncio.Lock()
        self._running = False

        # Runtime stats
        self.last_input_at: Optional[float] = None
        self.last_output_at: Optional[float] = None
        self.last_error: Optional[str] = None
        self.last_scan: Optional[RangeScan] = None
        self.processing_time_ms: float = 0.0
        self.frames_received: int = 0
        self.scans_produced: int = 0
        self.dropped_frames: int = 0

    # --- Configuration ---

    def initialize(self, config: Mapping[str, Any]) -> ScanParameters:
        params = self.parameters.replace(config)
        logger.info(
            f"[{self.id}] Initialized: {params.bin_count} bins over "
            f"[{params.angle_min:.3f}, {params.angle_max:.3f}] rad, "
            f"slab [{params.min_height}, {params.max_height}] m, "
            f"{params.ref_frame_id} -> {params.output_frame_id}"
        )
        return params

    def on_configuration_changed(self, config: Mapping[str, Any]) -> ScanParameters:
        try:
            params = self.parameters.replace(config)
        except ConfigurationInvalid as e:
            logger.warning(f"[{self.id}] Rejected configuration, keeping previous: {e}")
            raise
        logger.info(f"[{self.id}] Configuration replaced")
        return params

    def update_configuration(self, **changes: Any) -> ScanParameters:
        """Partial reconfiguration: merge `changes` onto the current parameters."""
        try:
            params = self.parameters.update(**changes)
        except ConfigurationInvalid as e:
            logger.warning(f"[{self.id}] Rejected configuration update, keeping previous: {e}")
            raise
        logger.info(f"[{self.id}] Configuration updated: {sorted(changes)}")
        return params

    # --- Processing ---

    def process_frame(self, frame: PointCloudFrame) -> RangeScan:
        """
        Run one projection pass synchronously.
        
        Raises:
            TransformUnavailable: If the cloud frame cannot be resolved into
                the reference frame within the configured timeout
        """
        params = self.parameters.snapshot()

        cloud_to_ref = self.resolver.lookup(
            params.ref_frame_id, frame.frame_id, frame.stamp, timeout=params.transform_timeout
        )
        scan_frame = self.frame_builder.build(cloud_to_ref, params, frame.stamp)
        ranges, stats = project_points(frame.points, scan_frame.cloud_to_out, params)

        return RangeScan(
            frame_id=params.output_frame_id,
            stamp=frame.stamp,
            angle_min=params.angle_min,
            angle_max=params.angle_max,
            angle_increment=params.angle_increment,
            time_increment=0.0,
            scan_time=params.scan_time,
            range_min=params.range_min,
            range_max=params.range_max,
            ranges=ranges,
            stats=stats,
        )

    async def on_input_frame(self, frame: PointCloudFrame) -> Optional[RangeScan]:
        self.last_input_at = time.time()
        self.frames_received += 1

        async with self._process_lock:
            start_time = time.time()
            try:
                scan = await asyncio.to_thread(self.process_frame, frame)
            except TransformUnavailable as e:
                self.dropped_frames += 1
                self.last_error = str(e)
                logger.warning(f"[{self.id}] Skipping frame: {e}")
                return None
            except Exception as e:
                self.dropped_frames += 1
                self.last_error = str(e)
                logger.error(f"[{self.id}] Error processing frame: {e}", exc_info=True)
                return None

            self.processing_time_ms = (time.time() - start_time) * 1000
            self.last_output_at = time.time()
            self.last_error = None
            self.last_scan = scan
            self.scans_produced += 1

            await self.manager.forward_data(self.id, {
                "node_id": self.id,
                "scan": scan,
                "timestamp": scan.stamp,
            })
            return scan

    async def on_input(self, payload: Dict[str, Any]) -> None:
        try:
            frame = PointCloudFrame.from_payload(payload)
        except (KeyError, ValueError) as e:
            self.dropped_frames += 1
            self.last_error = str(e)
            logger.error(f"[{self.id}] Malformed input payload: {e}")
            return
        await self.on_input_frame(frame)

    # --- Lifecycle ---

    def start(self, data_queue: Any = None, runtime_status: Optional[Dict[str, Any]] = None) -> None:
        self._data_queue = data_queue
        self._running = True
        self.connections.add_observer(self.topic, self.subscription.refresh)
        # Listeners may already be connected
        self.subscription.refresh()

    def stop(self) -> None:
        self._running = False
        self.connections.remove_observer(self.topic, self.subscription.refresh)
        self.subscription.shutdown()

    def _subscribe(self) -> None:
        if self.feed is None:
            return
        self.feed.start(self._data_queue)

    def _unsubscribe(self) -> None:
        if self.feed is None:
            return
        self.feed.stop()

    def push(self, frame: PointCloudFrame) -> bool:
        """Hand a frame to a push feed; False if no feed is accepting frames."""
        if self.feed is None or not hasattr(self.feed, "push"):
            return False
        return self.feed.push(frame)

    def get_status(self, runtime_status: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Returns standard status for this node"""
        params = self.parameters.snapshot()
        frame_age = time.time() - self.last_output_at if self.last_output_at else None
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "running": self._running,
            "topic": self.topic,
            "subscription": self.subscription.state.value,
            "feed": type(self.feed).__name__ if self.feed is not None else None,
            "frame_age_seconds": frame_age,
            "last_input_at": self.last_input_at,
            "last_output_at": self.last_output_at,
            "last_error": self.last_error,
            "processing_time_ms": self.processing_time_ms,
            "frames_received": self.frames_received,
            "scans_produced": self.scans_produced,
            "dropped_frames": self.dropped_frames,
            "bin_count": params.bin_count,
            "last_stats": self.last_scan.stats.to_dict() if self.last_scan else None,
        }
