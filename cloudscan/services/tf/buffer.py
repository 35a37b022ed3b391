"""
Time-indexed store of transforms between named frames.

Edges are kept as parent <- child StampedTransforms. A lookup walks the frame
graph from the source to the target frame, inverting edges walked towards a
child, and evaluates every dynamic edge at the requested stamp by
interpolating between its two bracketing samples. Static edges are valid at
any time. A stamp of 0 asks for the latest available transform.
"""
import bisect
import threading
import time
from typing import Dict, List, Optional, Tuple

from scipy.spatial.transform import Rotation, Slerp

from cloudscan.core.logging_config import get_logger
from cloudscan.modules.scan.errors import TransformUnavailable
from cloudscan.modules.scan.transforms import RigidTransform, StampedTransform

logger = get_logger(__name__)

MAX_HISTORY = 1000
PUBLISHER = "publish"


def normalize_frame_id(frame_id: str) -> str:
    """Strip the legacy leading slash so '/base_link' and 'base_link' match."""
    return (frame_id or "").strip().lstrip("/")


class _Edge:
    """History of one parent <- child transform, ordered by stamp."""

    def __init__(self, parent: str, child: str, static: bool, authority: str = "default"):
        self.parent = parent
        self.child = child
        self.static = static
        self.authority = authority
        self.stamps: List[float] = []
        self.samples: List[StampedTransform] = []

    def insert(self, stamped: StampedTransform, cache_time: float):
        if self.static:
            self.samples = [stamped]
            self.stamps = [stamped.stamp]
            return

        pos = bisect.bisect_left(self.stamps, stamped.stamp)
        if pos < len(self.stamps) and self.stamps[pos] == stamped.stamp:
            self.samples[pos] = stamped
        else:
            self.samples.insert(pos, stamped)
            self.stamps.insert(pos, stamped.stamp)

        oldest_kept = self.stamps[-1] - cache_time
        drop = max(bisect.bisect_left(self.stamps, oldest_kept), len(self.stamps) - MAX_HISTORY)
        if drop > 0:
            del self.samples[:drop]
            del self.stamps[:drop]

    def latest(self) -> Optional[StampedTransform]:
        return self.samples[-1] if self.samples else None

    def at(self, stamp: float) -> Optional[RigidTransform]:
        if not self.samples:
            return None
        if self.static or stamp == 0:
            return self.samples[-1].transform

        pos = bisect.bisect_left(self.stamps, stamp)
        if pos < len(self.stamps) and self.stamps[pos] == stamp:
            return self.samples[pos].transform
        if pos == 0 or pos == len(self.stamps):
            # No extrapolation outside the recorded history
            return None

        before = self.samples[pos - 1]
        after = self.samples[pos]
        ratio = (stamp - before.stamp) / (after.stamp - before.stamp)
        translation = (1.0 - ratio) * before.transform.translation + ratio * after.transform.translation
        slerp = Slerp(
            [before.stamp, after.stamp],
            Rotation.concatenate([before.transform.rotation, after.transform.rotation]),
        )
        return RigidTransform(slerp([stamp])[0], translation)


class TransformBuffer:
    """
    Thread-safe transform resolver.

    lookup() blocks on a condition variable until every edge on the path can
    be evaluated at the requested stamp, or the timeout runs out.
    """

    def __init__(self, cache_time: float = 10.0):
        self.cache_time = cache_time
        self._edges: Dict[str, _Edge] = {}
        self._cond = threading.Condition()
        self._shadowed: set = set()

    def set_transform(self, stamped: StampedTransform, static: bool = False, authority: str = "default") -> None:
        parent = normalize_frame_id(stamped.parent_frame)
        child = normalize_frame_id(stamped.child_frame)
        if not parent or not child:
            raise ValueError("parent_frame and child_frame must be non-empty")
        if parent == child:
            raise ValueError(f"Frame '{child}' cannot be its own parent")

        stamped = StampedTransform(parent, child, float(stamped.stamp), stamped.transform)
        with self._cond:
            edge = self._edges.get(child)
            published = authority == PUBLISHER
            if (
                edge is None or edge.parent != parent or edge.static != static
                or (edge.authority == PUBLISHER) != published
            ):
                if edge is not None and edge.parent != parent:
                    logger.info(f"Frame '{child}' re-parented from '{edge.parent}' to '{parent}' by {authority}")
                edge = _Edge(parent, child, static, authority)
                self._edges[child] = edge
            edge.insert(stamped, self.cache_time)
            self._cond.notify_all()

    def publish(self, stamped: StampedTransform) -> None:
        """
        Fire-and-forget broadcast of a dynamic transform.

        A published frame only ever extends the tree. When the child frame is
        already attached by someone else, or already has frames hanging off it,
        the broadcast is skipped with a warning and the existing tree is kept.
        """
        parent = normalize_frame_id(stamped.parent_frame)
        child = normalize_frame_id(stamped.child_frame)
        with self._cond:
            reason = self._publish_conflict(parent, child)
            if reason:
                if child not in self._shadowed:
                    self._shadowed.add(child)
                    logger.warning(f"Not publishing '{parent}' <- '{child}': {reason}")
                return
            self._shadowed.discard(child)
            self.set_transform(stamped, static=False, authority=PUBLISHER)

    def _publish_conflict(self, parent: str, child: str) -> str:
        edge = self._edges.get(child)
        if edge is not None:
            if edge.authority != PUBLISHER or edge.static:
                return f"frame '{child}' is already attached to '{edge.parent}' by {edge.authority}"
            if edge.parent != parent:
                return f"frame '{child}' is already published under '{edge.parent}'"
            return ""
        if any(e.parent == child for e in self._edges.values()):
            return f"frame '{child}' already roots other frames"
        return ""

    def clear(self) -> None:
        with self._cond:
            self._edges.clear()
            self._shadowed.clear()

    def frames(self) -> List[Tuple[StampedTransform, bool]]:
        """Latest sample of every edge, paired with its static flag."""
        with self._cond:
            latest = [(edge.latest(), edge.static) for edge in self._edges.values()]
        return [(s, static) for s, static in latest if s is not None]

    def lookup(self, target_frame: str, source_frame: str, stamp: float, timeout: float = 0.0) -> RigidTransform:
        """
        Resolve the transform mapping points in `source_frame` into `target_frame`.
        
        Args:
            target_frame: Frame the result maps into
            source_frame: Frame the result maps from
            stamp: Time in seconds; 0 asks for the latest transform
            timeout: Seconds to wait for the transform to become available
        
        Raises:
            TransformUnavailable: When no transform can be produced before the timeout
        """
        target = normalize_frame_id(target_frame)
        source = normalize_frame_id(source_frame)
        deadline = time.monotonic() + max(0.0, timeout)

        with self._cond:
            while True:
                result, reason = self._resolve(target, source, stamp)
                if result is not None:
                    return result
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TransformUnavailable(target, source, stamp, reason)
                self._cond.wait(remaining)

    def _resolve(self, target: str, source: str, stamp: float) -> Tuple[Optional[RigidTransform], str]:
        if not target or not source:
            return None, "empty frame id"
        if target == source:
            return RigidTransform.identity(), ""

        source_chain = self._chain_to_root(source)
        target_chain = self._chain_to_root(target)
        target_set = {frame: i for i, frame in enumerate(target_chain)}
        common = next((f for f in source_chain if f in target_set), None)
        if common is None:
            return None, f"frames '{source}' and '{target}' are not connected"

        # source -> common, walking child to parent
        source_to_common = RigidTransform.identity()
        for frame in source_chain[:source_chain.index(common)]:
            edge = self._edges[frame]
            step = edge.at(stamp)
            if step is None:
                return None, f"no '{edge.parent}' <- '{frame}' transform at t={stamp}"
            source_to_common = step.compose(source_to_common)

        # target -> common, then inverted
        target_to_common = RigidTransform.identity()
        for frame in target_chain[:target_set[common]]:
            edge = self._edges[frame]
            step = edge.at(stamp)
            if step is None:
                return None, f"no '{edge.parent}' <- '{frame}' transform at t={stamp}"
            target_to_common = step.compose(target_to_common)

        return target_to_common.inverse().compose(source_to_common), ""

    def _chain_to_root(self, frame: str) -> List[str]:
        chain = [frame]
        seen = {frame}
        while frame in self._edges:
            frame = self._edges[frame].parent
            if frame in seen:
                logger.warning(f"Cycle detected in frame tree at '{frame}'")
                break
            chain.append(frame)
            seen.add(frame)
        return chain
