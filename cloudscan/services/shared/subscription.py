"""
Demand-driven activation of an input feed.

The upstream subscription is held only while the output has at least one
listener. Every "listener count changed" notification calls refresh(), which
re-reads the count under one mutex, so concurrent notifications can neither
double-subscribe nor subscribe after the matching unsubscribe.
"""
import threading
from enum import Enum
from typing import Callable

from cloudscan.core.logging_config import get_logger

logger = get_logger(__name__)


class SubscriptionState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


class LazySubscription:
    """
    Two-state machine: INACTIVE -> ACTIVE when listeners appear, back to
    INACTIVE when the last one leaves.

    Args:
        listener_count: Returns the current number of downstream listeners
        subscribe: Starts the upstream feed
        unsubscribe: Stops the upstream feed
        name: Label used in log messages
    """

    def __init__(
        self,
        listener_count: Callable[[], int],
        subscribe: Callable[[], None],
        unsubscribe: Callable[[], None],
        name: str = "subscription",
    ):
        self._listener_count = listener_count
        self._subscribe = subscribe
        self._unsubscribe = unsubscribe
        self.name = name
        self._state = SubscriptionState.INACTIVE
        self._lock = threading.Lock()

    @property
    def state(self) -> SubscriptionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is SubscriptionState.ACTIVE

    def refresh(self, *_args) -> SubscriptionState:
        """Reconcile the state with the current listener count."""
        with self._lock:
            count = self._listener_count()
            if count > 0 and self._state is SubscriptionState.INACTIVE:
                logger.debug(f"[{self.name}] Connecting to point cloud feed ({count} listeners)")
                self._subscribe()
                self._state = SubscriptionState.ACTIVE
            elif count == 0 and self._state is SubscriptionState.ACTIVE:
                logger.debug(f"[{self.name}] Unsubscribing from point cloud feed")
                self._state = SubscriptionState.INACTIVE
                self._unsubscribe()
            return self._state

    def shutdown(self) -> None:
        """Tear the feed down regardless of listeners."""
        with self._lock:
            if self._state is SubscriptionState.ACTIVE:
                self._state = SubscriptionState.INACTIVE
                self._unsubscribe()
