"""Interaction tracking and model refresh scheduling.

The tracker is the write path: it records events, bumps product counters
and decides when the model is due for a rebuild. Tracking is best effort;
failures are logged and never reach the caller.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from hyperrec.recommender.catalog import CatalogRepository
from hyperrec.recommender.generation import ModelHandle
from hyperrec.recommender.records import InteractionKind, to_datetime
from hyperrec.recommender.store import InteractionStore

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_REFRESH_EVENT_THRESHOLD = 100
DEFAULT_REFRESH_INTERVAL_SECONDS = 3600.0


@dataclass
class RefreshPolicy:
    """Refresh after N events or T seconds since the last refresh."""

    event_threshold: int = DEFAULT_REFRESH_EVENT_THRESHOLD
    interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS

    def is_due(self, events_since_refresh: int, seconds_since_refresh: float) -> bool:
        if self.event_threshold > 0 and events_since_refresh >= self.event_threshold:
            return True
        if self.interval_seconds > 0 and seconds_since_refresh >= self.interval_seconds:
            return True
        return False


class InteractionTracker:
    """Records interactions and triggers model refreshes.

    Args:
        store: Interaction store receiving the events.
        catalog: Catalog whose product counters are incremented.
        handle: Model handle to refresh.
        policy: When a refresh is due.
        background: Run refreshes on a daemon thread instead of inline.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        store: InteractionStore,
        catalog: CatalogRepository,
        handle: ModelHandle,
        policy: Optional[RefreshPolicy] = None,
        background: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.catalog = catalog
        self.handle = handle
        self.policy = policy or RefreshPolicy()
        self.background = background
        self._clock = clock

        self._lock = threading.Lock()
        self._events_since_refresh = 0
        self._last_refresh = clock()
        self._refresh_thread: Optional[threading.Thread] = None

    def track(
        self,
        user_id: str,
        product_id: str,
        kind: InteractionKind,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Record one interaction.

        Appends the event, updates the product's analytics counter and
        starts a refresh if one is due.

        Args:
            user_id: Acting user.
            product_id: Product acted upon.
            kind: Interaction kind.
            metadata: Optional ``duration`` (seconds), ``source`` and
                ``timestamp``.

        Returns:
            True if the event and counter update were recorded, False if
            anything failed.
        """
        metadata = metadata or {}

        try:
            kind = InteractionKind(kind)
            timestamp = metadata.get("timestamp")
            self.store.record(
                user_id=user_id,
                product_id=product_id,
                kind=kind,
                timestamp=to_datetime(timestamp) if timestamp is not None else None,
                duration=metadata.get("duration"),
                source=metadata.get("source"),
            )
            self.catalog.increment_counter(product_id, kind)
        except Exception as e:
            logger.warning(
                "Failed to track interaction",
                extra={
                    "user_id": user_id,
                    "product_id": product_id,
                    "kind": str(kind),
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            return False
        finally:
            with self._lock:
                self._events_since_refresh += 1

        self.maybe_refresh()
        return True

    def maybe_refresh(self) -> bool:
        """Start a refresh if the policy says one is due.

        Returns:
            True if a refresh was started (or completed, when inline).
        """
        with self._lock:
            due = self.policy.is_due(
                self._events_since_refresh,
                self._clock() - self._last_refresh,
            )
            if not due or self.handle.is_refreshing:
                return False
            self._events_since_refresh = 0
            self._last_refresh = self._clock()

        logger.info("Model refresh due", extra={"background": self.background})

        if not self.background:
            return self.handle.refresh()

        thread = threading.Thread(target=self.handle.refresh, name="hyperrec-refresh", daemon=True)
        self._refresh_thread = thread
        thread.start()
        return True

    def refresh(self) -> bool:
        """Rebuild the model now and restart the policy counters on success."""
        built = self.handle.refresh()
        if built:
            with self._lock:
                self._events_since_refresh = 0
                self._last_refresh = self._clock()
        return built

    def wait_for_refresh(self, timeout: Optional[float] = None) -> None:
        """Block until the last background refresh finishes."""
        thread = self._refresh_thread
        if thread is not None:
            thread.join(timeout)

    @property
    def events_since_refresh(self) -> int:
        return self._events_since_refresh


class RefreshScheduler:
    """Background loop that checks the refresh policy on a timer."""

    def __init__(self, tracker: InteractionTracker, check_interval_seconds: float = 60.0):
        self.tracker = tracker
        if check_interval_seconds <= 0:
            raise ValueError("check_interval_seconds must be positive")
        self.check_interval_seconds = check_interval_seconds
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.thread and self.thread.is_alive():
            logger.warning("Refresh scheduler already running")
            return

        self.stop_event.clear()
        self.thread = threading.Thread(
            target=self._loop, name="hyperrec-refresh-scheduler", daemon=True
        )
        self.thread.start()
        logger.info(
            "Started refresh scheduler",
            extra={"check_interval_seconds": self.check_interval_seconds},
        )

    def stop(self, timeout: float = 30.0) -> None:
        if not self.thread:
            return
        self.stop_event.set()
        self.thread.join(timeout=timeout)
        logger.info("Stopped refresh scheduler")

    def _loop(self) -> None:
        while not self.stop_event.wait(self.check_interval_seconds):
            try:
                self.tracker.maybe_refresh()
            except Exception as e:
                logger.error(f"Error in refresh scheduler: {e}", exc_info=True)
