"""In-memory interaction store.

Keeps the most recent interaction events per user. Each user's history is a
bounded deque, so appends for different users never contend with each
other; the lock only guards creation of new per-user histories and the
copy taken for a snapshot.
"""

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Deque, Dict, Iterable, List, Optional, Set

from hyperrec.recommender.records import InteractionEvent, InteractionKind, utcnow

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS_PER_USER = 100


class InteractionStore:
    """Append-only, per-user capped event history."""

    def __init__(self, max_events_per_user: int = DEFAULT_MAX_EVENTS_PER_USER):
        if max_events_per_user <= 0:
            raise ValueError("max_events_per_user must be positive")

        self.max_events_per_user = max_events_per_user
        self._events: Dict[str, Deque[InteractionEvent]] = {}
        self._lock = threading.Lock()
        self._total_appended = 0

    def _history(self, user_id: str) -> Deque[InteractionEvent]:
        history = self._events.get(user_id)
        if history is None:
            with self._lock:
                history = self._events.setdefault(
                    user_id, deque(maxlen=self.max_events_per_user)
                )
        return history

    def append(self, event: InteractionEvent) -> None:
        """Record an event; the oldest event is dropped once the cap is hit."""
        self._history(event.user_id).append(event)
        self._total_appended += 1

    def record(
        self,
        user_id: str,
        product_id: str,
        kind: InteractionKind,
        timestamp: Optional[datetime] = None,
        duration: Optional[float] = None,
        source: Optional[str] = None,
    ) -> InteractionEvent:
        event = InteractionEvent(
            user_id=user_id,
            product_id=product_id,
            kind=InteractionKind(kind),
            timestamp=timestamp or utcnow(),
            duration=duration,
            source=source,
        )
        self.append(event)
        return event

    def extend(self, events: Iterable[InteractionEvent]) -> int:
        count = 0
        for event in events:
            self.append(event)
            count += 1
        return count

    def events_for(self, user_id: str) -> List[InteractionEvent]:
        """Events for one user, oldest first."""
        history = self._events.get(user_id)
        return list(history) if history is not None else []

    def viewed_product_ids(self, user_id: str) -> Set[str]:
        return {
            e.product_id for e in self.events_for(user_id)
            if e.kind == InteractionKind.VIEW
        }

    def snapshot(self) -> Dict[str, List[InteractionEvent]]:
        """Copy of every user's history, taken under the lock."""
        with self._lock:
            items = list(self._events.items())
        return {user_id: list(history) for user_id, history in items}

    @property
    def total_appended(self) -> int:
        return self._total_appended

    def __len__(self) -> int:
        return sum(len(history) for history in list(self._events.values()))
