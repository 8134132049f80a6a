"""
Crossing Counter Module
=======================

Stateful accumulator for crossing events.

Design:
- Mutable state (counters, bounded history log)
- Immutable snapshots (CounterStats)
- Listener hooks for external persistence / publishing
- Reset capability (does not touch tracker state)
"""

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Deque, List, Optional, Tuple

from passline_tracking.analytics.crossing import CrossingEvent
from passline_tracking.config import Direction

logger = logging.getLogger(__name__)

CrossingListener = Callable[[CrossingEvent], None]


@dataclass(frozen=True)
class CounterStats:
    """
    Immutable statistics snapshot.

    Attributes:
        total: Crossings counted since creation or last reset
        forward: Crossings counted in the forward direction
        reverse: Crossings counted in the reverse direction
        history_size: Events currently retained in the history log
        dropped: Events pushed out of the history log by its size limit
        last_crossing_at: Wall-clock time of the latest crossing
    """

    total: int = 0
    forward: int = 0
    reverse: int = 0
    history_size: int = 0
    dropped: int = 0
    last_crossing_at: Optional[datetime] = None

    def __str__(self) -> str:
        return f"Total: {self.total} (forward={self.forward}, reverse={self.reverse})"

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "forward": self.forward,
            "reverse": self.reverse,
            "history_size": self.history_size,
            "dropped": self.dropped,
            "last_crossing_at": (
                self.last_crossing_at.isoformat() if self.last_crossing_at else None
            ),
        }


class CrossingCounter:
    """
    Running total and history log of crossing events.

    The history log is a ring buffer of history_limit events; the total is
    not bounded by it. Listeners are called once per event, in registration
    order; a failing listener is logged and skipped.

    Usage:
        counter = CrossingCounter(history_limit=1000)
        counter.add_listener(publisher_hook)

        for event in result.crossings:
            counter.on_crossing(event)

        stats = counter.get_stats()  # Immutable
    """

    def __init__(self, history_limit: int = 1000):
        """
        Args:
            history_limit: Maximum number of events kept in the history log
        """
        if history_limit < 1:
            raise ValueError(f"history_limit must be >= 1, got {history_limit}")

        self._history: Deque[CrossingEvent] = deque(maxlen=history_limit)
        self._total = 0
        self._forward = 0
        self._reverse = 0
        self._dropped = 0
        self._listeners: List[CrossingListener] = []

    @property
    def total(self) -> int:
        return self._total

    @property
    def history(self) -> Tuple[CrossingEvent, ...]:
        """Retained events, oldest first."""
        return tuple(self._history)

    @property
    def history_limit(self) -> int:
        return self._history.maxlen

    def add_listener(self, listener: CrossingListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: CrossingListener) -> None:
        self._listeners.remove(listener)

    def on_crossing(self, event: CrossingEvent) -> None:
        """
        Count one crossing event and append it to the history log.

        Args:
            event: Event emitted by the crossing evaluator
        """
        self._total += 1
        if event.direction is Direction.FORWARD:
            self._forward += 1
        else:
            self._reverse += 1

        if len(self._history) == self._history.maxlen:
            self._dropped += 1
        self._history.append(event)

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    f"Crossing listener {listener!r} failed for track "
                    f"{event.track_id}: {e}",
                    exc_info=True,
                )

    def get_stats(self) -> CounterStats:
        return CounterStats(
            total=self._total,
            forward=self._forward,
            reverse=self._reverse,
            history_size=len(self._history),
            dropped=self._dropped,
            last_crossing_at=self._history[-1].recorded_at if self._history else None,
        )

    def reset(self) -> None:
        """Zero the counters and clear the history log."""
        self._total = 0
        self._forward = 0
        self._reverse = 0
        self._dropped = 0
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)

    def __repr__(self) -> str:
        return f"CrossingCounter(total={self._total}, history={len(self._history)})"
