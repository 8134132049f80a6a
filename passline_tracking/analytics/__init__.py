"""
Analytics Layer
===============

Bounded Context: Stateful tracking and counting.

Responsibilities:
- Associate detections into tracks across frames (PersonTracker)
- Decide directional crossings (CrossingEvaluator, stateless)
- Accumulate crossing counts and history (CrossingCounter)
- Generate immutable snapshots (TrackSnapshot, CounterStats, FrameResult)

Design Philosophy:
- Mutable state owned by one object per stream
- Immutable outputs
- Single-threaded per instance (caller serializes frames)
"""

from passline_tracking.analytics.track import (
    Track,
    TrackSnapshot,
    TrackState,
    InvalidTransitionError,
)
from passline_tracking.analytics.crossing import CrossingEvaluator, CrossingEvent
from passline_tracking.analytics.counter import CrossingCounter, CounterStats
from passline_tracking.analytics.tracker import PersonTracker, FrameResult

__all__ = [
    "Track",
    "TrackSnapshot",
    "TrackState",
    "InvalidTransitionError",
    "CrossingEvaluator",
    "CrossingEvent",
    "CrossingCounter",
    "CounterStats",
    "PersonTracker",
    "FrameResult",
]
