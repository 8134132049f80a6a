"""
Track Module
============

A track is the hypothesis that a sequence of per-frame detections belongs to
the same person.

State machine:

    NEW ──► TRACKED ──► COUNTED ──► EVICTED
     │         │                       ▲
     └─────────┴───────────────────────┘

EVICTED is terminal. COUNTED is only left through eviction.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from passline_tracking.geometry.shapes import BoundingBox, Centroid


class TrackState(str, Enum):
    """Lifecycle state of a track."""
    NEW = "new"              # created, never matched since
    TRACKED = "tracked"      # matched at least once, not counted
    COUNTED = "counted"      # crossing emitted
    EVICTED = "evicted"      # removed for staleness (terminal)


class InvalidTransitionError(RuntimeError):
    """Raised when a track is driven through a forbidden state transition."""
    pass


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Read-only view of a track for renderers and publishers.

    Attributes:
        track_id: Track identifier
        bbox: Current bounding box
        counted: Whether a crossing was emitted for this track
        path: Centroid history, oldest first
        last_seen: Timestamp (ms) of the last match
        state: Lifecycle state at snapshot time
    """

    track_id: int
    bbox: BoundingBox
    counted: bool
    path: Tuple[Centroid, ...]
    last_seen: float
    state: TrackState


@dataclass
class Track:
    """
    Mutable track owned by a PersonTracker.

    Mutated only through record_match(), mark_counted() and mark_evicted()
    so the state machine and the path bound hold.
    """

    track_id: int
    bbox: BoundingBox
    last_seen: float
    counted: bool = False
    path: List[Centroid] = field(default_factory=list)
    hits: int = 0
    evicted: bool = False

    def __post_init__(self):
        if not self.path:
            self.path = [self.bbox.centroid]

    @property
    def state(self) -> TrackState:
        if self.evicted:
            return TrackState.EVICTED
        if self.counted:
            return TrackState.COUNTED
        if self.hits > 0:
            return TrackState.TRACKED
        return TrackState.NEW

    @property
    def last_centroid(self) -> Centroid:
        return self.path[-1]

    def record_match(self, bbox: BoundingBox, now: float, path_window: int) -> None:
        """
        Apply a matched detection: overwrite bbox, refresh last_seen,
        append the centroid and drop the oldest points beyond path_window.
        """
        if self.evicted:
            raise InvalidTransitionError(f"Track {self.track_id} is evicted")

        self.bbox = bbox
        self.last_seen = now
        self.hits += 1
        self.path.append(bbox.centroid)
        self.trim_path(path_window)

    def trim_path(self, path_window: int) -> None:
        overflow = len(self.path) - path_window
        if overflow > 0:
            del self.path[:overflow]

    def mark_counted(self) -> None:
        if self.evicted:
            raise InvalidTransitionError(f"Track {self.track_id} is evicted")
        if self.counted:
            raise InvalidTransitionError(f"Track {self.track_id} already counted")
        self.counted = True

    def mark_evicted(self) -> None:
        self.evicted = True

    def is_stale(self, now: float, stale_timeout_ms: float) -> bool:
        return now - self.last_seen > stale_timeout_ms

    def snapshot(self) -> TrackSnapshot:
        return TrackSnapshot(
            track_id=self.track_id,
            bbox=self.bbox,
            counted=self.counted,
            path=tuple(self.path),
            last_seen=self.last_seen,
            state=self.state,
        )
