"""
Person Tracker Module
=====================

Stateful frame-by-frame association of person detections into tracks.

Design:
- Owns its TrackerState (track_id -> Track); one instance per video stream
- One consistent configuration snapshot per frame
- Greedy first-match association in track insertion order
- Bad detections are rejected one by one; a frame never raises for input
- Caller serializes process_frame() calls (single processing loop)
"""

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from passline_tracking.analytics.crossing import CrossingEvaluator, CrossingEvent
from passline_tracking.analytics.track import Track, TrackSnapshot
from passline_tracking.config import LiveConfig, TrackingConfig
from passline_tracking.geometry.shapes import BoundingBox, distances_to
from passline_tracking.sources import DetectionRecord

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Default frame clock in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass(frozen=True)
class FrameResult:
    """
    Outcome of one process_frame() call.

    Attributes:
        timestamp: Frame clock (ms) used for this frame
        tracks: Active tracks after eviction, in insertion order
        crossings: Crossing events emitted this frame
        created: Ids of tracks created this frame
        evicted: Ids of tracks evicted this frame
        rejected: Number of malformed detections skipped
        config: Configuration snapshot the frame was processed with
    """

    timestamp: float
    tracks: Tuple[TrackSnapshot, ...]
    crossings: Tuple[CrossingEvent, ...]
    created: Tuple[int, ...] = ()
    evicted: Tuple[int, ...] = ()
    rejected: int = 0
    config: TrackingConfig = field(default_factory=TrackingConfig)

    @property
    def counted_track_ids(self) -> Tuple[int, ...]:
        """Tracks that became counted this frame."""
        return tuple(event.track_id for event in self.crossings)


class PersonTracker:
    """
    Nearest-centroid tracker with directional crossing evaluation.

    Per frame:
        1. Centroid of each accepted detection
        2. First unmatched track (insertion order) closer than
           match_threshold is matched; otherwise a new track is created
        3. Matched tracks: bbox, last_seen and path updated
        4. Crossing evaluation for matched, uncounted tracks
        5. Eviction of tracks unseen for more than stale_timeout_ms

    Usage:
        tracker = PersonTracker(TrackingConfig(direction="forward"))
        result = tracker.process_frame(detections, now=frame_ms)
        for event in result.crossings:
            counter.on_crossing(event)
    """

    def __init__(
        self,
        config: TrackingConfig | LiveConfig | None = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        """
        Args:
            config: Static config or a LiveConfig shared with a controller
            clock: Frame clock (ms) used when process_frame() gets no `now`
        """
        if isinstance(config, LiveConfig):
            self._config = config
        else:
            self._config = LiveConfig(config)
        self._clock = clock
        self._tracks: Dict[int, Track] = {}
        self._ids = itertools.count(1)

    @property
    def config(self) -> LiveConfig:
        return self._config

    @property
    def tracks(self) -> List[TrackSnapshot]:
        """Snapshots of active tracks, in insertion order."""
        return [track.snapshot() for track in self._tracks.values()]

    def get(self, track_id: int) -> Optional[TrackSnapshot]:
        track = self._tracks.get(track_id)
        return track.snapshot() if track is not None else None

    def __len__(self) -> int:
        return len(self._tracks)

    def __repr__(self) -> str:
        return f"PersonTracker(tracked={len(self._tracks)})"

    def clear(self) -> None:
        """Drop all tracks. Ids keep increasing and are never reused."""
        for track in self._tracks.values():
            track.mark_evicted()
        self._tracks.clear()

    def process_frame(
        self,
        detections: Optional[Iterable[Any]],
        now: Optional[float] = None,
    ) -> FrameResult:
        """
        Process one frame of detections.

        Args:
            detections: DetectionRecord, BoundingBox, (x, y, w, h) or
                        (x, y, w, h, label, score) items, or an Nx4 array;
                        None or empty ages tracks only
            now: Frame clock in ms (default: tracker clock)

        Returns:
            FrameResult with active tracks and crossings of this frame
        """
        config = self._config.snapshot()
        now = self._clock() if now is None else float(now)

        assigned: Set[int] = set()
        matched: List[Track] = []
        created: List[int] = []
        rejected = 0

        if detections is None:
            detections = ()

        for detection in detections:
            try:
                bbox = self._accept(detection, config)
                if bbox is None:
                    continue

                track = self._match(bbox, assigned, config)
                if track is not None:
                    track.record_match(bbox, now, config.path_window)
                    matched.append(track)
                else:
                    track = self._create(bbox, now)
                    created.append(track.track_id)
                assigned.add(track.track_id)

            except (TypeError, ValueError) as e:
                rejected += 1
                logger.warning(f"Rejected detection {detection!r}: {e}")

        crossings = []
        for track in matched:
            event = CrossingEvaluator.evaluate(track, config, now)
            if event is not None:
                crossings.append(event)
                logger.info(
                    f"Track {track.track_id} crossed {event.direction.value} "
                    f"(dx={event.displacement:.1f}px)"
                )

        evicted = self._evict_stale(now, config)

        for track in self._tracks.values():
            track.trim_path(config.path_window)

        return FrameResult(
            timestamp=now,
            tracks=tuple(self.tracks),
            crossings=tuple(crossings),
            created=tuple(created),
            evicted=tuple(evicted),
            rejected=rejected,
            config=config,
        )

    def _accept(self, detection: Any, config: TrackingConfig) -> Optional[BoundingBox]:
        """
        Validate a detection into a BoundingBox.

        Returns:
            BoundingBox, or None for a well-formed detection the policy skips
            (other label, score below min_score)

        Raises:
            TypeError, ValueError: If the detection is malformed
        """
        if isinstance(detection, (tuple, list)) and len(detection) == 6:
            detection = DetectionRecord(*detection)

        if isinstance(detection, BoundingBox):
            return detection

        if isinstance(detection, DetectionRecord):
            if detection.label != config.target_label:
                return None
            if config.min_score is not None and detection.score < config.min_score:
                return None
            return detection.bbox()

        if isinstance(detection, (tuple, list, np.ndarray)):
            return BoundingBox.from_sequence(detection)

        raise TypeError(f"Unsupported detection type: {type(detection).__name__}")

    def _match(
        self,
        bbox: BoundingBox,
        assigned: Set[int],
        config: TrackingConfig,
    ) -> Optional[Track]:
        candidates = [
            track for track_id, track in self._tracks.items()
            if track_id not in assigned
        ]
        if not candidates:
            return None

        distances = distances_to(
            bbox.centroid, [track.last_centroid for track in candidates]
        )
        within = np.flatnonzero(distances < config.match_threshold)
        if within.size == 0:
            return None
        return candidates[int(within[0])]

    def _create(self, bbox: BoundingBox, now: float) -> Track:
        track = Track(track_id=next(self._ids), bbox=bbox, last_seen=now)
        self._tracks[track.track_id] = track
        logger.debug(
            f"Track {track.track_id} created at "
            f"({track.last_centroid.x:.1f}, {track.last_centroid.y:.1f})"
        )
        return track

    def _evict_stale(self, now: float, config: TrackingConfig) -> List[int]:
        stale_ids = [
            track_id for track_id, track in self._tracks.items()
            if track.is_stale(now, config.stale_timeout_ms)
        ]
        for track_id in stale_ids:
            track = self._tracks.pop(track_id)
            track.mark_evicted()
            logger.debug(f"Track {track_id} evicted (counted={track.counted})")
        return stale_ids
