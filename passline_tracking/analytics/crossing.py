"""
Crossing Evaluator Module
=========================

Stateless crossing decision over a track's retained path.

Design:
- All methods are static (no instance state)
- Configuration injected per call (the one in effect for this frame)
- Mutates only the evaluated track's counted flag
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from passline_tracking.analytics.track import Track
from passline_tracking.config import Direction, TrackingConfig
from passline_tracking.geometry.shapes import Centroid


@dataclass(frozen=True)
class CrossingEvent:
    """
    Immutable record of one counted crossing.

    Attributes:
        track_id: Track that crossed
        direction: Direction the crossing was counted in
        timestamp: Frame clock (ms) of the frame that produced the crossing
        displacement: Net x displacement over the path window
        recorded_at: Wall-clock time the event was created (UTC)
    """

    track_id: int
    direction: Direction
    timestamp: float
    displacement: float
    recorded_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    def to_dict(self) -> dict:
        return {
            "track_id": self.track_id,
            "direction": self.direction.value,
            "timestamp": self.timestamp,
            "displacement": self.displacement,
            "recorded_at": self.recorded_at.isoformat(),
        }


class CrossingEvaluator:
    """
    Decides whether a track has crossed in the configured direction.

    A crossing is the net x displacement between the first and last
    centroid of the current path exceeding move_threshold in the counted
    direction. Each track yields at most one event.

    Usage:
        event = CrossingEvaluator.evaluate(track, config, now)
        if event is not None:
            counter.on_crossing(event)
    """

    @staticmethod
    def net_displacement(path: Sequence[Centroid]) -> float:
        """x displacement from the oldest to the newest centroid."""
        if len(path) < 2:
            return 0.0
        return path[-1].x - path[0].x

    @staticmethod
    def is_crossing(displacement: float, config: TrackingConfig) -> bool:
        if config.direction is Direction.FORWARD:
            return displacement > config.move_threshold
        return displacement < -config.move_threshold

    @staticmethod
    def evaluate(
        track: Track,
        config: TrackingConfig,
        now: float,
    ) -> Optional[CrossingEvent]:
        """
        Evaluate one track and mark it counted on crossing.

        Args:
            track: Track to evaluate
            config: Configuration in effect for this frame
            now: Frame clock (ms)

        Returns:
            CrossingEvent if the track crossed, None otherwise
        """
        if track.counted or track.evicted or len(track.path) < 2:
            return None

        displacement = CrossingEvaluator.net_displacement(track.path)
        if not CrossingEvaluator.is_crossing(displacement, config):
            return None

        track.mark_counted()
        return CrossingEvent(
            track_id=track.track_id,
            direction=config.direction,
            timestamp=now,
            displacement=displacement,
        )
