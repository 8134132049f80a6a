"""
Crossing Message Schema
=======================

Bounded Context: Crossing Event Data Structures

Schema of the message published for each counted crossing.

Message Flow:
    CrossingCounter → CrossingEvent → CrossingMessage → CrossingEventPublisher → MQTT
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict

from passline_tracking.analytics.counter import CounterStats
from passline_tracking.analytics.crossing import CrossingEvent
from passline_tracking.config import Direction
from .common import Timestamp


@dataclass(frozen=True)
class CounterTotals:
    """
    Counter totals at the time a message was built.

    Attributes:
        total: All crossings since last reset
        forward: Forward crossings since last reset
        reverse: Reverse crossings since last reset
    """
    total: int = 0
    forward: int = 0
    reverse: int = 0

    @classmethod
    def from_stats(cls, stats: CounterStats) -> 'CounterTotals':
        return cls(total=stats.total, forward=stats.forward, reverse=stats.reverse)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CounterTotals':
        return cls(
            total=int(data.get('total', 0)),
            forward=int(data.get('forward', 0)),
            reverse=int(data.get('reverse', 0)),
        )


@dataclass(frozen=True)
class CrossingMessage:
    """
    One counted crossing, ready for publication.

    Attributes:
        schema_version: Message schema version (for evolution)
        timestamp: ISO 8601 wall-clock time of the crossing
        source_id: Service / camera identifier
        track_id: Track that crossed
        direction: Counted direction
        displacement: Net x displacement over the path window (pixels)
        frame_time_ms: Frame clock of the frame that produced the crossing
        totals: Counter totals including this crossing

    Invariants:
        - track_id >= 0
        - displacement sign matches direction
    """
    schema_version: str
    timestamp: Timestamp
    source_id: str
    track_id: int
    direction: Direction
    displacement: float
    frame_time_ms: float
    totals: CounterTotals

    def __post_init__(self):
        """Validate invariants."""
        if self.track_id < 0:
            raise ValueError(f"Track ID must be >= 0, got {self.track_id}")
        if self.direction is Direction.FORWARD and self.displacement < 0:
            raise ValueError("Forward crossing must have positive displacement")
        if self.direction is Direction.REVERSE and self.displacement > 0:
            raise ValueError("Reverse crossing must have negative displacement")

    @classmethod
    def from_event(
        cls,
        event: CrossingEvent,
        stats: CounterStats,
        source_id: str,
        schema_version: str = "1.0",
    ) -> 'CrossingMessage':
        return cls(
            schema_version=schema_version,
            timestamp=Timestamp.from_datetime(event.recorded_at),
            source_id=source_id,
            track_id=event.track_id,
            direction=event.direction,
            displacement=event.displacement,
            frame_time_ms=event.timestamp,
            totals=CounterTotals.from_stats(stats),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'source_id': self.source_id,
            'track_id': self.track_id,
            'direction': self.direction.value,
            'displacement': self.displacement,
            'frame_time_ms': self.frame_time_ms,
            'totals': self.totals.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CrossingMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                source_id=str(data['source_id']),
                track_id=int(data['track_id']),
                direction=Direction.parse(data['direction']),
                displacement=float(data['displacement']),
                frame_time_ms=float(data['frame_time_ms']),
                totals=CounterTotals.from_dict(data.get('totals', {})),
            )
        except KeyError as e:
            raise ValueError(f"Missing required CrossingMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid CrossingMessage data: {e}")

    @property
    def total(self) -> int:
        return self.totals.total
