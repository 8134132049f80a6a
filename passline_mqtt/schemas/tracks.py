"""
Track Snapshot Message Schema
=============================

Bounded Context: Track state for external renderers

Per-frame view of active tracks plus the running total. A renderer draws
boxes (green when counted, red otherwise) and the path polyline from it.

Message Flow:
    CountingPipeline → FrameResult → TrackSnapshotMessage → TrackSnapshotPublisher → MQTT
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from passline_tracking.analytics.track import TrackSnapshot
from passline_tracking.analytics.tracker import FrameResult
from .common import BBox, Timestamp


@dataclass(frozen=True)
class TrackPayload:
    """
    One active track.

    Attributes:
        track_id: Track identifier
        bbox: Current bounding box
        counted: Whether this track has been counted
        path: Centroid history as (x, y) pairs, oldest first
    """
    track_id: int
    bbox: BBox
    counted: bool
    path: List[Tuple[float, float]] = field(default_factory=list)

    @classmethod
    def from_snapshot(cls, track: TrackSnapshot) -> 'TrackPayload':
        return cls(
            track_id=track.track_id,
            bbox=BBox.from_bounding_box(track.bbox),
            counted=track.counted,
            path=[point.as_tuple() for point in track.path],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'track_id': self.track_id,
            'bbox': self.bbox.to_dict(),
            'counted': self.counted,
            'path': [list(point) for point in self.path],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackPayload':
        try:
            return cls(
                track_id=int(data['track_id']),
                bbox=BBox.from_dict(data['bbox']),
                counted=bool(data['counted']),
                path=[(float(x), float(y)) for x, y in data.get('path', [])],
            )
        except KeyError as e:
            raise ValueError(f"Missing required TrackPayload field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid TrackPayload data: {e}")


@dataclass(frozen=True)
class TrackSnapshotMessage:
    """
    Active tracks of one processed frame.

    Attributes:
        schema_version: Message schema version
        timestamp: ISO 8601 timestamp of message creation
        frame_id: Sequential processed-frame number
        source_id: Service / camera identifier
        total: Counter total after this frame
        tracks: Active tracks
    """
    schema_version: str
    timestamp: Timestamp
    frame_id: int
    source_id: str
    total: int
    tracks: List[TrackPayload] = field(default_factory=list)

    def __post_init__(self):
        """Validate invariants."""
        if self.frame_id < 0:
            raise ValueError(f"Frame ID must be >= 0, got {self.frame_id}")
        if self.total < 0:
            raise ValueError(f"Total must be >= 0, got {self.total}")

    @classmethod
    def from_frame(
        cls,
        result: FrameResult,
        frame_id: int,
        source_id: str,
        total: int,
        schema_version: str = "1.0",
    ) -> 'TrackSnapshotMessage':
        return cls(
            schema_version=schema_version,
            timestamp=Timestamp.now(),
            frame_id=frame_id,
            source_id=source_id,
            total=total,
            tracks=[TrackPayload.from_snapshot(track) for track in result.tracks],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'frame_id': self.frame_id,
            'source_id': self.source_id,
            'total': self.total,
            'tracks': [track.to_dict() for track in self.tracks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrackSnapshotMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                frame_id=int(data['frame_id']),
                source_id=str(data['source_id']),
                total=int(data['total']),
                tracks=[TrackPayload.from_dict(t) for t in data.get('tracks', [])],
            )
        except KeyError as e:
            raise ValueError(f"Missing required TrackSnapshotMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid TrackSnapshotMessage data: {e}")

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    @property
    def counted_tracks(self) -> List[TrackPayload]:
        return [track for track in self.tracks if track.counted]
