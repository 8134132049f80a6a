"""
Passline Tracking
=================

Bounded Context: Directional people counting over per-frame detections.

Design Philosophy:
- Separation of Concerns: Geometry, Analytics, Orchestration separated
- The detector is external: the core only consumes materialized detections
- Explicit state: every tracker owns its tracks (one instance per stream)
- Pull-based: frames are processed when the caller says so

Architecture:

    passline_tracking/
    ├── config.py          # TrackingConfig (frozen), LiveConfig, Direction
    ├── sources.py         # DetectionRecord, DetectionSource, supervision adapter
    │
    ├── geometry/          # Pure geometry (immutable, stateless)
    │   └── shapes.py      # BoundingBox, Centroid, distances_to
    │
    ├── analytics/         # Tracking & counting (stateful)
    │   ├── track.py       # Track, TrackSnapshot, TrackState
    │   ├── tracker.py     # PersonTracker, FrameResult
    │   ├── crossing.py    # CrossingEvaluator, CrossingEvent
    │   └── counter.py     # CrossingCounter, CounterStats
    │
    └── pipeline.py        # CountingPipeline, PipelineBuilder, FrameSampler

Usage:

    from passline_tracking import (
        CountingPipeline, TrackingConfig, DetectionRecord,
    )

    pipeline = CountingPipeline(TrackingConfig(direction="forward"))

    result = pipeline.process(
        [DetectionRecord(x=10, y=40, width=30, height=80, score=0.9)],
        now=0.0,
    )
    for event in result.crossings:
        print(event.track_id, event.direction)

    pipeline.config.update(direction="reverse")   # applies from next frame
    print(pipeline.snapshot().stats)
"""

# Configuration
from passline_tracking.config import Direction, TrackingConfig, LiveConfig

# Geometry Layer (immutable, stateless)
from passline_tracking.geometry.shapes import BoundingBox, Centroid

# Input boundary
from passline_tracking.sources import (
    DetectionRecord,
    DetectionSource,
    ReplayDetectionSource,
    records_from_supervision,
)

# Analytics Layer (stateful)
from passline_tracking.analytics.track import TrackSnapshot, TrackState
from passline_tracking.analytics.tracker import PersonTracker, FrameResult
from passline_tracking.analytics.crossing import CrossingEvaluator, CrossingEvent
from passline_tracking.analytics.counter import CrossingCounter, CounterStats

# Pipeline (orchestration)
from passline_tracking.pipeline import (
    CountingPipeline,
    PipelineBuilder,
    PipelineSnapshot,
    FrameSampler,
)

__all__ = [
    # Configuration
    "Direction",
    "TrackingConfig",
    "LiveConfig",
    # Geometry
    "BoundingBox",
    "Centroid",
    # Input
    "DetectionRecord",
    "DetectionSource",
    "ReplayDetectionSource",
    "records_from_supervision",
    # Analytics
    "TrackSnapshot",
    "TrackState",
    "PersonTracker",
    "FrameResult",
    "CrossingEvaluator",
    "CrossingEvent",
    "CrossingCounter",
    "CounterStats",
    # Pipeline
    "CountingPipeline",
    "PipelineBuilder",
    "PipelineSnapshot",
    "FrameSampler",
]

__version__ = "1.0.0"
