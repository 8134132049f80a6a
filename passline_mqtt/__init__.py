"""
Passline MQTT Communication Package
===================================

Bounded Context: Communication Protocol for People Counting

MQTT messaging between the counter service and its consumers (dashboards,
renderers, persistence).

Architecture:
- schemas/: Immutable data structures with type safety
- publishers/: Message producers (CrossingEventPublisher, TrackSnapshotPublisher)
- logging/: Structured JSON logging for observability

Public API
----------
Schemas:
    BBox, Timestamp
    CounterTotals, CrossingMessage
    TrackPayload, TrackSnapshotMessage

Publishers:
    BasePublisher, CrossingEventPublisher, TrackSnapshotPublisher

Logging:
    LogEvent, StructuredLogger, create_logger

Example:
    >>> from passline_mqtt import CrossingEventPublisher, CrossingMessage, create_logger
    >>> from passline_tracking import CountingPipeline
    >>>
    >>> pipeline = CountingPipeline()
    >>> publisher = CrossingEventPublisher(
    ...     broker_host="localhost",
    ...     topic="passline/data/crossings/cam_01",
    ...     logger=create_logger("mqtt_publisher"),
    ... )
    >>> publisher.connect()
    >>> pipeline.add_listener(
    ...     lambda event: publisher.publish_crossing(
    ...         CrossingMessage.from_event(event, pipeline.counter.get_stats(), "cam_01")
    ...     )
    ... )
"""

__version__ = "1.0.0"

# Schemas
from .schemas import (
    BBox,
    Timestamp,
    CounterTotals,
    CrossingMessage,
    TrackPayload,
    TrackSnapshotMessage,
)

# Publishers
from .publishers import (
    BasePublisher,
    CrossingEventPublisher,
    TrackSnapshotPublisher,
)

# Logging
from .logging import (
    LogEvent,
    StructuredLogger,
    create_logger,
)

__all__ = [
    '__version__',
    # Schemas - Common
    'BBox',
    'Timestamp',
    # Schemas - Crossings
    'CounterTotals',
    'CrossingMessage',
    # Schemas - Tracks
    'TrackPayload',
    'TrackSnapshotMessage',
    # Publishers
    'BasePublisher',
    'CrossingEventPublisher',
    'TrackSnapshotPublisher',
    # Logging
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
