"""
Passline MQTT Schemas
=====================

Bounded Context: Data Structures

Immutable, typed data structures for MQTT messages.

Design:
- Frozen dataclasses (immutability)
- to_dict() / from_dict() for JSON
- Schema versioning for evolution

Public API
----------
Common Types:
    BBox, Timestamp

Crossing Types:
    CounterTotals, CrossingMessage

Track Snapshot Types:
    TrackPayload, TrackSnapshotMessage
"""

from .common import BBox, Timestamp
from .crossing import CounterTotals, CrossingMessage
from .tracks import TrackPayload, TrackSnapshotMessage

__all__ = [
    # Common types
    'BBox',
    'Timestamp',
    # Crossing types
    'CounterTotals',
    'CrossingMessage',
    # Track snapshot types
    'TrackPayload',
    'TrackSnapshotMessage',
]
