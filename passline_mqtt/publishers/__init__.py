"""
MQTT Publishers
==============

Bounded Context: Message Production

Design:
- BasePublisher: Abstract base with connection management
- CrossingEventPublisher: One message per counted crossing
- TrackSnapshotPublisher: Active tracks per processed frame

Example:
    >>> from passline_mqtt.publishers import CrossingEventPublisher
    >>> from passline_mqtt.logging import create_logger
    >>>
    >>> publisher = CrossingEventPublisher(
    ...     broker_host="localhost",
    ...     topic="passline/data/crossings/cam_01",
    ...     logger=create_logger("mqtt_publisher")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_crossing(crossing_message)
"""

from .base import BasePublisher
from .crossing import CrossingEventPublisher
from .tracks import TrackSnapshotPublisher

__all__ = [
    'BasePublisher',
    'CrossingEventPublisher',
    'TrackSnapshotPublisher',
]
