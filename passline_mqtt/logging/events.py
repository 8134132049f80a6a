"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <component>.<category>.<action>

    component: mqtt, tracking, crossing, tracks, error
    category: connected, publish, counter, config
    action: success, failed, counted, updated

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.track_id
    | filter event = "tracking.crossing.counted"
    | stats count() by bin(5m)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - mqtt.*: MQTT broker interactions
    - tracking.*: Tracking and counting
    - crossing.* / tracks.*: Message serialization
    - error.*: Error conditions
    """

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Tracking Events ==========
    FRAME_PROCESSED = "tracking.frame.processed"
    """One frame went through the counting pipeline."""

    DETECTION_REJECTED = "tracking.detection.rejected"
    """Malformed detections were skipped in a frame."""

    CROSSING_COUNTED = "tracking.crossing.counted"
    """A track crossed in the counted direction."""

    COUNTER_RESET = "tracking.counter.reset"
    """Counter and crossing history were cleared."""

    CONFIG_UPDATED = "tracking.config.updated"
    """Live tracking configuration changed."""

    # ========== Message Events ==========
    CROSSING_EVENT_SERIALIZED = "crossing.event.serialized"
    """Crossing message serialized to JSON."""

    TRACK_SNAPSHOT_SERIALIZED = "tracks.snapshot.serialized"
    """Track snapshot message serialized to JSON."""

    # ========== Error Events ==========
    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    CONFIG_ERROR = "error.config"
    """Rejected configuration change."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""

    MQTT_PUBLISH_ERROR = "error.mqtt_publish"
    """Error during message publication."""


# Event categories for filtering
MQTT_EVENTS = {
    LogEvent.MQTT_CONNECTED,
    LogEvent.MQTT_DISCONNECTED,
    LogEvent.MQTT_PUBLISH_SUCCESS,
    LogEvent.MQTT_PUBLISH_FAILED,
}

TRACKING_EVENTS = {
    LogEvent.FRAME_PROCESSED,
    LogEvent.DETECTION_REJECTED,
    LogEvent.CROSSING_COUNTED,
    LogEvent.COUNTER_RESET,
    LogEvent.CONFIG_UPDATED,
}

ERROR_EVENTS = {
    LogEvent.SERIALIZATION_ERROR,
    LogEvent.CONFIG_ERROR,
    LogEvent.MQTT_CONNECTION_ERROR,
    LogEvent.MQTT_PUBLISH_ERROR,
}
