"""
Crossing Event Publisher
========================

Bounded Context: Crossing Message Production

Publishes one message per counted crossing.

Message Flow:
    CrossingCounter listener → CrossingMessage → CrossingEventPublisher → MQTT Broker

Example:
    >>> from passline_mqtt import CrossingEventPublisher, create_logger
    >>> publisher = CrossingEventPublisher(
    ...     broker_host="localhost",
    ...     topic="passline/data/crossings/cam_01",
    ...     logger=create_logger("mqtt_publisher"),
    ... )
    >>> publisher.connect()
    >>> publisher.publish_crossing(message)
"""

from typing import Dict, Any, Optional
from .base import BasePublisher
from ..schemas import CrossingMessage
from ..logging import StructuredLogger, LogEvent


class CrossingEventPublisher(BasePublisher):
    """
    Publisher for crossing messages.

    Crossings are rare compared to frames, so QoS 1 is the default.
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "passline_crossing_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.schema_version = "1.0"

    def format_message(self, crossing_msg: CrossingMessage) -> Dict[str, Any]:
        """
        Format CrossingMessage to JSON-compatible dict.

        Raises:
            ValueError: If crossing_msg cannot be serialized
        """
        try:
            formatted = crossing_msg.to_dict()
        except (AttributeError, TypeError) as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize crossing message",
                exc_info=e,
                metadata={'track_id': getattr(crossing_msg, 'track_id', None)}
            )
            raise ValueError(f"Failed to format crossing message: {e}")

        self.logger.debug(
            event=LogEvent.CROSSING_EVENT_SERIALIZED,
            message="Serialized crossing message",
            metadata={
                'track_id': crossing_msg.track_id,
                'direction': crossing_msg.direction.value,
                'total': crossing_msg.total
            }
        )
        return formatted

    def publish_crossing(self, crossing_msg: CrossingMessage) -> bool:
        """
        Publish a crossing message.

        Returns:
            True if published successfully, False otherwise
        """
        try:
            message_data = self.format_message(crossing_msg)
        except ValueError:
            return False

        success = self.publish(message_data)
        if success:
            self.logger.info(
                event=LogEvent.MQTT_PUBLISH_SUCCESS,
                message=f"Published crossing of track {crossing_msg.track_id}",
                metadata={
                    'track_id': crossing_msg.track_id,
                    'direction': crossing_msg.direction.value,
                    'total': crossing_msg.total,
                    'source_id': crossing_msg.source_id
                }
            )
        return success
