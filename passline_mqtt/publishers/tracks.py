"""
Track Snapshot Publisher
========================

Bounded Context: Track state for external renderers

Publishes the active tracks of every processed frame (QoS 0, high rate).

Message Flow:
    FrameResult → TrackSnapshotMessage → TrackSnapshotPublisher → MQTT Broker
"""

from typing import Dict, Any, Optional
from .base import BasePublisher
from ..schemas import TrackSnapshotMessage
from ..logging import StructuredLogger, LogEvent


class TrackSnapshotPublisher(BasePublisher):
    """Publisher for per-frame track snapshots."""

    def __init__(
        self,
        broker_host: str,
        topic: str,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "passline_tracks_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 0
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

    def format_message(self, snapshot_msg: TrackSnapshotMessage) -> Dict[str, Any]:
        """
        Format TrackSnapshotMessage to JSON-compatible dict.

        Raises:
            ValueError: If snapshot_msg cannot be serialized
        """
        try:
            formatted = snapshot_msg.to_dict()
        except (AttributeError, TypeError) as e:
            self.logger.error(
                event=LogEvent.SERIALIZATION_ERROR,
                message="Failed to serialize track snapshot",
                exc_info=e,
                metadata={'frame_id': getattr(snapshot_msg, 'frame_id', None)}
            )
            raise ValueError(f"Failed to format track snapshot: {e}")

        self.logger.debug(
            event=LogEvent.TRACK_SNAPSHOT_SERIALIZED,
            message="Serialized track snapshot",
            metadata={
                'frame_id': snapshot_msg.frame_id,
                'track_count': snapshot_msg.track_count,
                'total': snapshot_msg.total
            }
        )
        return formatted

    def publish_snapshot(self, snapshot_msg: TrackSnapshotMessage) -> bool:
        """
        Publish a track snapshot.

        Returns:
            True if published successfully, False otherwise
        """
        try:
            message_data = self.format_message(snapshot_msg)
        except ValueError:
            return False
        return self.publish(message_data)
