"""
MQTTControlPlane - MQTT Control Plane for the counter service

Bounded Context: MQTT connection management + command reception
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Command message reception (subscribe to command topic)
  - Status publishing (publish to status topic)
  - Command delegation to CommandRegistry

QoS Policy:
  - Commands: QoS 1 (at-least-once delivery)
  - Status: QoS 1 + retained (last status persisted)

Threading:
  - MQTT client runs own background thread (loop_start/loop_stop)
  - Callbacks (_on_connect, _on_message) run in MQTT thread
  - Command handlers run in MQTT thread (keep them fast!)
"""

import json
import logging
from datetime import datetime, timezone
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandRegistry, CommandNotAvailableError, CommandPayloadError

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    MQTT Control Plane for receiving commands and publishing status.

    Command payloads are JSON objects with a ``command`` key, e.g.
    ``{"command": "set_direction", "direction": "reverse"}``.

    Rejected commands (unknown command, missing fields, invalid values) are
    reported on the status topic as ``command_rejected`` so remote operators
    see them without reading service logs.

    Example:
        control_plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="passline/control/cam_01/commands",
            status_topic="passline/control/cam_01/status",
            client_id="passline_cam_01_control"
        )
        control_plane.command_registry.register('pause', service.pause, "Pause counting")

        if control_plane.connect(timeout=5.0):
            print("Connected to MQTT broker")

        control_plane.disconnect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.client_id = client_id

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        if username and password:
            self.client.username_pw_set(username, password)

        self._connected = Event()
        self._running = False

        self.command_registry = CommandRegistry()

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to MQTT broker with timeout.

        Returns:
            True if connected successfully, False otherwise
        """
        try:
            logger.info(f"🔌 Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            self._running = True
        except (OSError, ValueError) as e:
            logger.error(f"❌ Error connecting to MQTT: {e}")
            return False

        if self._connected.wait(timeout=timeout):
            logger.info("✅ MQTT Control Plane connected")
            return True

        logger.error(f"❌ Connection timeout after {timeout}s")
        return False

    def disconnect(self) -> None:
        """Disconnect from MQTT broker. Safe to call multiple times."""
        if self._running:
            logger.info("🔌 Disconnecting from MQTT broker")
            self.publish_status("disconnected")
            self.client.loop_stop()
            self.client.disconnect()
            self._running = False
            self._connected.clear()
            logger.info("✅ MQTT Control Plane disconnected")

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def build_status(self, status: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        message = {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "client_id": self.client_id,
        }
        if details:
            message["details"] = details
        return message

    def publish_status(self, status: str, details: Optional[Dict[str, Any]] = None) -> bool:
        """
        Publish status update to status topic (QoS 1, retained).

        Args:
            status: Status string (e.g., "running", "paused", "stats")
            details: Optional JSON-serializable payload

        Returns:
            True if the message was handed to the client
        """
        message = self.build_status(status, details)

        try:
            result = self.client.publish(
                self.status_topic,
                json.dumps(message),
                qos=1,
                retain=True,
            )
        except (TypeError, ValueError) as e:
            logger.error(f"❌ Error publishing status: {e}")
            return False

        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(f"⚠️ Status publish failed (rc={result.rc})")
            return False

        logger.debug(f"📤 Status published: {status}")
        return True

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code == 0:
            logger.info(f"✅ Connected to broker (rc={reason_code})")

            client.subscribe(self.command_topic, qos=1)
            logger.info(f"📥 Subscribed to: {self.command_topic} (QoS 1)")

            self.publish_status("connected")
            self._connected.set()
        else:
            logger.error(f"❌ Connection failed (rc={reason_code})")
            self._connected.clear()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            logger.warning(f"⚠️ Unexpected disconnection (rc={reason_code})")
        else:
            logger.info("✅ Disconnected from broker")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        """
        MQTT callback: command message received.

        Keep this fast! Long-running operations should be delegated.
        """
        try:
            command_data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error decoding command: {msg.payload!r} ({e})")
            self.publish_status("command_rejected", {"error": "invalid JSON payload"})
            return

        if not isinstance(command_data, dict):
            logger.warning(f"⚠️ Command payload is not an object: {command_data!r}")
            self.publish_status("command_rejected", {"error": "payload must be a JSON object"})
            return

        command = str(command_data.get('command', '')).strip().lower()
        if not command:
            logger.warning("⚠️ Empty command received")
            self.publish_status("command_rejected", {"error": "missing command"})
            return

        logger.info(f"🎯 Executing command: {command}")
        try:
            self.command_registry.execute(command, command_data)
            logger.debug(f"✅ Command '{command}' executed successfully")

        except CommandNotAvailableError as e:
            logger.warning(f"⚠️ {e}")
            available = sorted(self.command_registry.available_commands)
            logger.info(f"💡 Available commands: {', '.join(available)}")
            self.publish_status(
                "command_rejected",
                {"command": command, "error": "unknown command", "available": available},
            )

        except CommandPayloadError as e:
            logger.warning(f"⚠️ {e}")
            self.publish_status(
                "command_rejected",
                {"command": command, "error": str(e), "missing": list(e.missing)},
            )

        except (TypeError, ValueError) as e:
            logger.warning(f"⚠️ Command '{command}' rejected: {e}")
            self.publish_status("command_rejected", {"command": command, "error": str(e)})
