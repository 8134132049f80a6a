"""
passline_control - Control Plane for the counter service

Bounded Context: MQTT-based command-and-control
Responsibilities:
  - MQTT connection management (Control Plane)
  - Command registration and payload validation
  - Command execution delegation

Architecture:
  - CommandRegistry: Explicit registration pattern
  - MQTTControlPlane: MQTT client + command reception + status publishing
  - QoS 1 for control commands (at-least-once delivery)
"""

from .registry import (
    CommandRegistry,
    CommandNotAvailableError,
    CommandPayloadError,
)
from .plane import MQTTControlPlane

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "CommandPayloadError",
    "MQTTControlPlane",
]
