"""
passline_processor - Stream Processing Service for People Counting

This package provides the service that reads a video stream, detects people
with YOLO, counts directional crossings with passline_tracking, and publishes
results via MQTT.

Architecture:
- CounterService: Main orchestrator
- YoloPersonDetector: Frame -> DetectionRecords (supervision)
- ModelLoader: YOLO model loading and caching
  (import from passline_processor.model_loader; needs the "yolo" extra)
- ProcessorConfig: Configuration management

Threading Model:
- Processing Thread (read, detect, track, count)
- MQTT Publisher Thread (publish queue)
- Control Plane Thread (paho-mqtt internal for commands)
"""

from passline_processor.config import ProcessorConfig, ModelConfig, MQTTConfig
from passline_processor.detector import YoloPersonDetector
from passline_processor.service import CounterService

__all__ = [
    "ProcessorConfig",
    "ModelConfig",
    "MQTTConfig",
    "YoloPersonDetector",
    "CounterService",
]
