"""
Configuration schema for the counter service.

This module defines the configuration structure for the counter service:
video source, detector model, tracking parameters and MQTT settings.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
import yaml

from passline_tracking.config import TrackingConfig


@dataclass(frozen=True)
class ModelConfig:
    """
    YOLO model configuration.

    Formats:
    - ONNX: Pre-exported models (yolo{version}{variant}-{size}.onnx)
    - PT: PyTorch native models (yolo{version}{variant}.pt)
    """

    model_version: str = "11"  # "11" or "12"
    model_variant: str = "n"  # n, s, m, l, x
    input_size: int = 640
    model_format: str = "pt"  # "onnx" or "pt"
    confidence: float = 0.4
    iou_threshold: float = 0.5
    max_detections: int = 100

    def __post_init__(self):
        """Validate model configuration."""
        valid_versions = {"11", "12"}
        if self.model_version not in valid_versions:
            raise ValueError(
                f"Invalid model_version: {self.model_version}. "
                f"Must be one of {valid_versions}"
            )

        valid_variants = {"n", "s", "m", "l", "x"}
        if self.model_variant not in valid_variants:
            raise ValueError(
                f"Invalid model_variant: {self.model_variant}. "
                f"Must be one of {valid_variants}"
            )

        valid_formats = {"onnx", "pt"}
        if self.model_format not in valid_formats:
            raise ValueError(
                f"Invalid model_format: {self.model_format}. "
                f"Must be one of {valid_formats}"
            )

        # ONNX exports have fixed input sizes
        if self.model_format == "onnx":
            if self.input_size not in {320, 640}:
                raise ValueError(
                    f"Invalid input_size for ONNX: {self.input_size}. "
                    f"Must be 320 or 640"
                )
        elif not 32 <= self.input_size <= 1280:
            raise ValueError(
                f"input_size must be in [32, 1280], got {self.input_size}"
            )

        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(
                f"confidence must be in [0.0, 1.0], got {self.confidence}"
            )

        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError(
                f"iou_threshold must be in [0.0, 1.0], got {self.iou_threshold}"
            )

        if self.max_detections < 1:
            raise ValueError(
                f"max_detections must be >= 1, got {self.max_detections}"
            )

    def get_model_filename(self) -> str:
        """
        Returns:
            Model filename (e.g., "yolo11n-640.onnx" or "yolo11n.pt")
        """
        if self.model_format == "onnx":
            return f"yolo{self.model_version}{self.model_variant}-{self.input_size}.onnx"
        return f"yolo{self.model_version}{self.model_variant}.pt"


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration. Topic templates take {service_id}."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None

    crossing_topic: str = "passline/data/crossings/{service_id}"
    crossing_qos: int = 1
    tracks_topic: str = "passline/data/tracks/{service_id}"
    tracks_qos: int = 0
    publish_tracks: bool = True

    command_topic: str = "passline/control/{service_id}/commands"
    status_topic: str = "passline/control/{service_id}/status"

    def __post_init__(self):
        """Validate MQTT configuration."""
        if not self.broker:
            raise ValueError("MQTT broker cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        for name in ("crossing_qos", "tracks_qos"):
            qos = getattr(self, name)
            if qos not in {0, 1, 2}:
                raise ValueError(f"MQTT {name} must be 0, 1, or 2, got {qos}")

    def topics_for(self, service_id: str) -> Dict[str, str]:
        """Resolve topic templates for one service."""
        return {
            "crossings": self.crossing_topic.format(service_id=service_id),
            "tracks": self.tracks_topic.format(service_id=service_id),
            "commands": self.command_topic.format(service_id=service_id),
            "status": self.status_topic.format(service_id=service_id),
        }


@dataclass(frozen=True)
class ProcessorConfig:
    """
    Main configuration for the counter service.

    Loaded from YAML and validated at startup.
    Immutable after construction (frozen dataclass); the tracking section is
    only the initial value, live changes go through the control plane.
    """

    # Service identification
    service_id: str

    # Video source: file path, RTSP URL or camera index ("0")
    source: str

    frame_resolution_wh: Tuple[int, int] = (1280, 720)  # (width, height)

    # Model configuration
    model_config: ModelConfig = field(default_factory=ModelConfig)
    models_dir: Path = Path("./models")

    # Tracking configuration (initial values)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)

    # MQTT configuration
    mqtt_config: MQTTConfig = field(default_factory=MQTTConfig)

    def __post_init__(self):
        """Validate processor configuration."""
        if not self.service_id:
            raise ValueError("service_id cannot be empty")

        if not self.source:
            raise ValueError("source cannot be empty")

        width, height = self.frame_resolution_wh
        if width <= 0 or height <= 0:
            raise ValueError(
                f"frame_resolution_wh must have positive dimensions, got {self.frame_resolution_wh}"
            )
        if width > 4096 or height > 4096:
            raise ValueError(
                f"frame_resolution_wh dimensions too large (max 4096x4096), got {self.frame_resolution_wh}"
            )

        if self.models_dir.exists() and not self.models_dir.is_dir():
            raise ValueError(
                f"models_dir must be a directory, got file: {self.models_dir}"
            )

    @property
    def video_source(self) -> Union[str, int]:
        """Source as accepted by the frame reader (camera index as int)."""
        return int(self.source) if self.source.isdigit() else self.source

    @property
    def topics(self) -> Dict[str, str]:
        return self.mqtt_config.topics_for(self.service_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProcessorConfig":
        """
        Build from a plain dict (the parsed YAML document).

        Raises:
            KeyError: If service_id or source is missing
            ValueError: On invalid values
        """
        model_config = ModelConfig(**(data.get("model_config") or {}))
        mqtt_config = MQTTConfig(**(data.get("mqtt_config") or {}))
        tracking = TrackingConfig.from_dict(data.get("tracking"))

        return cls(
            service_id=str(data["service_id"]),
            source=str(data["source"]),
            frame_resolution_wh=tuple(data.get("frame_resolution_wh", [1280, 720])),
            model_config=model_config,
            models_dir=Path(data.get("models_dir", "./models")),
            tracking=tracking,
            mqtt_config=mqtt_config,
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "ProcessorConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            service_id: "cam_01"
            source: "rtsp://localhost:8554/entrance"
            frame_resolution_wh: [1280, 720]

            model_config:
              model_variant: "n"
              confidence: 0.4

            models_dir: "./models"

            tracking:
              direction: forward
              sensitivity: 100
              move_threshold: 20

            mqtt_config:
              broker: "localhost"
              port: 1883
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)
