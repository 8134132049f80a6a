"""
Configuration tests (tracking, live config, processor YAML).

Usage:
    pytest test_config.py
"""

import threading
from pathlib import Path

import pytest
import yaml

from passline_processor.config import ModelConfig, MQTTConfig, ProcessorConfig
from passline_tracking import Direction, LiveConfig, TrackingConfig


def test_defaults():
    config = TrackingConfig()

    assert config.direction is Direction.FORWARD
    assert config.sensitivity == 100
    assert config.move_threshold == 20
    assert config.path_window == 15
    assert config.stale_timeout_ms == 2000
    assert config.match_threshold == 120


@pytest.mark.parametrize("changes", [
    {"sensitivity": -1},
    {"sensitivity": 101},
    {"move_threshold": 4},
    {"move_threshold": 101},
    {"path_window": 1},
    {"stale_timeout_ms": 0},
    {"min_score": 1.5},
    {"history_limit": 0},
    {"frame_interval": 0},
    {"path_window": 10.5},
    {"path_window": True},
    {"history_limit": 2.5},
    {"frame_interval": "3"},
    {"direction": "sideways"},
])
def test_invalid_values_rejected(changes):
    with pytest.raises(ValueError):
        TrackingConfig(**changes)


def test_integral_float_counts_coerced():
    # YAML may carry "path_window: 15.0"
    config = TrackingConfig(path_window=15.0, history_limit=500.0, frame_interval=2.0)

    assert config.path_window == 15 and isinstance(config.path_window, int)
    assert isinstance(config.history_limit, int)
    assert isinstance(config.frame_interval, int)


def test_fractional_path_window_update_keeps_previous_config():
    live = LiveConfig(TrackingConfig(path_window=15))

    with pytest.raises(ValueError):
        live.update(path_window=10.5)

    assert live.snapshot().path_window == 15


def test_direction_parsing():
    assert Direction.parse("REVERSE") is Direction.REVERSE
    assert Direction.parse(Direction.FORWARD) is Direction.FORWARD
    assert Direction.FORWARD.toggled() is Direction.REVERSE


def test_replace_rejects_unknown_fields():
    with pytest.raises(ValueError):
        TrackingConfig().replace(speed=3)


def test_dict_round_trip_keeps_direction_value():
    config = TrackingConfig(direction="reverse", sensitivity=40)

    data = config.to_dict()

    assert data["direction"] == "reverse"
    assert TrackingConfig.from_dict(data) == config


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError):
        TrackingConfig.from_dict({"sensitivty": 50})


def test_tracking_from_yaml_section(tmp_path: Path):
    path = tmp_path / "tracking.yaml"
    path.write_text(yaml.safe_dump({"tracking": {"direction": "reverse", "move_threshold": 35}}))

    config = TrackingConfig.from_yaml(path)

    assert config.direction is Direction.REVERSE
    assert config.move_threshold == 35


def test_live_toggle_and_update():
    live = LiveConfig()

    assert live.toggle_direction() is Direction.REVERSE
    updated = live.update(direction="FORWARD", sensitivity=10)

    assert updated.direction is Direction.FORWARD
    assert live.snapshot().match_threshold == 30


def test_live_snapshot_is_immutable_view():
    live = LiveConfig()
    before = live.snapshot()

    live.update(sensitivity=0)

    assert before.sensitivity == 100
    assert live.snapshot().sensitivity == 0


def test_live_updates_from_threads():
    live = LiveConfig()

    threads = [
        threading.Thread(target=live.update, kwargs={"sensitivity": value})
        for value in range(0, 100, 10)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert live.snapshot().sensitivity in range(0, 100, 10)


def test_model_config_validation():
    assert ModelConfig().get_model_filename() == "yolo11n.pt"
    assert ModelConfig(model_format="onnx", input_size=320).get_model_filename() == "yolo11n-320.onnx"

    with pytest.raises(ValueError):
        ModelConfig(model_format="onnx", input_size=512)
    with pytest.raises(ValueError):
        ModelConfig(model_variant="q")


def test_mqtt_topics_resolved_per_service():
    topics = MQTTConfig().topics_for("cam_07")

    assert topics["crossings"] == "passline/data/crossings/cam_07"
    assert topics["commands"] == "passline/control/cam_07/commands"

    with pytest.raises(ValueError):
        MQTTConfig(port=0)


def test_processor_config_from_yaml(tmp_path: Path):
    path = tmp_path / "processor.yaml"
    path.write_text(yaml.safe_dump({
        "service_id": "cam_02",
        "source": "0",
        "frame_resolution_wh": [640, 480],
        "models_dir": str(tmp_path),
        "tracking": {"direction": "reverse", "frame_interval": 2},
        "mqtt_config": {"broker": "mqtt.local", "crossing_qos": 2},
    }))

    config = ProcessorConfig.from_yaml(path)

    assert config.video_source == 0
    assert config.frame_resolution_wh == (640, 480)
    assert config.tracking.direction is Direction.REVERSE
    assert config.tracking.frame_interval == 2
    assert config.mqtt_config.broker == "mqtt.local"
    assert config.topics["status"] == "passline/control/cam_02/status"


def test_processor_config_requires_source():
    with pytest.raises(ValueError):
        ProcessorConfig(service_id="cam_01", source="")


def test_bundled_config_loads():
    path = Path(__file__).parent / "config" / "passline_processor" / "processor_config.yaml"

    config = ProcessorConfig.from_yaml(path)

    assert config.service_id == "cam_01"
    assert config.tracking == TrackingConfig()
