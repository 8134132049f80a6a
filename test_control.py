"""
Control plane and service command tests (no broker).

The control plane is exercised through its paho callbacks with a stub
client; the service through its registered handlers.

Usage:
    pytest test_control.py
"""

import json
from types import SimpleNamespace

import pytest

from passline_control import (
    CommandNotAvailableError,
    CommandPayloadError,
    CommandRegistry,
    MQTTControlPlane,
)
from passline_processor import CounterService, ProcessorConfig
from passline_tracking import DetectionRecord, Direction, TrackingConfig


class StubClient:
    """Records publish/subscribe calls instead of talking to a broker."""

    def __init__(self):
        self.published = []
        self.subscribed = []

    def publish(self, topic, payload, qos=0, retain=False):
        self.published.append((topic, json.loads(payload), qos, retain))
        return SimpleNamespace(rc=0)

    def subscribe(self, topic, qos=0):
        self.subscribed.append((topic, qos))


def make_plane():
    plane = MQTTControlPlane(
        broker_host="localhost",
        broker_port=1883,
        command_topic="passline/control/test/commands",
        status_topic="passline/control/test/status",
        client_id="passline_test_control",
    )
    plane.client = StubClient()
    return plane


def send(plane, payload):
    raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    plane._on_message(plane.client, None, SimpleNamespace(payload=raw))


def statuses(plane):
    return [message for _, message, _, _ in plane.client.published]


class FakeDetector:
    def detect(self, frame):
        return frame


# ─────────────────────────────────────────────────────────────────────────────
# CommandRegistry
# ─────────────────────────────────────────────────────────────────────────────

def test_registry_executes_with_payload():
    registry = CommandRegistry()
    calls = []
    registry.register("pause", calls.append, "Pause")

    registry.execute("pause")
    registry.execute("pause", {"command": "pause"})

    assert calls == [{}, {"command": "pause"}]
    assert registry.available_commands == {"pause"}
    assert registry.get_help() == {"pause": "Pause"}


def test_registry_rejects_duplicates_and_bad_names():
    registry = CommandRegistry()
    registry.register("reset", lambda data: None, "Reset")

    with pytest.raises(ValueError):
        registry.register("reset", lambda data: None, "Reset again")
    with pytest.raises(ValueError):
        registry.register("Set Direction", lambda data: None, "Bad name")


def test_registry_unknown_command():
    registry = CommandRegistry()

    with pytest.raises(CommandNotAvailableError):
        registry.execute("explode")


def test_registry_required_fields():
    registry = CommandRegistry()
    registry.register("set_direction", lambda data: None, "Set", required_fields=("direction",))

    with pytest.raises(CommandPayloadError) as excinfo:
        registry.execute("set_direction", {"command": "set_direction"})

    assert excinfo.value.missing == ("direction",)
    assert registry.required_fields("set_direction") == ("direction",)


# ─────────────────────────────────────────────────────────────────────────────
# MQTTControlPlane callbacks
# ─────────────────────────────────────────────────────────────────────────────

def test_on_connect_subscribes_and_reports():
    plane = make_plane()

    plane._on_connect(plane.client, None, {}, 0, None)

    assert plane.client.subscribed == [("passline/control/test/commands", 1)]
    assert statuses(plane)[-1]["status"] == "connected"
    assert plane.is_connected()


def test_on_connect_failure_keeps_disconnected():
    plane = make_plane()

    plane._on_connect(plane.client, None, {}, 5, None)

    assert not plane.is_connected()
    assert plane.client.subscribed == []


def test_dispatches_command_case_insensitively():
    plane = make_plane()
    calls = []
    plane.command_registry.register("pause", calls.append, "Pause")

    send(plane, {"command": "PAUSE"})

    assert calls == [{"command": "PAUSE"}]


@pytest.mark.parametrize("payload, error", [
    (b"{not json", "invalid JSON payload"),
    ([1, 2, 3], "payload must be a JSON object"),
    ({"value": 3}, "missing command"),
])
def test_malformed_messages_reported(payload, error):
    plane = make_plane()

    send(plane, payload)

    status = statuses(plane)[-1]
    assert status["status"] == "command_rejected"
    assert status["details"]["error"] == error


def test_unknown_command_lists_available():
    plane = make_plane()
    plane.command_registry.register("reset", lambda data: None, "Reset")

    send(plane, {"command": "explode"})

    details = statuses(plane)[-1]["details"]
    assert details["error"] == "unknown command"
    assert details["available"] == ["reset"]


def test_handler_value_error_reported():
    plane = make_plane()

    def reject(data):
        raise ValueError("sensitivity must be in [0, 100], got 500")

    plane.command_registry.register("set_sensitivity", reject, "Set")

    send(plane, {"command": "set_sensitivity", "value": 500})

    assert "sensitivity" in statuses(plane)[-1]["details"]["error"]


def test_status_retained_qos1():
    plane = make_plane()

    assert plane.publish_status("running", {"total": 3})

    topic, message, qos, retain = plane.client.published[-1]
    assert topic == "passline/control/test/status"
    assert message["details"] == {"total": 3}
    assert message["client_id"] == "passline_test_control"
    assert (qos, retain) == (1, True)


# ─────────────────────────────────────────────────────────────────────────────
# CounterService commands
# ─────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def service():
    config = ProcessorConfig(
        service_id="test",
        source="unused.mp4",
        tracking=TrackingConfig(move_threshold=20),
    )
    plane = make_plane()
    service = CounterService(config, detector=FakeDetector(), control_plane=plane)
    service.setup()
    return service


def person(x):
    return DetectionRecord(x=x, y=0, width=10, height=10)


def test_service_registers_all_commands(service):
    assert service.control_plane.command_registry.available_commands == {
        "set_direction", "toggle_direction", "set_sensitivity",
        "set_move_threshold", "set_path_window", "set_stale_timeout",
        "set_frame_interval", "set_min_score", "reset", "get_stats",
        "pause", "resume",
    }


def test_set_direction_command(service):
    send(service.control_plane, {"command": "set_direction", "direction": "reverse"})

    assert service.live_config.snapshot().direction is Direction.REVERSE
    status = statuses(service.control_plane)[-1]
    assert status["status"] == "config_updated"
    assert status["details"]["direction"] == "reverse"


def test_invalid_value_leaves_config(service):
    send(service.control_plane, {"command": "set_sensitivity", "value": 500})

    assert service.live_config.snapshot().sensitivity == 100
    assert statuses(service.control_plane)[-1]["status"] == "command_rejected"


def test_fractional_path_window_rejected(service):
    for index, x in enumerate(range(0, 75, 5)):
        service.process_detections([person(x)], now=index * 10)

    send(service.control_plane, {"command": "set_path_window", "value": 10.5})

    assert service.live_config.snapshot().path_window == 15
    assert statuses(service.control_plane)[-1]["status"] == "command_rejected"

    # Frames keep flowing after the rejected command
    result = service.process_detections([], now=200)
    assert len(result.tracks[0].path) == 15


def test_missing_value_rejected(service):
    send(service.control_plane, {"command": "set_move_threshold"})

    status = statuses(service.control_plane)[-1]
    assert status["status"] == "command_rejected"
    assert status["details"]["missing"] == ["value"]


def test_set_min_score_accepts_null(service):
    send(service.control_plane, {"command": "set_min_score", "value": 0.6})
    assert service.live_config.snapshot().min_score == 0.6

    send(service.control_plane, {"command": "set_min_score", "value": None})
    assert service.live_config.snapshot().min_score is None


def test_reset_and_stats_commands(service):
    service.process_detections([person(0)], now=0)
    service.process_detections([person(30)], now=100)
    assert service.pipeline.counter.total == 1

    send(service.control_plane, {"command": "get_stats"})
    stats = statuses(service.control_plane)[-1]
    assert stats["status"] == "stats"
    assert stats["details"]["total"] == 1
    assert stats["details"]["frames_processed"] == 2

    send(service.control_plane, {"command": "reset"})
    reset = statuses(service.control_plane)[-1]
    assert reset["details"]["previous_total"] == 1
    assert service.pipeline.counter.total == 0
    assert len(service.pipeline.tracker) == 1


def test_pause_and_resume(service):
    send(service.control_plane, {"command": "pause"})
    assert service.is_paused

    send(service.control_plane, {"command": "resume"})
    assert not service.is_paused
    assert statuses(service.control_plane)[-1]["status"] == "running"


def test_process_loop_skips_paused_and_sampled_frames():
    config = ProcessorConfig(
        service_id="test",
        source="unused.mp4",
        tracking=TrackingConfig(move_threshold=20, frame_interval=2),
    )
    frames = [[person(x)] for x in range(0, 60, 10)]
    clock = iter(range(0, 10_000, 100))
    service = CounterService(
        config,
        detector=FakeDetector(),
        frames=frames,
        clock=lambda: float(next(clock)),
    )

    service._process_loop()

    assert service.pipeline.frames_processed == 3
    assert service.pipeline.counter.total == 1
