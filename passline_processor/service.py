"""
Counter Service - Main people counting orchestrator.

This module provides the CounterService class which drives the complete
counting pipeline for one video stream: frame reading, person detection,
tracking, crossing evaluation, MQTT publishing and remote control.

Architecture:
- Frames come from passline_processor.video (supervision for files, cv2 for live)
- Detection through an injected detector (YoloPersonDetector in production)
- Tracking and counting through passline_tracking.CountingPipeline
- MQTT publishing in a dedicated thread fed by a bounded queue
- Live configuration changes through the control plane

Threading Model:
- Processing Thread (our thread: read, detect, track, count)
- MQTT Publisher Thread (our thread: drain publish queue)
- Control Plane Thread (paho-mqtt internal, command handlers)
"""

import queue
import threading
import logging
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

from passline_mqtt import (
    CrossingMessage,
    LogEvent,
    TrackSnapshotMessage,
    create_logger,
)
from passline_processor.config import ProcessorConfig
from passline_processor.video import iter_frames, video_fps
from passline_tracking import (
    CountingPipeline,
    CrossingEvent,
    DetectionRecord,
    FrameResult,
    LiveConfig,
)

logger = logging.getLogger(__name__)


# Remote command -> TrackingConfig field for single-value setters
VALUE_COMMANDS = {
    "set_sensitivity": ("sensitivity", "Set matching sensitivity (0-100)"),
    "set_move_threshold": ("move_threshold", "Set crossing threshold in pixels (5-100)"),
    "set_path_window": ("path_window", "Set centroid path window (>= 2)"),
    "set_stale_timeout": ("stale_timeout_ms", "Set track stale timeout in ms"),
    "set_frame_interval": ("frame_interval", "Process one frame every N"),
    "set_min_score": ("min_score", "Set minimum detection score (null disables)"),
}


class CounterService:
    """
    People counting service for one stream.

    Thread Safety:
    - pipeline: Protected by _pipeline_lock (processing vs control thread)
    - live config: LiveConfig has its own lock
    - publish_queue: Thread-safe queue.Queue

    Usage:
        config = ProcessorConfig.from_yaml("processor_config.yaml")
        service = CounterService(
            config=config,
            detector=YoloPersonDetector(model, config.model_config),
            control_plane=control_plane,
            crossing_publisher=crossing_publisher,
            tracks_publisher=tracks_publisher,
        )

        service.setup()
        service.start()
        service.wait()  # Blocks until the stream ends or stop() is called
    """

    def __init__(
        self,
        config: ProcessorConfig,
        detector,  # YoloPersonDetector or any object with detect(frame)
        control_plane=None,  # MQTTControlPlane
        crossing_publisher=None,  # CrossingEventPublisher
        tracks_publisher=None,  # TrackSnapshotPublisher
        frames: Optional[Iterable[np.ndarray]] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            config: Processor configuration
            detector: Object with detect(frame) -> List[DetectionRecord]
            control_plane: MQTT control plane for commands (optional)
            crossing_publisher: Publisher for crossing messages (optional)
            tracks_publisher: Publisher for track snapshots (optional)
            frames: Frame iterable overriding the configured source
            clock: Frame clock in ms overriding the default
        """
        self.config = config
        self.detector = detector
        self.control_plane = control_plane
        self.crossing_publisher = crossing_publisher
        self.tracks_publisher = tracks_publisher
        self.events = create_logger("counter_service")

        self.live_config = LiveConfig(config.tracking)
        self.pipeline = CountingPipeline(self.live_config)
        self.pipeline.add_listener(self._on_crossing)
        self._pipeline_lock = threading.Lock()

        self._frames = frames
        self._clock = clock

        # MQTT publishing
        self.publish_queue: "queue.Queue[tuple]" = queue.Queue(maxsize=512)
        self.publisher_thread: Optional[threading.Thread] = None
        self.processing_thread: Optional[threading.Thread] = None
        self.stop_event = threading.Event()
        self._paused = threading.Event()

        # Lifecycle state
        self._running = False
        self._frame_id = 0
        self._dropped_messages = 0

        logger.info(
            f"CounterService initialized for service_id={config.service_id}"
        )

    # ─────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────

    def setup(self):
        """Register control commands. Must be called before start()."""
        if self.control_plane is not None:
            self._setup_control_handlers()
        logger.info("Service setup complete")

    def _setup_control_handlers(self):
        registry = self.control_plane.command_registry

        registry.register(
            "set_direction",
            self._handle_set_direction,
            "Set counted direction (forward/reverse)",
            required_fields=("direction",),
        )
        registry.register(
            "toggle_direction",
            self._handle_toggle_direction,
            "Swap counted direction",
        )
        for command, (option, description) in VALUE_COMMANDS.items():
            registry.register(
                command,
                self._make_value_handler(option),
                description,
                required_fields=("value",),
            )

        registry.register("reset", self._handle_reset, "Reset counter and history")
        registry.register("get_stats", self._handle_get_stats, "Publish counter stats")
        registry.register("pause", self._handle_pause, "Pause counting")
        registry.register("resume", self._handle_resume, "Resume counting")

        logger.info(f"Control handlers registered ({registry.count()} commands)")

    def start(self):
        """
        Start the service (non-blocking).

        Lifecycle:
        1. Connect control plane
        2. Connect publishers
        3. Start MQTT publisher thread
        4. Start processing thread
        """
        if self._running:
            logger.warning("Service already running")
            return

        logger.info("Starting counter service")

        if self.control_plane is not None:
            if not self.control_plane.connect(timeout=5.0):
                raise RuntimeError("Failed to connect to MQTT broker (control plane)")

        for publisher in self._publishers():
            if not publisher.connect():
                logger.warning(f"⚠️ Publisher for {publisher.topic} not connected")

        self.stop_event.clear()
        self.publisher_thread = threading.Thread(
            target=self._publish_loop,
            name="MQTTPublisherThread",
            daemon=True
        )
        self.publisher_thread.start()

        self.processing_thread = threading.Thread(
            target=self._process_loop,
            name="ProcessingThread",
            daemon=True
        )
        self.processing_thread.start()
        self._running = True

        self._publish_status("running")
        logger.info("✅ Counter service started")

    def wait(self):
        """Block until the stream ends or stop() is called."""
        if not self._running:
            logger.warning("Service not running")
            return

        try:
            while self.processing_thread.is_alive():
                self.processing_thread.join(timeout=0.5)
        except KeyboardInterrupt:
            logger.info("Received KeyboardInterrupt, stopping...")
        finally:
            self.stop()

    def stop(self):
        """
        Stop the service gracefully.

        Lifecycle:
        1. Stop processing thread
        2. Drain and stop MQTT publisher thread
        3. Disconnect publishers
        4. Disconnect control plane
        """
        if not self._running:
            return

        logger.info("Stopping counter service")
        self.stop_event.set()

        if self.processing_thread and self.processing_thread is not threading.current_thread():
            self.processing_thread.join(timeout=5.0)
        if self.publisher_thread:
            self.publisher_thread.join(timeout=5.0)
            logger.info("MQTT publisher thread stopped")

        for publisher in self._publishers():
            publisher.disconnect()

        self._publish_status("stopped", self.stats_details())
        if self.control_plane is not None:
            self.control_plane.disconnect()

        self._running = False
        logger.info("✅ Counter service stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_paused(self) -> bool:
        return self._paused.is_set()

    def _publishers(self) -> List[Any]:
        return [p for p in (self.crossing_publisher, self.tracks_publisher) if p is not None]

    # ─────────────────────────────────────────────────────────────────────
    # Processing (Processing Thread)
    # ─────────────────────────────────────────────────────────────────────

    def _frame_source(self) -> Iterable[np.ndarray]:
        if self._frames is not None:
            return self._frames
        return iter_frames(self.config.video_source)

    def _frame_clock(self) -> Callable[[int], float]:
        """
        Frame index -> ms. Files use their own frame rate so staleness is
        measured in video time; live sources use the wall clock.
        """
        if self._clock is not None:
            clock = self._clock
            return lambda index: clock()

        fps = video_fps(self.config.video_source) if self._frames is None else None
        if fps:
            return lambda index: index * 1000.0 / fps

        return lambda index: time.monotonic() * 1000.0

    def _process_loop(self):
        logger.info(f"Processing loop started (source={self.config.source})")
        frame_time = self._frame_clock()

        for index, frame in enumerate(self._frame_source()):
            if self.stop_event.is_set():
                break
            if self._paused.is_set():
                continue
            if not self.pipeline.sampler.should_process():
                continue

            records = self.detector.detect(frame)
            self.process_detections(records, now=frame_time(index))

        logger.info(
            f"Processing loop finished after {self._frame_id} processed frame(s)"
        )

    def process_detections(
        self,
        records: Iterable[DetectionRecord],
        now: Optional[float] = None,
    ) -> FrameResult:
        """
        Run one processed frame through the pipeline and queue its messages.

        Crossing messages are queued by the counter listener; the track
        snapshot is queued here.
        """
        with self._pipeline_lock:
            result = self.pipeline.process(records, now=now)
            total = self.pipeline.counter.total
            self._frame_id += 1
            frame_id = self._frame_id

        if result.rejected:
            self.events.warning(
                event=LogEvent.DETECTION_REJECTED,
                message=f"Skipped {result.rejected} malformed detection(s)",
                metadata={'frame_id': frame_id, 'rejected': result.rejected}
            )

        self.events.debug(
            event=LogEvent.FRAME_PROCESSED,
            message="Frame processed",
            metadata={
                'frame_id': frame_id,
                'tracks': len(result.tracks),
                'crossings': len(result.crossings),
                'total': total
            }
        )

        if self.tracks_publisher is not None and self.config.mqtt_config.publish_tracks:
            snapshot = TrackSnapshotMessage.from_frame(
                result,
                frame_id=frame_id,
                source_id=self.config.service_id,
                total=total,
            )
            self._enqueue("tracks", snapshot)

        return result

    def _on_crossing(self, event: CrossingEvent):
        """Counter listener (Processing Thread, pipeline lock held)."""
        stats = self.pipeline.counter.get_stats()
        self.events.info(
            event=LogEvent.CROSSING_COUNTED,
            message=f"Track {event.track_id} crossed {event.direction.value}",
            metadata={
                'track_id': event.track_id,
                'displacement': event.displacement,
                'total': stats.total
            }
        )
        if self.crossing_publisher is not None:
            message = CrossingMessage.from_event(
                event, stats, source_id=self.config.service_id
            )
            self._enqueue("crossing", message)

    def _enqueue(self, msg_type: str, msg: Any):
        try:
            self.publish_queue.put_nowait((msg_type, msg))
        except queue.Full:
            self._dropped_messages += 1
            logger.warning(f"Publish queue full, dropping {msg_type} message")

    # ─────────────────────────────────────────────────────────────────────
    # Publishing (MQTT Publisher Thread)
    # ─────────────────────────────────────────────────────────────────────

    def _publish_loop(self):
        logger.info("MQTT publisher loop started")

        while not (self.stop_event.is_set() and self.publish_queue.empty()):
            try:
                msg_type, msg = self.publish_queue.get(timeout=0.1)
            except queue.Empty:
                continue
            self._publish_one(msg_type, msg)

        logger.info("MQTT publisher loop stopped")

    def _publish_one(self, msg_type: str, msg: Any) -> bool:
        if msg_type == "crossing":
            return self.crossing_publisher.publish_crossing(msg)
        if msg_type == "tracks":
            return self.tracks_publisher.publish_snapshot(msg)
        raise ValueError(f"Unknown message type: {msg_type}")

    def _publish_status(self, status: str, details: Optional[Dict[str, Any]] = None):
        if self.control_plane is not None:
            self.control_plane.publish_status(status, details)

    # ─────────────────────────────────────────────────────────────────────
    # Command Handlers (called by Control Plane Thread)
    # ─────────────────────────────────────────────────────────────────────

    def stats_details(self) -> Dict[str, Any]:
        with self._pipeline_lock:
            snapshot = self.pipeline.snapshot()
            frames_processed = self.pipeline.frames_processed
        return {
            **snapshot.stats.to_dict(),
            'frames_processed': frames_processed,
            'active_tracks': len(snapshot.tracks),
            'paused': self.is_paused,
            'dropped_messages': self._dropped_messages,
            'config': snapshot.config.to_dict(),
        }

    def _apply_config(self, **changes: Any):
        """Validate and apply a config change; ValueError leaves config untouched."""
        try:
            new_config = self.live_config.update(**changes)
        except ValueError as e:
            self.events.error(
                event=LogEvent.CONFIG_ERROR,
                message="Rejected configuration change",
                metadata={'changes': changes},
                exc_info=e
            )
            raise

        self.events.info(
            event=LogEvent.CONFIG_UPDATED,
            message="Tracking configuration updated",
            metadata={'changes': {k: str(v) for k, v in changes.items()}}
        )
        self._publish_status("config_updated", new_config.to_dict())
        return new_config

    def _handle_set_direction(self, command: Dict):
        self._apply_config(direction=command["direction"])

    def _handle_toggle_direction(self, command: Dict):
        direction = self.live_config.toggle_direction()
        self.events.info(
            event=LogEvent.CONFIG_UPDATED,
            message=f"Direction toggled to {direction.value}",
            metadata={'direction': direction.value}
        )
        self._publish_status("config_updated", self.live_config.snapshot().to_dict())

    def _make_value_handler(self, option: str) -> Callable[[Dict], None]:
        def handler(command: Dict):
            self._apply_config(**{option: command["value"]})
        return handler

    def _handle_reset(self, command: Dict):
        with self._pipeline_lock:
            previous = self.pipeline.counter.total
            self.pipeline.reset()

        self.events.info(
            event=LogEvent.COUNTER_RESET,
            message="Counter reset by operator",
            metadata={'previous_total': previous}
        )
        self._publish_status("counter_reset", {'previous_total': previous})

    def _handle_get_stats(self, command: Dict):
        self._publish_status("stats", self.stats_details())

    def _handle_pause(self, command: Dict):
        self._paused.set()
        self._publish_status("paused")
        logger.info("⏸️ Counting paused")

    def _handle_resume(self, command: Dict):
        self._paused.clear()
        self._publish_status("running")
        logger.info("▶️ Counting resumed")
