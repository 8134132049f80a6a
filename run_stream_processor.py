#!/usr/bin/env python3
"""
Counter Service - Entry Point
=============================

This script starts the Passline counter service, which:
- Reads a video stream (file, RTSP URL or camera index)
- Detects people with YOLO
- Tracks them and counts crossings in the configured direction
- Publishes crossings and track snapshots to MQTT
- Responds to control commands via MQTT control plane

Usage:
    python run_stream_processor.py --config config/passline_processor/processor_config.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Load the YOLO model
    4. Create control plane and publishers
    5. Create CounterService and register commands
    6. Start service (non-blocking)
    7. Wait for end of stream or stop signal (Ctrl+C or SIGTERM)
    8. Graceful shutdown

Logs:
    - Console: INFO level
    - File: logs/processor.log (INFO level)
"""

import argparse
import signal
import sys
import logging
from pathlib import Path
from typing import Optional

from passline_control import MQTTControlPlane
from passline_mqtt import CrossingEventPublisher, TrackSnapshotPublisher, create_logger
from passline_processor import CounterService, ProcessorConfig, YoloPersonDetector
from passline_processor.model_loader import ModelLoader


# ─────────────────────────────────────────────────────────────────────────────
# Logging Setup
# ─────────────────────────────────────────────────────────────────────────────

def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """Configure root logging (console + optional file)."""
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )

    return logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Main Service
# ─────────────────────────────────────────────────────────────────────────────

class ProcessorApp:
    """
    Application wrapper for CounterService.

    Handles:
    - Configuration loading
    - Component initialization (model, control plane, publishers)
    - Signal handling (SIGTERM, SIGINT)
    - Graceful shutdown
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None):
        self.config_path = config_path
        self.logger = setup_logging(log_file)

        self.config: Optional[ProcessorConfig] = None
        self.service: Optional[CounterService] = None

        self._shutdown_requested = False

    def setup(self):
        self.logger.info("=" * 80)
        self.logger.info("🚀 Passline Counter Service - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        config = ProcessorConfig.from_yaml(self.config_path)
        self.config = config
        self.logger.info(f"✅ Configuration loaded (service_id={config.service_id})")
        self.logger.info(f"  - Tracking: {config.tracking}")

        self.logger.info(f"🧠 Loading model: {config.model_config.get_model_filename()}")
        model = ModelLoader(config.models_dir).load_model_from_config(config.model_config)
        detector = YoloPersonDetector(model, config.model_config)
        self.logger.info("✅ Model loaded")

        mqtt = config.mqtt_config
        topics = config.topics

        self.logger.info("🔌 Creating MQTT control plane")
        control_plane = MQTTControlPlane(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            command_topic=topics["commands"],
            status_topic=topics["status"],
            client_id=f"passline_{config.service_id}_control",
            username=mqtt.username,
            password=mqtt.password,
        )

        self.logger.info("📤 Creating MQTT publishers")
        mqtt_logger = create_logger(component="mqtt_publisher")
        crossing_publisher = CrossingEventPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=topics["crossings"],
            logger=mqtt_logger,
            client_id=f"passline_{config.service_id}_crossings",
            username=mqtt.username,
            password=mqtt.password,
            qos=mqtt.crossing_qos,
        )
        tracks_publisher = None
        if mqtt.publish_tracks:
            tracks_publisher = TrackSnapshotPublisher(
                broker_host=mqtt.broker,
                broker_port=mqtt.port,
                topic=topics["tracks"],
                logger=mqtt_logger,
                client_id=f"passline_{config.service_id}_tracks",
                username=mqtt.username,
                password=mqtt.password,
                qos=mqtt.tracks_qos,
            )

        for name, topic in topics.items():
            self.logger.info(f"  - {name} topic: {topic}")

        self.service = CounterService(
            config=config,
            detector=detector,
            control_plane=control_plane,
            crossing_publisher=crossing_publisher,
            tracks_publisher=tracks_publisher,
        )
        self.service.setup()
        self.logger.info("✅ Service ready")
        self.logger.info("=" * 80)

    def run(self):
        """Blocks until the stream ends or shutdown is requested."""
        if not self.service:
            raise RuntimeError("Service not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        try:
            self.service.start()
            self.logger.info("✅ Service started successfully")
            self.logger.info("Press Ctrl+C to stop")
            self.service.wait()
        except RuntimeError as e:
            self.logger.error(f"❌ Service error: {e}", exc_info=True)
            self.shutdown()
            sys.exit(1)

        stats = self.service.pipeline.counter.get_stats()
        self.logger.info(f"🏁 Stream finished: {stats}")

    def shutdown(self):
        if self._shutdown_requested:
            self.logger.warning("⚠️  Shutdown already in progress")
            return
        self._shutdown_requested = True

        self.logger.info("🛑 Shutting down counter service")
        if self.service:
            self.service.stop()
        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        signal_name = signal.Signals(signum).name
        self.logger.info(f"⚠️  Received signal {signal_name} ({signum})")
        self.shutdown()
        sys.exit(0)


# ─────────────────────────────────────────────────────────────────────────────
# CLI
# ─────────────────────────────────────────────────────────────────────────────

def parse_args():
    parser = argparse.ArgumentParser(
        description="Passline Counter Service - Video + YOLO + MQTT",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_stream_processor.py --config config/passline_processor/processor_config.yaml
  python run_stream_processor.py --config config/passline_processor/processor_config.yaml --no-log-file
        """
    )
    parser.add_argument(
        '--config',
        type=Path,
        required=True,
        help='Path to processor configuration YAML file'
    )
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/processor.log'),
        help='Path to log file (default: logs/processor.log)'
    )
    parser.add_argument(
        '--no-log-file',
        action='store_true',
        help='Disable file logging (console only)'
    )
    return parser.parse_args()


def main():
    args = parse_args()

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = ProcessorApp(
        config_path=args.config,
        log_file=None if args.no_log_file else args.log_file
    )

    try:
        app.setup()
    except (FileNotFoundError, KeyError, ValueError) as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)

    app.run()


if __name__ == '__main__':
    main()
