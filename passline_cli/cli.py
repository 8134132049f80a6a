"""
Passline CLI - Main entry point.

Provides command-line interface for sending MQTT commands to CounterService.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .mqtt_client import MQTTCommandClient


# CLI subcommand -> (service command, value type)
VALUE_SUBCOMMANDS = {
    'set-sensitivity': ('set_sensitivity', float, 'Matching sensitivity (0-100)'),
    'set-move-threshold': ('set_move_threshold', float, 'Crossing threshold in px (5-100)'),
    'set-path-window': ('set_path_window', int, 'Centroid path window (>= 2)'),
    'set-stale-timeout': ('set_stale_timeout', float, 'Track stale timeout in ms'),
    'set-frame-interval': ('set_frame_interval', int, 'Process one frame every N'),
}

SIMPLE_SUBCOMMANDS = {
    'toggle-direction': ('toggle_direction', 'Swap counted direction'),
    'reset': ('reset', 'Reset counter and crossing history'),
    'stats': ('get_stats', 'Publish counter stats on the status topic'),
    'pause': ('pause', 'Pause counting'),
    'resume': ('resume', 'Resume counting'),
}


def load_yaml_config(config_path: str) -> Dict[str, Any]:
    """
    Load a command from a YAML file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If YAML is invalid or has no 'command' key
    """
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}")

    if not isinstance(config, dict) or 'command' not in config:
        raise ValueError(f"{config_path} must define a 'command' key")
    return config


def parse_min_score(value: str) -> Optional[float]:
    if value.lower() in {'none', 'null', 'off'}:
        return None
    return float(value)


def command_topic(service_id: str) -> str:
    return f"passline/control/{service_id}/commands"


def send_command(
    command: Dict[str, Any],
    service_id: str = "cam_01",
    broker: str = "localhost",
    port: int = 1883
) -> None:
    client = MQTTCommandClient(broker=broker, port=port)
    client.send_command(command_topic(service_id), command, qos=1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passline-cli",
        description="Passline CLI - Send MQTT commands to the counter service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  passline-cli set-direction reverse
  passline-cli toggle-direction
  passline-cli set-sensitivity 60
  passline-cli set-move-threshold 30
  passline-cli set-min-score 0.5
  passline-cli set-min-score none
  passline-cli reset
  passline-cli stats
  passline-cli --service-id cam_02 pause
  passline-cli send config/commands/tune_entrance.yaml
"""
    )

    parser.add_argument(
        "--service-id",
        default="cam_01",
        help="Target service ID (default: cam_01)"
    )
    parser.add_argument(
        "--broker",
        default="localhost",
        help="MQTT broker host (default: localhost)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=1883,
        help="MQTT broker port (default: 1883)"
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    set_direction = subparsers.add_parser('set-direction', help='Set counted direction')
    set_direction.add_argument('direction', choices=['forward', 'reverse'])

    for name, (_, value_type, help_text) in VALUE_SUBCOMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('value', type=value_type)

    set_min_score = subparsers.add_parser(
        'set-min-score', help="Minimum detection score (0-1, or 'none')"
    )
    set_min_score.add_argument('value', type=parse_min_score)

    for name, (_, help_text) in SIMPLE_SUBCOMMANDS.items():
        subparsers.add_parser(name, help=help_text)

    send = subparsers.add_parser('send', help='Send a command defined in YAML')
    send.add_argument('config', help='Path to command YAML')

    return parser


def build_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed CLI arguments into a command payload."""
    if args.command == 'set-direction':
        return {'command': 'set_direction', 'direction': args.direction}

    if args.command in VALUE_SUBCOMMANDS:
        return {'command': VALUE_SUBCOMMANDS[args.command][0], 'value': args.value}

    if args.command == 'set-min-score':
        return {'command': 'set_min_score', 'value': args.value}

    if args.command in SIMPLE_SUBCOMMANDS:
        return {'command': SIMPLE_SUBCOMMANDS[args.command][0]}

    if args.command == 'send':
        return load_yaml_config(args.config)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        command = build_command(args)
        send_command(command, args.service_id, args.broker, args.port)
    except (ConnectionError, FileNotFoundError, RuntimeError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
