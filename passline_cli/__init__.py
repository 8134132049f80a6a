"""
Passline CLI - Command-line interface for counter service control.

Sends MQTT commands to a running CounterService without hand-writing JSON.

Usage:
    passline-cli set-direction reverse
    passline-cli set-sensitivity 60
    passline-cli reset
    passline-cli stats
    passline-cli send config/commands/tune_entrance.yaml
"""

__version__ = "1.0.0"
