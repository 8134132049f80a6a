"""
Structured Logging for Passline
===============================

Bounded Context: Observability

JSON-structured logging with typed event names.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from passline_mqtt.logging import create_logger, LogEvent
    >>> logger = create_logger("counter")
    >>> logger.info(
    ...     event=LogEvent.CROSSING_COUNTED,
    ...     message="Track 3 crossed forward",
    ...     metadata={'track_id': 3, 'total': 1}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
