"""
Structured JSON Logger
=====================

Bounded Context: Observability Infrastructure

JSON-structured logger for the counter service and its publishers.

Architecture:
- Wraps Python's logging module
- Adds component name, typed event and metadata to every record
- Formats as one JSON object per line

Example:
    >>> logger = StructuredLogger(component="counter")
    >>> logger.info(
    ...     event=LogEvent.CROSSING_COUNTED,
    ...     message="Track 7 crossed forward",
    ...     metadata={'track_id': 7, 'total': 12}
    ... )

Output:
    {
        "timestamp": "2025-10-24T15:30:45.123456+00:00",
        "level": "INFO",
        "component": "counter",
        "event": "tracking.crossing.counted",
        "message": "Track 7 crossed forward",
        "metadata": {"track_id": 7, "total": 12}
    }
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from .events import LogEvent


class StructuredLogger:
    """
    JSON structured logger.

    Attributes:
        component: Component name (e.g., "counter", "mqtt_publisher")
        logger: Underlying Python logger instance

    Thread Safety:
        Thread-safe via Python's logging module.
    """

    def __init__(
        self,
        component: str,
        level: int = logging.INFO,
        logger_name: Optional[str] = None
    ):
        """
        Initialize structured logger.

        Args:
            component: Component identifier (e.g., "counter")
            level: Logging level (default: INFO)
            logger_name: Custom logger name (default: passline.<component>)
        """
        self.component = component
        self.logger_name = logger_name or f"passline.{component}"
        self.logger = logging.getLogger(self.logger_name)
        self.logger.setLevel(level)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(JSONFormatter())
            self.logger.addHandler(handler)
            self.logger.propagate = False

    def build_entry(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> Dict[str, Any]:
        """Build the structured log entry (without emitting it)."""
        entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': level,
            'component': self.component,
            'event': event.value,
            'message': message,
        }

        if metadata:
            entry['metadata'] = metadata

        if exc_info:
            entry['exception'] = {
                'type': type(exc_info).__name__,
                'message': str(exc_info)
            }

        return entry

    def _log(
        self,
        level: str,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        entry = self.build_entry(level, event, message, metadata, exc_info)
        self.logger.log(
            getattr(logging, level),
            json.dumps(entry, default=str),
            exc_info=exc_info if level == 'ERROR' else None
        )

    def debug(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        self._log('DEBUG', event, message, metadata)

    def info(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log INFO level message.

        Example:
            >>> logger.info(
            ...     event=LogEvent.COUNTER_RESET,
            ...     message="Counter reset by operator",
            ...     metadata={'previous_total': 42}
            ... )
        """
        self._log('INFO', event, message, metadata)

    def warning(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        self._log('WARNING', event, message, metadata)

    def error(
        self,
        event: LogEvent,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        """
        Log ERROR level message.

        Example:
            >>> try:
            ...     live_config.update(sensitivity=250)
            ... except ValueError as e:
            ...     logger.error(
            ...         event=LogEvent.CONFIG_ERROR,
            ...         message="Rejected configuration change",
            ...         exc_info=e,
            ...     )
        """
        self._log('ERROR', event, message, metadata, exc_info)

    def set_level(self, level: int) -> None:
        self.logger.setLevel(level)


class JSONFormatter(logging.Formatter):
    """
    Pass-through formatter: StructuredLogger messages are already JSON.
    """

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


def create_logger(
    component: str,
    level: int = logging.INFO
) -> StructuredLogger:
    """
    Factory function to create configured StructuredLogger.

    Example:
        >>> logger = create_logger("counter", level=logging.DEBUG)
    """
    return StructuredLogger(component=component, level=level)
