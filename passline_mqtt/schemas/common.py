"""
Common Schema Types
==================

Bounded Context: Shared Data Structures

Types shared by crossing and track snapshot messages.

Design Principles:
- Immutability: frozen=True prevents accidental mutation
- Serialization: to_dict() for JSON export, from_dict() for import
- Validation: Constructor validates invariants

Types:
- BBox: Bounding box in absolute pixel coordinates
- Timestamp: ISO 8601 timestamp wrapper
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict

from passline_tracking.geometry.shapes import BoundingBox


@dataclass(frozen=True)
class BBox:
    """
    Bounding box as carried on the wire.

    Attributes:
        x: Left edge x-coordinate (pixels)
        y: Top edge y-coordinate (pixels)
        width: Box width (pixels, >= 0)
        height: Box height (pixels, >= 0)

    Example:
        >>> BBox(x=100.5, y=200.3, width=50.2, height=100.8).to_dict()
        {'x': 100.5, 'y': 200.3, 'width': 50.2, 'height': 100.8}
    """
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Validate invariants."""
        if self.width < 0:
            raise ValueError(f"BBox width must be >= 0, got {self.width}")
        if self.height < 0:
            raise ValueError(f"BBox height must be >= 0, got {self.height}")

    @classmethod
    def from_bounding_box(cls, bbox: BoundingBox) -> 'BBox':
        return cls(x=bbox.x, y=bbox.y, width=bbox.width, height=bbox.height)

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> 'BBox':
        """Deserialize from dict.

        Raises:
            ValueError: If required keys missing or invalid values
        """
        try:
            return cls(
                x=float(data['x']),
                y=float(data['y']),
                width=float(data['width']),
                height=float(data['height'])
            )
        except KeyError as e:
            raise ValueError(f"Missing required BBox field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid BBox data: {e}")


@dataclass(frozen=True)
class Timestamp:
    """
    Immutable ISO 8601 timestamp wrapper.

    Example:
        >>> Timestamp.now().value
        '2025-10-24T15:30:45.123456+00:00'
    """
    value: str

    @classmethod
    def now(cls) -> 'Timestamp':
        """Create timestamp from current time (UTC)."""
        return cls(value=datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'Timestamp':
        return cls(value=dt.isoformat())

    def to_datetime(self) -> datetime:
        """Parse to datetime object.

        Raises:
            ValueError: If timestamp format invalid
        """
        try:
            return datetime.fromisoformat(self.value)
        except ValueError as e:
            raise ValueError(f"Invalid ISO timestamp: {self.value}") from e

    def to_dict(self) -> str:
        """Serialize to JSON (as string)."""
        return self.value
