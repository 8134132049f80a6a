"""
Geometric Shapes Module
=======================

Pure geometric representations - NO state, NO side effects.

Design:
- Immutable shapes (frozen dataclass pattern)
- Fail-fast validation: a BoundingBox that exists is well-formed
- Vectorized distance queries via numpy
"""

import math
import numpy as np
from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True)
class Centroid:
    """Geometric center of a bounding box, in frame pixels."""

    x: float
    y: float

    def distance_to(self, other: "Centroid") -> float:
        """Euclidean distance to another centroid."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


@dataclass(frozen=True)
class BoundingBox:
    """
    Immutable axis-aligned bounding box.

    Coordinates are absolute pixels with origin at the top-left of the frame.

    Attributes:
        x: Left edge
        y: Top edge
        width: Box width (>= 0)
        height: Box height (>= 0)

    Raises:
        ValueError: If any coordinate is non-finite or a size is negative
    """

    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        """Coerce to float and validate invariants."""
        for name in ("x", "y", "width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool):
                raise TypeError(f"BoundingBox {name} must be a number, got bool")
            try:
                value = float(value)
            except OverflowError:
                raise ValueError(f"BoundingBox {name} is out of float range") from None
            if not math.isfinite(value):
                raise ValueError(f"BoundingBox {name} must be finite, got {value}")
            object.__setattr__(self, name, value)

        if self.width < 0:
            raise ValueError(f"BoundingBox width must be >= 0, got {self.width}")
        if self.height < 0:
            raise ValueError(f"BoundingBox height must be >= 0, got {self.height}")

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Build from corner coordinates (supervision / YOLO layout)."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "BoundingBox":
        """
        Build from an (x, y, width, height) sequence.

        Raises:
            ValueError: If the sequence does not hold exactly four values
        """
        if len(values) != 4:
            raise ValueError(
                f"BoundingBox needs 4 values (x, y, width, height), got {len(values)}"
            )
        return cls(*values)

    @property
    def centroid(self) -> Centroid:
        return Centroid(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.width, self.height)


def distances_to(point: Centroid, others: Sequence[Centroid]) -> np.ndarray:
    """
    Euclidean distances from one centroid to many.

    Args:
        point: Reference centroid
        others: Centroids to measure against (order preserved)

    Returns:
        Float array of shape (N,)
    """
    if len(others) == 0:
        return np.empty(0, dtype=float)

    coords = np.array([(c.x, c.y) for c in others], dtype=float)
    return np.hypot(coords[:, 0] - point.x, coords[:, 1] - point.y)
