"""
Geometry Layer
==============

Bounded Context: Pure geometric shapes and distance queries.

Responsibilities:
- Bounding box representation (immutable, validated)
- Centroid derivation
- Centroid distance queries
- NO state, NO counting

Design Philosophy:
- Immutable data structures
- Fail-fast validation
- Zero side effects
"""

from passline_tracking.geometry.shapes import BoundingBox, Centroid, distances_to

__all__ = [
    "BoundingBox",
    "Centroid",
    "distances_to",
]
