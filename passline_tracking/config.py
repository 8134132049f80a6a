"""
Tracking Configuration Module
=============================

Configuration for the tracking and counting core.

Design:
- Frozen dataclass (validated once, never mutated)
- LiveConfig holder for changes between frames (atomic swap)
- YAML loading for file-based setup
"""

import numbers
import threading
from dataclasses import dataclass, asdict, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def _as_count(name: str, value: Any) -> int:
    """Integer field value; integral floats (e.g. 15.0 from YAML) are accepted."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if not isinstance(value, numbers.Integral) and not float(value).is_integer():
        raise ValueError(f"{name} must be an integer, got {value}")
    return int(value)


class Direction(str, Enum):
    """Counted direction along the x axis."""

    FORWARD = "forward"  # low-x to high-x
    REVERSE = "reverse"  # high-x to low-x

    @classmethod
    def parse(cls, value: "Direction | str") -> "Direction":
        """Parse a direction name (case-insensitive)."""
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid direction: {value!r}. Must be 'forward' or 'reverse'"
            )

    def toggled(self) -> "Direction":
        """Return the opposite direction."""
        return Direction.REVERSE if self is Direction.FORWARD else Direction.FORWARD


@dataclass(frozen=True)
class TrackingConfig:
    """
    Immutable tracking and counting configuration.

    Attributes:
        direction: Counted direction
        sensitivity: 0-100, added to base_radius to form the match threshold
        move_threshold: Minimum net x displacement (pixels) to count a crossing
        path_window: Maximum centroids kept per track
        stale_timeout_ms: Tracks unseen for longer than this are evicted
        base_radius: Match radius at sensitivity 0
        target_label: Detection label consumed by the tracker
        min_score: Optional confidence floor (None disables filtering)
        history_limit: Maximum crossing events retained in the history log
        frame_interval: Process one raw frame in every N
    """

    direction: Direction = Direction.FORWARD
    sensitivity: float = 100
    move_threshold: float = 20
    path_window: int = 15
    stale_timeout_ms: float = 2000
    base_radius: float = 20
    target_label: str = "person"
    min_score: Optional[float] = None
    history_limit: int = 1000
    frame_interval: int = 1

    def __post_init__(self):
        """Validate configuration."""
        object.__setattr__(self, "direction", Direction.parse(self.direction))
        for name in ("path_window", "history_limit", "frame_interval"):
            object.__setattr__(self, name, _as_count(name, getattr(self, name)))

        if not 0 <= self.sensitivity <= 100:
            raise ValueError(
                f"sensitivity must be in [0, 100], got {self.sensitivity}"
            )

        if not 5 <= self.move_threshold <= 100:
            raise ValueError(
                f"move_threshold must be in [5, 100], got {self.move_threshold}"
            )

        if self.path_window < 2:
            raise ValueError(
                f"path_window must be >= 2, got {self.path_window}"
            )

        if self.stale_timeout_ms <= 0:
            raise ValueError(
                f"stale_timeout_ms must be > 0, got {self.stale_timeout_ms}"
            )

        if self.base_radius < 0:
            raise ValueError(
                f"base_radius must be >= 0, got {self.base_radius}"
            )

        if not self.target_label:
            raise ValueError("target_label cannot be empty")

        if self.min_score is not None and not 0.0 <= self.min_score <= 1.0:
            raise ValueError(
                f"min_score must be in [0.0, 1.0], got {self.min_score}"
            )

        if self.history_limit < 1:
            raise ValueError(
                f"history_limit must be >= 1, got {self.history_limit}"
            )

        if self.frame_interval < 1:
            raise ValueError(
                f"frame_interval must be >= 1, got {self.frame_interval}"
            )

    @property
    def match_threshold(self) -> float:
        """Maximum centroid distance (exclusive) for associating a detection."""
        return self.base_radius + self.sensitivity

    def replace(self, **changes: Any) -> "TrackingConfig":
        """Return a validated copy with the given fields changed."""
        unknown = set(changes) - set(self.__dataclass_fields__)
        if unknown:
            raise ValueError(
                f"Unknown tracking option(s): {', '.join(sorted(unknown))}"
            )
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        data = asdict(self)
        data["direction"] = self.direction.value
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "TrackingConfig":
        """
        Build from a plain dict (e.g. a YAML section).

        Raises:
            ValueError: On unknown keys or invalid values
        """
        data = dict(data or {})
        known = set(cls.__dataclass_fields__)
        unknown = set(data) - known
        if unknown:
            raise ValueError(
                f"Unknown tracking option(s): {', '.join(sorted(unknown))}"
            )
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "TrackingConfig":
        """
        Load from a YAML file.

        Example YAML:
            direction: forward
            sensitivity: 100
            move_threshold: 20
            path_window: 15
            stale_timeout_ms: 2000
        """
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data.get("tracking", data))


class LiveConfig:
    """
    Holder for the configuration in effect, mutable between frames.

    Readers take one snapshot() per frame; writers swap in a new validated
    TrackingConfig under a lock. An update that fails validation leaves the
    previous configuration in place.
    """

    def __init__(self, config: Optional[TrackingConfig] = None):
        self._config = config or TrackingConfig()
        self._lock = threading.Lock()

    def snapshot(self) -> TrackingConfig:
        with self._lock:
            return self._config

    def update(self, **changes: Any) -> TrackingConfig:
        """
        Apply changes atomically.

        Returns:
            The new configuration

        Raises:
            ValueError: If the resulting configuration is invalid
        """
        if "direction" in changes:
            changes["direction"] = Direction.parse(changes["direction"])
        with self._lock:
            self._config = self._config.replace(**changes)
            return self._config

    def replace_all(self, config: TrackingConfig) -> None:
        with self._lock:
            self._config = config

    def toggle_direction(self) -> Direction:
        with self._lock:
            self._config = self._config.replace(
                direction=self._config.direction.toggled()
            )
            return self._config.direction

    def __repr__(self) -> str:
        return f"LiveConfig({self.snapshot()!r})"
