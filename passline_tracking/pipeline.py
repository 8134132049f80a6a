"""
Counting Pipeline Module
========================

Bounded Context: Per-stream orchestration of tracking and counting.

Design:
- Orchestrator: Detection Source -> Tracker -> Evaluator -> Counter
- Pull-based: the caller decides when a frame is processed
- Builder pattern: Fluent configuration
- One LiveConfig shared by tracker, sampler and external controllers
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from passline_tracking.analytics.counter import (
    CounterStats,
    CrossingCounter,
    CrossingListener,
)
from passline_tracking.analytics.crossing import CrossingEvent
from passline_tracking.analytics.track import TrackSnapshot
from passline_tracking.analytics.tracker import FrameResult, PersonTracker, monotonic_ms
from passline_tracking.config import Direction, LiveConfig, TrackingConfig
from passline_tracking.sources import DetectionSource

logger = logging.getLogger(__name__)


class FrameSampler:
    """
    Caller-side frame throttle: process one raw frame in every N.

    The interval is read from the LiveConfig on each call, so a change
    applies from the next raw frame. The first frame is always processed.
    """

    def __init__(self, config: LiveConfig):
        self._config = config
        self._raw_frames = 0

    def should_process(self) -> bool:
        interval = self._config.snapshot().frame_interval
        index = self._raw_frames
        self._raw_frames += 1
        return index % interval == 0

    @property
    def raw_frames(self) -> int:
        return self._raw_frames

    def reset(self) -> None:
        self._raw_frames = 0


@dataclass(frozen=True)
class PipelineSnapshot:
    """Read-only view of everything a renderer or status endpoint needs."""

    tracks: Tuple[TrackSnapshot, ...]
    stats: CounterStats
    history: Tuple[CrossingEvent, ...]
    config: TrackingConfig


class CountingPipeline:
    """
    Tracks people and counts directional crossings for one stream.

    Usage:
        pipeline = CountingPipeline(TrackingConfig(direction="reverse"))

        # Push style (one call per processed frame)
        result = pipeline.process(detections, now=frame_ms)

        # Pull style (drives a DetectionSource until exhausted)
        for result in pipeline.run(source):
            ...

        pipeline.snapshot().stats.total
    """

    def __init__(
        self,
        config: TrackingConfig | LiveConfig | None = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        """
        Args:
            config: Static config or a LiveConfig shared with a controller
            clock: Frame clock (ms) used when no `now` is given
        """
        self.config = config if isinstance(config, LiveConfig) else LiveConfig(config)
        self.tracker = PersonTracker(self.config, clock=clock)
        self.counter = CrossingCounter(
            history_limit=self.config.snapshot().history_limit
        )
        self.sampler = FrameSampler(self.config)
        self._frames_processed = 0

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    def add_listener(self, listener: CrossingListener) -> None:
        self.counter.add_listener(listener)

    def process(
        self,
        detections: Optional[Iterable[Any]],
        now: Optional[float] = None,
    ) -> FrameResult:
        """
        Run one frame through tracker and counter.

        Args:
            detections: Detections of the frame (see PersonTracker)
            now: Frame clock in ms

        Returns:
            FrameResult of the tracker
        """
        result = self.tracker.process_frame(detections, now)
        for event in result.crossings:
            self.counter.on_crossing(event)

        self._frames_processed += 1
        if result.rejected:
            logger.warning(
                f"Frame {self._frames_processed}: "
                f"{result.rejected} malformed detection(s) skipped"
            )
        return result

    def run(
        self,
        source: DetectionSource,
        clock: Optional[Callable[[], float]] = None,
    ) -> Iterator[FrameResult]:
        """
        Pull detections from a source until it is exhausted.

        Raw frames the sampler skips are pulled and discarded.

        Args:
            source: Detection source
            clock: Optional frame clock overriding the pipeline clock

        Yields:
            FrameResult for each processed frame
        """
        while True:
            detections = source.next_detections()
            if detections is None:
                return
            if not self.sampler.should_process():
                continue
            yield self.process(detections, now=clock() if clock else None)

    def reset(self) -> None:
        """Reset counts and history. Active tracks are left untouched."""
        self.counter.reset()
        logger.info("Counter reset")

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            tracks=tuple(self.tracker.tracks),
            stats=self.counter.get_stats(),
            history=self.counter.history,
            config=self.config.snapshot(),
        )


class PipelineBuilder:
    """
    Builder for CountingPipeline.

    Usage:
        pipeline = (
            PipelineBuilder()
            .with_direction("reverse")
            .with_sensitivity(40)
            .with_move_threshold(30)
            .with_listener(print)
            .build()
        )
    """

    def __init__(self):
        self._config = TrackingConfig()
        self._live: Optional[LiveConfig] = None
        self._clock: Callable[[], float] = monotonic_ms
        self._listeners: List[CrossingListener] = []

    def with_config(self, config: TrackingConfig) -> "PipelineBuilder":
        self._config = config
        return self

    def with_live_config(self, live: LiveConfig) -> "PipelineBuilder":
        """Share an existing LiveConfig (overrides other config settings)."""
        self._live = live
        return self

    def with_direction(self, direction: Direction | str) -> "PipelineBuilder":
        self._config = self._config.replace(direction=Direction.parse(direction))
        return self

    def with_sensitivity(self, sensitivity: float) -> "PipelineBuilder":
        self._config = self._config.replace(sensitivity=sensitivity)
        return self

    def with_move_threshold(self, move_threshold: float) -> "PipelineBuilder":
        self._config = self._config.replace(move_threshold=move_threshold)
        return self

    def with_frame_interval(self, frame_interval: int) -> "PipelineBuilder":
        self._config = self._config.replace(frame_interval=frame_interval)
        return self

    def with_clock(self, clock: Callable[[], float]) -> "PipelineBuilder":
        self._clock = clock
        return self

    def with_listener(self, listener: CrossingListener) -> "PipelineBuilder":
        self._listeners.append(listener)
        return self

    def build(self) -> CountingPipeline:
        config = self._live if self._live is not None else LiveConfig(self._config)
        pipeline = CountingPipeline(config, clock=self._clock)
        for listener in self._listeners:
            pipeline.add_listener(listener)
        return pipeline
