"""
Counting pipeline tests (sampler, pull loop, builder, snapshots).

Usage:
    pytest test_pipeline.py
"""

import numpy as np
import supervision as sv

from passline_tracking import (
    CountingPipeline,
    DetectionRecord,
    Direction,
    FrameSampler,
    LiveConfig,
    PipelineBuilder,
    ReplayDetectionSource,
    TrackingConfig,
    records_from_supervision,
)


def person(x, y=0.0):
    return DetectionRecord(x=x, y=y, width=10, height=10)


class FakeClock:
    def __init__(self, step=100.0):
        self.now = 0.0
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


def test_sampler_processes_every_nth_frame():
    live = LiveConfig(TrackingConfig(frame_interval=3))
    sampler = FrameSampler(live)

    decisions = [sampler.should_process() for _ in range(7)]

    assert decisions == [True, False, False, True, False, False, True]
    assert sampler.raw_frames == 7


def test_sampler_reads_live_interval():
    live = LiveConfig(TrackingConfig(frame_interval=1))
    sampler = FrameSampler(live)
    assert sampler.should_process()

    live.update(frame_interval=2)

    # raw index 1 is odd under the new interval
    assert not sampler.should_process()
    assert sampler.should_process()


def test_run_replays_until_exhausted():
    source = ReplayDetectionSource([[person(0)], [person(30)], [person(60)]])
    pipeline = CountingPipeline(TrackingConfig(move_threshold=20), clock=FakeClock())

    results = list(pipeline.run(source))

    assert len(results) == 3
    assert [r.timestamp for r in results] == [0.0, 100.0, 200.0]
    assert pipeline.counter.total == 1
    assert pipeline.frames_processed == 3
    assert source.next_detections() is None


def test_run_skips_sampled_out_frames():
    frames = [[person(x)] for x in range(0, 60, 10)]
    source = ReplayDetectionSource(frames)
    pipeline = (
        PipelineBuilder()
        .with_frame_interval(2)
        .with_clock(FakeClock())
        .build()
    )

    results = list(pipeline.run(source))

    assert len(results) == 3
    assert pipeline.sampler.raw_frames == 6
    # Processed frames saw x = 0, 20, 40
    assert [p.x for p in results[-1].tracks[0].path] == [5.0, 25.0, 45.0]


def test_builder_applies_settings_and_listeners():
    events = []
    pipeline = (
        PipelineBuilder()
        .with_direction("reverse")
        .with_sensitivity(40)
        .with_move_threshold(30)
        .with_listener(events.append)
        .build()
    )

    config = pipeline.config.snapshot()
    assert config.direction is Direction.REVERSE
    assert config.match_threshold == 60
    assert config.move_threshold == 30

    for index, x in enumerate([100, 80, 60]):
        pipeline.process([person(x)], now=index * 100)

    assert len(events) == 1
    assert events[0].direction is Direction.REVERSE


def test_builder_shares_live_config():
    live = LiveConfig()
    pipeline = PipelineBuilder().with_live_config(live).build()

    live.update(direction="reverse")

    assert pipeline.config is live
    assert pipeline.tracker.config.snapshot().direction is Direction.REVERSE


def test_snapshot_reflects_state():
    pipeline = CountingPipeline(TrackingConfig(move_threshold=20))
    pipeline.process([person(0)], now=0)
    pipeline.process([person(30)], now=100)

    snapshot = pipeline.snapshot()

    assert snapshot.stats.total == 1
    assert len(snapshot.history) == 1
    assert len(snapshot.tracks) == 1
    assert snapshot.tracks[0].counted
    assert snapshot.config.move_threshold == 20


def test_history_limit_from_config():
    pipeline = CountingPipeline(TrackingConfig(history_limit=2))

    assert pipeline.counter.history_limit == 2


def test_records_from_supervision_uses_class_names():
    detections = sv.Detections(
        xyxy=np.array([[10, 20, 30, 60], [100, 100, 150, 200]], dtype=float),
        confidence=np.array([0.9, 0.4]),
        class_id=np.array([0, 2]),
    )

    records = records_from_supervision(detections, class_names={0: "person", 2: "car"})

    assert [r.label for r in records] == ["person", "car"]
    assert records[0].width == 20 and records[0].height == 40
    assert records[1].score == 0.4


def test_records_from_supervision_prefers_class_name_data():
    detections = sv.Detections(
        xyxy=np.array([[0, 0, 10, 10]], dtype=float),
        class_id=np.array([5]),
        data={"class_name": np.array(["person"])},
    )

    records = records_from_supervision(detections)

    assert records[0].label == "person"
    assert records[0].score == 1.0


def test_records_from_empty_detections():
    assert records_from_supervision(sv.Detections.empty()) == []
