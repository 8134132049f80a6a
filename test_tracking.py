"""
Tracking and crossing tests (no video, no broker).

Usage:
    pytest test_tracking.py
"""

import numpy as np
import pytest

from passline_tracking import (
    BoundingBox,
    CountingPipeline,
    CrossingEvaluator,
    DetectionRecord,
    Direction,
    LiveConfig,
    PersonTracker,
    TrackingConfig,
    TrackState,
)
from passline_tracking.analytics.track import InvalidTransitionError, Track


def walk(xs, y=0.0, width=10.0, height=10.0):
    """One single-detection frame per x position."""
    return [[(x, y, width, height)] for x in xs]


def run_frames(pipeline, frames, start=0.0, step=100.0):
    results = []
    for index, detections in enumerate(frames):
        results.append(pipeline.process(detections, now=start + index * step))
    return results


# ─────────────────────────────────────────────────────────────────────────────
# Reference scenarios
# ─────────────────────────────────────────────────────────────────────────────

def test_forward_walk_counts_once():
    pipeline = CountingPipeline(
        TrackingConfig(direction="forward", sensitivity=100, move_threshold=100)
    )

    results = run_frames(pipeline, walk([0, 50, 101]))

    assert [len(r.crossings) for r in results] == [0, 0, 1]
    event = results[-1].crossings[0]
    assert event.direction is Direction.FORWARD
    assert event.displacement == pytest.approx(101.0)
    assert pipeline.counter.total == 1
    assert len(pipeline.counter.history) == 1


def test_forward_walk_not_counted_in_reverse_mode():
    pipeline = CountingPipeline(
        TrackingConfig(direction="reverse", sensitivity=100, move_threshold=100)
    )

    results = run_frames(pipeline, walk([0, 50, 101]))

    assert all(not r.crossings for r in results)
    assert pipeline.counter.total == 0


def test_distant_detections_create_separate_tracks():
    tracker = PersonTracker(TrackingConfig(sensitivity=0))
    assert tracker.config.snapshot().match_threshold == 20

    result = tracker.process_frame([(0, 0, 10, 10), (200, 0, 10, 10)], now=0)

    assert len(result.created) == 2
    assert len(result.tracks) == 2


def test_stale_track_evicted_without_detections():
    tracker = PersonTracker(TrackingConfig(stale_timeout_ms=2000))
    first = tracker.process_frame([(0, 0, 10, 10)], now=0)
    track_id = first.created[0]

    result = tracker.process_frame([], now=2001)

    assert result.tracks == ()
    assert result.evicted == (track_id,)
    assert tracker.get(track_id) is None


def test_track_at_exact_timeout_is_kept():
    tracker = PersonTracker(TrackingConfig(stale_timeout_ms=2000))
    tracker.process_frame([(0, 0, 10, 10)], now=0)

    result = tracker.process_frame(None, now=2000)

    assert len(result.tracks) == 1


def test_reset_keeps_in_flight_tracks():
    pipeline = CountingPipeline(TrackingConfig(move_threshold=20))

    # First person counted
    run_frames(pipeline, walk([0, 30]))
    assert pipeline.counter.total == 1

    # Second person starts, not yet counted
    pipeline.process([(300, 0, 10, 10)], now=1000)
    pipeline.reset()

    stats = pipeline.counter.get_stats()
    assert stats.total == 0
    assert stats.history_size == 0
    assert len(pipeline.tracker) == 2

    result = pipeline.process([(310, 0, 10, 10)], now=1100)
    assert not result.crossings
    result = pipeline.process([(330, 0, 10, 10)], now=1200)
    assert len(result.crossings) == 1
    assert pipeline.counter.total == 1


# ─────────────────────────────────────────────────────────────────────────────
# Track invariants
# ─────────────────────────────────────────────────────────────────────────────

def test_path_bounded_by_window():
    pipeline = CountingPipeline(TrackingConfig(path_window=5, move_threshold=100))

    results = run_frames(pipeline, walk(range(0, 200, 5)))

    assert all(len(t.path) <= 5 for r in results for t in r.tracks)
    assert len(results[-1].tracks[0].path) == 5


def test_counted_track_never_counts_again():
    pipeline = CountingPipeline(TrackingConfig(move_threshold=20))

    results = run_frames(pipeline, walk(range(0, 300, 25)))

    assert sum(len(r.crossings) for r in results) == 1
    assert results[-1].tracks[0].counted
    assert results[-1].tracks[0].state is TrackState.COUNTED


def test_short_movement_not_counted():
    pipeline = CountingPipeline(TrackingConfig(move_threshold=20))

    run_frames(pipeline, walk([0, 10, 20]))

    # Net displacement equal to the threshold is not a crossing
    assert pipeline.counter.total == 0


def test_reverse_walk_counted_in_reverse_mode():
    pipeline = CountingPipeline(TrackingConfig(direction="reverse", move_threshold=20))

    results = run_frames(pipeline, walk([200, 180, 150]))

    assert len(results[-1].crossings) == 1
    assert results[-1].crossings[0].displacement == pytest.approx(-50.0)


def test_empty_frame_on_empty_tracker_is_noop():
    pipeline = CountingPipeline()

    result = pipeline.process([], now=0)
    result_none = pipeline.process(None, now=10)

    assert result.tracks == () and result.crossings == ()
    assert result_none.tracks == ()
    assert pipeline.counter.total == 0


def test_empty_frames_leave_live_tracks_untouched():
    tracker = PersonTracker(TrackingConfig(sensitivity=0, stale_timeout_ms=2000))
    tracker.process_frame([(0, 0, 10, 10), (200, 0, 10, 10)], now=0)
    tracker.process_frame([(5, 0, 10, 10), (205, 0, 10, 10)], now=100)
    before = [(t.bbox, t.path) for t in tracker.tracks]

    for now in (200, 500, 1000, 2000):
        result = tracker.process_frame([], now=now)
        assert [(t.bbox, t.path) for t in result.tracks] == before


def test_each_track_matched_at_most_once_per_frame():
    tracker = PersonTracker(TrackingConfig(sensitivity=100))
    tracker.process_frame([(0, 0, 10, 10)], now=0)

    # Both detections are within range of the single track
    result = tracker.process_frame([(5, 0, 10, 10), (8, 0, 10, 10)], now=100)

    assert len(result.created) == 1
    assert len(result.tracks) == 2
    first = result.tracks[0]
    assert len(first.path) == 2
    assert first.path[-1].x == pytest.approx(10.0)


def test_track_created_this_frame_not_matched_again():
    tracker = PersonTracker(TrackingConfig(sensitivity=100))

    result = tracker.process_frame([(0, 0, 10, 10), (2, 0, 10, 10)], now=0)

    assert len(result.created) == 2


def test_greedy_match_uses_first_track_in_insertion_order():
    tracker = PersonTracker(TrackingConfig(sensitivity=100))
    tracker.process_frame([(0, 0, 10, 10), (60, 0, 10, 10)], now=0)

    # Closer to the second track, but the first is also under the threshold
    result = tracker.process_frame([(50, 0, 10, 10)], now=100)

    first, second = result.tracks
    assert len(first.path) == 2
    assert len(second.path) == 1


def test_track_ids_never_reused():
    tracker = PersonTracker(TrackingConfig(stale_timeout_ms=100))
    first = tracker.process_frame([(0, 0, 10, 10)], now=0).created[0]
    tracker.process_frame([], now=500)
    second = tracker.process_frame([(0, 0, 10, 10)], now=600).created[0]

    assert second > first


# ─────────────────────────────────────────────────────────────────────────────
# Input policy
# ─────────────────────────────────────────────────────────────────────────────

def test_malformed_detections_are_skipped():
    tracker = PersonTracker()

    result = tracker.process_frame(
        [
            (0, 0, 10, 10),
            (0, 0, -5, 10),           # negative width
            (0, 0, 10),               # wrong arity
            (float("nan"), 0, 1, 1),  # non-finite
            (10**400, 0, 10, 10),     # out of float range
            "not a box",
        ],
        now=0,
    )

    assert result.rejected == 5
    assert len(result.tracks) == 1


def test_accepts_records_boxes_and_arrays():
    tracker = PersonTracker(TrackingConfig(sensitivity=0))

    result = tracker.process_frame(
        [
            DetectionRecord(x=0, y=0, width=10, height=10),
            BoundingBox(x=100, y=0, width=10, height=10),
            np.array([200.0, 0.0, 10.0, 10.0]),
        ],
        now=0,
    )

    assert result.rejected == 0
    assert len(result.tracks) == 3


def test_accepts_array_frame():
    tracker = PersonTracker(TrackingConfig(sensitivity=0))

    result = tracker.process_frame(
        np.array([[0.0, 0.0, 10.0, 10.0], [100.0, 0.0, 10.0, 10.0]]), now=0
    )

    assert result.rejected == 0
    assert len(result.tracks) == 2


def test_six_value_records_follow_label_and_score_policy():
    tracker = PersonTracker(TrackingConfig(sensitivity=0, min_score=0.5))

    result = tracker.process_frame(
        [
            (0, 0, 10, 10, "person", 0.9),
            (100, 0, 10, 10, "car", 0.9),
            (200, 0, 10, 10, "person", 0.2),
        ],
        now=0,
    )

    assert result.rejected == 0
    assert len(result.tracks) == 1
    assert result.tracks[0].bbox.x == 0


def test_non_person_labels_ignored():
    tracker = PersonTracker()

    result = tracker.process_frame(
        [
            DetectionRecord(x=0, y=0, width=10, height=10, label="car"),
            DetectionRecord(x=300, y=0, width=10, height=10, label="person"),
        ],
        now=0,
    )

    assert len(result.tracks) == 1
    assert result.rejected == 0


def test_min_score_filters_weak_detections():
    tracker = PersonTracker(TrackingConfig(min_score=0.5))

    result = tracker.process_frame(
        [
            DetectionRecord(x=0, y=0, width=10, height=10, score=0.3),
            DetectionRecord(x=300, y=0, width=10, height=10, score=0.8),
        ],
        now=0,
    )

    assert len(result.tracks) == 1
    assert result.tracks[0].bbox.x == 300


def test_zero_area_box_accepted():
    tracker = PersonTracker()

    result = tracker.process_frame([(10, 10, 0, 0)], now=0)

    assert result.rejected == 0
    assert result.tracks[0].path[0].as_tuple() == (10.0, 10.0)


# ─────────────────────────────────────────────────────────────────────────────
# Live configuration
# ─────────────────────────────────────────────────────────────────────────────

def test_direction_change_applies_to_next_frame():
    live = LiveConfig(TrackingConfig(direction="reverse", move_threshold=20))
    pipeline = CountingPipeline(live)

    pipeline.process([(0, 0, 10, 10)], now=0)
    pipeline.process([(30, 0, 10, 10)], now=100)
    assert pipeline.counter.total == 0

    live.update(direction="forward")
    result = pipeline.process([(40, 0, 10, 10)], now=200)

    assert result.config.direction is Direction.FORWARD
    assert pipeline.counter.total == 1


def test_shrinking_path_window_trims_existing_tracks():
    live = LiveConfig(TrackingConfig(path_window=10, move_threshold=100))
    tracker = PersonTracker(live)
    for index, x in enumerate(range(0, 40, 5)):
        tracker.process_frame([(x, 0, 10, 10)], now=index * 10)
    assert len(tracker.tracks[0].path) == 8

    live.update(path_window=3)
    result = tracker.process_frame([], now=100)

    assert len(result.tracks[0].path) == 3


def test_invalid_live_update_keeps_previous_config():
    live = LiveConfig()

    with pytest.raises(ValueError):
        live.update(sensitivity=250)

    assert live.snapshot().sensitivity == 100


# ─────────────────────────────────────────────────────────────────────────────
# Evaluator and track state machine
# ─────────────────────────────────────────────────────────────────────────────

def test_evaluator_requires_two_points():
    track = Track(track_id=1, bbox=BoundingBox(0, 0, 10, 10), last_seen=0)

    assert CrossingEvaluator.evaluate(track, TrackingConfig(), now=0) is None
    assert not track.counted


def test_evaluator_threshold_is_strict():
    config = TrackingConfig(move_threshold=20)

    assert not CrossingEvaluator.is_crossing(20.0, config)
    assert CrossingEvaluator.is_crossing(20.5, config)
    assert not CrossingEvaluator.is_crossing(-50.0, config)


def test_track_cannot_be_counted_twice():
    track = Track(track_id=1, bbox=BoundingBox(0, 0, 10, 10), last_seen=0)
    track.mark_counted()

    with pytest.raises(InvalidTransitionError):
        track.mark_counted()


def test_evicted_track_rejects_matches():
    track = Track(track_id=1, bbox=BoundingBox(0, 0, 10, 10), last_seen=0)
    track.mark_evicted()

    assert track.state is TrackState.EVICTED
    with pytest.raises(InvalidTransitionError):
        track.record_match(BoundingBox(5, 0, 10, 10), now=10, path_window=15)


def test_independent_trackers_do_not_share_state():
    first = PersonTracker()
    second = PersonTracker()

    first.process_frame([(0, 0, 10, 10)], now=0)

    assert len(first) == 1
    assert len(second) == 0
