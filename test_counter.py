"""
Crossing counter tests.

Usage:
    pytest test_counter.py
"""

import pytest

from passline_tracking import CrossingCounter, CrossingEvent, Direction


def make_event(track_id, direction=Direction.FORWARD, displacement=30.0):
    return CrossingEvent(
        track_id=track_id,
        direction=direction,
        timestamp=track_id * 100.0,
        displacement=displacement,
    )


def test_counts_and_history():
    counter = CrossingCounter()

    counter.on_crossing(make_event(1))
    counter.on_crossing(make_event(2, Direction.REVERSE, -40.0))

    stats = counter.get_stats()
    assert stats.total == 2
    assert stats.forward == 1
    assert stats.reverse == 1
    assert [e.track_id for e in counter.history] == [1, 2]
    assert stats.last_crossing_at == counter.history[-1].recorded_at


def test_history_is_ring_buffer_but_total_is_not():
    counter = CrossingCounter(history_limit=3)

    for track_id in range(1, 6):
        counter.on_crossing(make_event(track_id))

    stats = counter.get_stats()
    assert stats.total == 5
    assert stats.history_size == 3
    assert stats.dropped == 2
    assert [e.track_id for e in counter.history] == [3, 4, 5]


def test_invalid_history_limit():
    with pytest.raises(ValueError):
        CrossingCounter(history_limit=0)


def test_reset_zeroes_everything():
    counter = CrossingCounter(history_limit=1)
    counter.on_crossing(make_event(1))
    counter.on_crossing(make_event(2))

    counter.reset()

    stats = counter.get_stats()
    assert stats.total == 0
    assert stats.dropped == 0
    assert stats.history_size == 0
    assert stats.last_crossing_at is None
    assert counter.history == ()


def test_listeners_called_in_order():
    counter = CrossingCounter()
    calls = []
    counter.add_listener(lambda e: calls.append(("first", e.track_id)))
    counter.add_listener(lambda e: calls.append(("second", e.track_id)))

    counter.on_crossing(make_event(7))

    assert calls == [("first", 7), ("second", 7)]


def test_failing_listener_does_not_block_counting():
    counter = CrossingCounter()
    seen = []

    def broken(event):
        raise RuntimeError("storage offline")

    counter.add_listener(broken)
    counter.add_listener(seen.append)

    counter.on_crossing(make_event(1))

    assert counter.total == 1
    assert len(seen) == 1


def test_listener_sees_updated_total():
    counter = CrossingCounter()
    totals = []
    counter.add_listener(lambda e: totals.append(counter.get_stats().total))

    counter.on_crossing(make_event(1))
    counter.on_crossing(make_event(2))

    assert totals == [1, 2]


def test_remove_listener():
    counter = CrossingCounter()
    seen = []
    counter.add_listener(seen.append)
    counter.remove_listener(seen.append)

    counter.on_crossing(make_event(1))

    assert seen == []


def test_stats_to_dict():
    counter = CrossingCounter()
    counter.on_crossing(make_event(1))

    data = counter.get_stats().to_dict()

    assert data["total"] == 1
    assert data["forward"] == 1
    assert isinstance(data["last_crossing_at"], str)
    assert str(counter.get_stats()) == "Total: 1 (forward=1, reverse=0)"
