"""Tests for trending/velocity.py — velocity and momentum."""

import pytest

from trending.models import HOUR, TopicBucket
from trending.store import MemoryTrendStore
from trending.velocity import VelocityEngine, compute_momentum, compute_velocity

from conftest import make_doc

KEY = "senate passes border bill"


def _store_with(counts: dict) -> MemoryTrendStore:
    """Store with ``counts[hour] = mentions`` for KEY."""
    store = MemoryTrendStore()
    for hour, count in counts.items():
        bucket = TopicBucket(topic_key=KEY, hour=hour, label="Senate Passes Border Bill")
        for i in range(count):
            bucket.add_mention(make_doc(f"{hour:%H}-{i}"))
        store.merge(bucket)
    return store


class TestComputeVelocity:
    @pytest.mark.parametrize("current, prev, expected", [
        (5, 0, 100.0),
        (0, 0, 0.0),
        (15, 10, 50.0),
        (5, 10, -50.0),
        (10, 10, 0.0),
    ])
    def test_formula(self, current, prev, expected):
        assert compute_velocity(current, prev) == pytest.approx(expected)


class TestComputeMomentum:
    def test_accelerating(self):
        assert compute_momentum(150.0, 50.0) == 100.0

    def test_decelerating(self):
        assert compute_momentum(20.0, 80.0) == -60.0

    def test_no_history(self):
        assert compute_momentum(100.0, None) == 100.0


class TestVelocityEngine:
    def test_first_appearance(self, base_time):
        store = _store_with({base_time: 5})
        scores = VelocityEngine(store).score([(KEY, base_time)])
        assert scores[(KEY, base_time)] == (100.0, 100.0)
        bucket = store.get(KEY, base_time)
        assert bucket.velocity_score == 100.0
        assert bucket.momentum_score == 100.0

    def test_against_previous_hour(self, base_time):
        store = _store_with({base_time - HOUR: 10, base_time: 15})
        velocity, momentum = VelocityEngine(store).score_bucket(KEY, base_time)
        assert velocity == pytest.approx(50.0)
        assert momentum == pytest.approx(50.0)

    def test_momentum_uses_velocity_two_hours_back(self, base_time):
        store = _store_with({base_time - 2 * HOUR: 4, base_time - HOUR: 4, base_time: 8})
        engine = VelocityEngine(store)
        engine.score([(KEY, base_time - 2 * HOUR), (KEY, base_time - HOUR), (KEY, base_time)])
        bucket = store.get(KEY, base_time)
        assert bucket.velocity_score == pytest.approx(100.0)
        # velocity two hours back was 100 (first appearance)
        assert bucket.momentum_score == pytest.approx(0.0)

    def test_later_buckets_rescored(self, base_time):
        store = _store_with({base_time - HOUR: 2, base_time: 6})
        engine = VelocityEngine(store)
        engine.score([(KEY, base_time - HOUR)])
        assert store.get(KEY, base_time).velocity_score == pytest.approx(200.0)

    def test_missing_bucket_not_created(self, base_time):
        store = MemoryTrendStore()
        assert VelocityEngine(store).score([(KEY, base_time)]) == {}
        assert len(store) == 0
