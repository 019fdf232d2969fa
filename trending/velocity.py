"""Velocity (rate of change) and momentum (acceleration) of topic mentions."""

from .log import get_logger
from .models import HOUR


def compute_velocity(current_count: int, prev_count: int) -> float:
    """Percent change versus the previous hour; 100 for a topic's first appearance."""
    if prev_count > 0:
        return (current_count - prev_count) / prev_count * 100
    return 100.0 if current_count > 0 else 0.0


def compute_momentum(velocity: float, velocity_two_hours_ago: float | None) -> float:
    """Positive when speeding up, negative when decelerating."""
    return velocity - (velocity_two_hours_ago or 0.0)


class VelocityEngine:
    """Scores buckets in place on the trend store; never creates records."""

    def __init__(self, store):
        self.store = store

    def score_bucket(self, topic_key: str, hour) -> tuple[float, float] | None:
        bucket = self.store.get(topic_key, hour)
        if bucket is None:
            return None
        prev, two_ago = self.store.history(topic_key, hour, 2)
        prev_count = prev.mention_count if prev else 0
        velocity = compute_velocity(bucket.mention_count, prev_count)
        momentum = compute_momentum(velocity, two_ago.velocity_score if two_ago else None)
        self.store.update_scores(topic_key, hour, velocity, momentum)
        get_logger("velocity").debug(
            "%s @ %s: %d mentions (prev %d), velocity %+.0f%%, momentum %+.0f",
            topic_key, hour.isoformat(), bucket.mention_count, prev_count, velocity, momentum,
        )
        return velocity, momentum

    def score(self, keys) -> dict:
        """Score the given (topic_key, hour) buckets and any later buckets whose inputs they feed.

        Oldest hours are scored first so each momentum reads an up-to-date velocity.
        """
        targets = set(keys)
        for topic_key, hour in list(targets):
            for ahead in (1, 2):
                later = hour + HOUR * ahead
                if self.store.get(topic_key, later) is not None:
                    targets.add((topic_key, later))

        scores = {}
        for topic_key, hour in sorted(targets, key=lambda k: (k[1], k[0])):
            result = self.score_bucket(topic_key, hour)
            if result is not None:
                scores[(topic_key, hour)] = result
        return scores
