"""Tests for trending/store.py — alias and trend stores, read-merge-write."""

import pytest

from trending.errors import PersistenceConflict, StoreUnavailable
from trending.models import HOUR, EntityAlias, TopicBucket
from trending.store import MemoryAliasStore, MemoryTrendStore

from conftest import make_doc


def _bucket(hour, *doc_ids, key="senate passes border bill"):
    bucket = TopicBucket(topic_key=key, hour=hour, label="Senate Passes Border Bill")
    for doc_id in doc_ids:
        bucket.add_mention(make_doc(doc_id, source="Reuters"))
    return bucket


class FlakyTrendStore(MemoryTrendStore):
    """Loses the version race ``conflicts`` times before writes go through."""

    def __init__(self, conflicts):
        super().__init__()
        self.conflicts = conflicts
        self.attempts = 0

    def put_if_version(self, bucket, expected_version):
        self.attempts += 1
        if self.conflicts:
            self.conflicts -= 1
            raise PersistenceConflict("lost the race")
        return super().put_if_version(bucket, expected_version)


class TestAliasStore:
    def test_upsert_and_lookup(self):
        store = MemoryAliasStore()
        store.upsert(EntityAlias("trump", "Donald Trump", "person", "fuzzy", 0.9, usage_count=1))
        assert store.lookup("trump").canonical_name == "Donald Trump"
        assert store.lookup("biden") is None

    def test_lower_confidence_never_replaces(self):
        store = MemoryAliasStore()
        store.upsert(EntityAlias("trump", "Donald Trump", "person", "fuzzy", 0.95))
        store.upsert(EntityAlias("trump", "Trump Tower", "location", "knowledge_base", 0.85))
        assert store.lookup("trump").canonical_name == "Donald Trump"

    def test_confidence_clamped(self):
        assert EntityAlias("x", "X", "unknown", "fuzzy", 1.7).confidence_score == 1.0

    def test_increment_usage(self):
        store = MemoryAliasStore([EntityAlias("fbi", "FBI", "organization", "fuzzy", 1.0, usage_count=1)])
        store.increment_usage("fbi")
        store.increment_usage("unknown")
        assert store.lookup("fbi").usage_count == 2

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "aliases.json"
        store = MemoryAliasStore([EntityAlias("fbi", "FBI", "organization", "fuzzy", 1.0, usage_count=4)])
        store.save(path)
        loaded = MemoryAliasStore.load(path)
        assert loaded.lookup("fbi").usage_count == 4


class TestTrendStore:
    def test_merge_creates(self, base_time):
        store = MemoryTrendStore()
        stored = store.merge(_bucket(base_time, "a1", "a2"))
        assert stored.mention_count == 2
        assert stored.version == 1

    def test_merge_adds_new_documents(self, base_time):
        store = MemoryTrendStore()
        store.merge(_bucket(base_time, "a1", "a2"))
        stored = store.merge(_bucket(base_time, "a2", "a3"))
        assert stored.mention_count == 3
        assert stored.sample_article_ids == ["a1", "a2", "a3"]

    def test_merge_is_idempotent(self, base_time):
        store = MemoryTrendStore()
        store.merge(_bucket(base_time, "a1", "a2"))
        store.merge(_bucket(base_time, "a1", "a2"))
        assert store.get("senate passes border bill", base_time).mention_count == 2

    def test_merge_retries_conflicts(self, base_time):
        store = FlakyTrendStore(conflicts=2)
        stored = store.merge(_bucket(base_time, "a1"))
        assert stored.mention_count == 1
        assert store.attempts == 3

    def test_merge_gives_up(self, base_time):
        store = FlakyTrendStore(conflicts=100)
        with pytest.raises(PersistenceConflict):
            store.merge(_bucket(base_time, "a1"), max_attempts=3)
        assert store.get("senate passes border bill", base_time) is None

    def test_stale_version_rejected(self, base_time):
        store = MemoryTrendStore()
        store.merge(_bucket(base_time, "a1"))
        with pytest.raises(PersistenceConflict):
            store.put_if_version(_bucket(base_time, "a2"), expected_version=None)

    def test_update_scores_never_creates(self, base_time):
        store = MemoryTrendStore()
        assert store.update_scores("missing", base_time, 100.0, 100.0) is False
        assert len(store) == 0

    def test_history_nearest_first(self, base_time):
        store = MemoryTrendStore()
        store.merge(_bucket(base_time - 2 * HOUR, "a1"))
        prev, two_ago, three_ago = store.history("senate passes border bill", base_time, 3)
        assert prev is None
        assert two_ago.mention_count == 1
        assert three_ago is None

    def test_buckets_window(self, base_time):
        store = MemoryTrendStore()
        store.merge(_bucket(base_time - 30 * HOUR, "old"))
        store.merge(_bucket(base_time, "new"))
        recent = store.buckets(since=base_time - 24 * HOUR)
        assert [b.sample_article_ids for b in recent] == [["new"]]

    def test_save_and_load(self, tmp_path, base_time):
        path = tmp_path / "trends.json"
        store = MemoryTrendStore()
        store.merge(_bucket(base_time, "a1", "a2"))
        store.save(path)
        loaded = MemoryTrendStore.load(path).get("senate passes border bill", base_time)
        assert loaded.mention_count == 2
        assert loaded.hour == base_time

    def test_corrupt_snapshot_unavailable(self, tmp_path):
        path = tmp_path / "trends.json"
        path.write_text("{not json")
        with pytest.raises(StoreUnavailable):
            MemoryTrendStore.load(path)
