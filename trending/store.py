"""Keyed record stores for entity aliases and hourly topic buckets.

Both stores are narrow interfaces so a database-backed implementation can
replace the in-memory ones. The in-memory stores keep a per-store lock only
to make a single record operation atomic; concurrent writers to the same
bucket are reconciled by merging, never by last-write-wins.
"""

import copy
import json
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from .errors import PersistenceConflict, StoreUnavailable
from .log import get_logger
from .models import HOUR, EntityAlias, TopicBucket


class AliasStore(ABC):
    """Alias dictionary keyed by normalized raw name."""

    @abstractmethod
    def lookup(self, raw_name: str) -> EntityAlias | None:
        ...

    @abstractmethod
    def upsert(self, alias: EntityAlias) -> EntityAlias:
        ...

    @abstractmethod
    def increment_usage(self, raw_name: str) -> None:
        ...

    @abstractmethod
    def all(self) -> list[EntityAlias]:
        ...


class TrendStore(ABC):
    """Topic buckets keyed by (topic_key, hour)."""

    @abstractmethod
    def get(self, topic_key: str, hour: datetime) -> TopicBucket | None:
        """Return a copy of the stored bucket, or None."""

    @abstractmethod
    def put_if_version(self, bucket: TopicBucket, expected_version: int | None) -> TopicBucket:
        """Write ``bucket`` only if the stored version still equals ``expected_version``.

        ``expected_version`` is None when the caller saw no record. Raises
        PersistenceConflict otherwise.
        """

    @abstractmethod
    def update_scores(self, topic_key: str, hour: datetime, velocity: float, momentum: float) -> bool:
        """Set score fields on an existing bucket. Never creates one."""

    @abstractmethod
    def buckets(self, since: datetime | None = None, until: datetime | None = None) -> list[TopicBucket]:
        ...

    def history(self, topic_key: str, hour: datetime, n: int) -> list:
        """Buckets for the n hours before ``hour``, nearest first; None where absent."""
        return [self.get(topic_key, hour - HOUR * i) for i in range(1, n + 1)]

    def merge(self, bucket: TopicBucket, max_attempts: int = 10) -> TopicBucket:
        """Read-merge-write upsert, retried while another writer wins the race."""
        for attempt in range(max_attempts):
            current = self.get(bucket.topic_key, bucket.hour)
            if current is None:
                merged = copy.deepcopy(bucket)
                expected = None
            else:
                merged = current
                merged.absorb(bucket)
                expected = current.version
            try:
                return self.put_if_version(merged, expected)
            except PersistenceConflict:
                get_logger("store").debug(
                    "Conflict merging %s @ %s (attempt %d), re-reading",
                    bucket.topic_key, bucket.hour.isoformat(), attempt + 1,
                )
        raise PersistenceConflict(
            f"{bucket.topic_key} @ {bucket.hour.isoformat()} still contended after {max_attempts} attempts"
        )


def _read_json(path: Path):
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError) as e:
        raise StoreUnavailable(f"cannot read {path}: {e}") from e


def _write_json(path: Path, payload):
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False))
    except OSError as e:
        raise StoreUnavailable(f"cannot write {path}: {e}") from e


class MemoryAliasStore(AliasStore):
    def __init__(self, aliases: list[EntityAlias] | None = None):
        self._lock = threading.Lock()
        self._aliases = {a.raw_name: a for a in aliases or []}

    def lookup(self, raw_name: str) -> EntityAlias | None:
        with self._lock:
            alias = self._aliases.get(raw_name)
            return copy.copy(alias) if alias else None

    def upsert(self, alias: EntityAlias) -> EntityAlias:
        """Insert or replace; a lower-confidence write never replaces a stronger one."""
        with self._lock:
            existing = self._aliases.get(alias.raw_name)
            if existing and existing.confidence_score > alias.confidence_score:
                return copy.copy(existing)
            stored = copy.copy(alias)
            if existing:
                stored.usage_count = max(existing.usage_count, alias.usage_count)
            self._aliases[alias.raw_name] = stored
            return copy.copy(stored)

    def increment_usage(self, raw_name: str) -> None:
        with self._lock:
            alias = self._aliases.get(raw_name)
            if alias:
                alias.usage_count += 1

    def all(self) -> list[EntityAlias]:
        with self._lock:
            return [copy.copy(a) for a in self._aliases.values()]

    def __len__(self):
        return len(self._aliases)

    def save(self, path: Path):
        _write_json(path, [a.to_dict() for a in self.all()])

    @classmethod
    def load(cls, path: Path) -> "MemoryAliasStore":
        data = _read_json(path) or []
        return cls([EntityAlias.from_dict(d) for d in data])


class MemoryTrendStore(TrendStore):
    def __init__(self, buckets: list[TopicBucket] | None = None):
        self._lock = threading.Lock()
        self._buckets = {b.key: b for b in buckets or []}

    def get(self, topic_key: str, hour: datetime) -> TopicBucket | None:
        with self._lock:
            bucket = self._buckets.get((topic_key, hour))
            return copy.deepcopy(bucket) if bucket else None

    def put_if_version(self, bucket: TopicBucket, expected_version: int | None) -> TopicBucket:
        with self._lock:
            existing = self._buckets.get(bucket.key)
            current_version = existing.version if existing else None
            if current_version != expected_version:
                raise PersistenceConflict(
                    f"{bucket.topic_key} @ {bucket.hour.isoformat()}: "
                    f"expected version {expected_version}, found {current_version}"
                )
            stored = copy.deepcopy(bucket)
            stored.version = (current_version or 0) + 1
            self._buckets[stored.key] = stored
            return copy.deepcopy(stored)

    def update_scores(self, topic_key: str, hour: datetime, velocity: float, momentum: float) -> bool:
        with self._lock:
            bucket = self._buckets.get((topic_key, hour))
            if bucket is None:
                return False
            bucket.velocity_score = velocity
            bucket.momentum_score = momentum
            bucket.version += 1
            return True

    def buckets(self, since: datetime | None = None, until: datetime | None = None) -> list[TopicBucket]:
        with self._lock:
            selected = [
                b for b in self._buckets.values()
                if (since is None or b.hour >= since) and (until is None or b.hour <= until)
            ]
            return [copy.deepcopy(b) for b in selected]

    def __len__(self):
        return len(self._buckets)

    def save(self, path: Path):
        _write_json(path, [b.to_dict() for b in self.buckets()])

    @classmethod
    def load(cls, path: Path) -> "MemoryTrendStore":
        data = _read_json(path) or []
        return cls([TopicBucket.from_dict(d) for d in data])
