"""Topic aggregation into hourly buckets."""

from .entities.dictionary import TOPIC_NORMALIZATIONS
from .errors import PersistenceConflict
from .extraction.rules import is_event_phrase
from .log import get_logger
from .models import EVENT_PHRASE, METHOD_INVALID, Candidate, RawDocument, TopicBucket


class TopicAggregator:
    """Accumulates candidates per (topic_key, publish hour).

    Each document counts once per topic, however many surviving candidates
    resolve to that topic. ``flush`` merges the accumulated buckets into a
    TrendStore, so a second writer for the same key adds to the count
    instead of replacing it.
    """

    def __init__(self, canonicalizer=None):
        self.canonicalizer = canonicalizer
        self._buckets = {}

    def topic_label(self, candidate: Candidate) -> str | None:
        """Canonical display label for a candidate, or None if it does not resolve to a valid topic."""
        if self.canonicalizer is None:
            key = " ".join(candidate.phrase.lower().split())
            return TOPIC_NORMALIZATIONS.get(key, candidate.phrase)
        # Event phrases are never fuzzy-matched or sent to the knowledge base
        allow_kb = candidate.kind not in (EVENT_PHRASE, None)
        label, resolved = self.canonicalizer.canonical_label(
            candidate.phrase, allow_knowledge_base=allow_kb, event_phrase=is_event_phrase(candidate),
        )
        if resolved.method == METHOD_INVALID:
            return None
        return label

    def _bucket(self, topic_key: str, doc: RawDocument, label: str) -> TopicBucket:
        key = (topic_key, doc.hour)
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = TopicBucket(topic_key=topic_key, hour=doc.hour, label=label)
            self._buckets[key] = bucket
        return bucket

    def add(self, candidate: Candidate, documents: list[RawDocument]) -> str | None:
        """Fold one candidate and its matching documents in. Returns the label used."""
        if not documents:
            return None
        label = self.topic_label(candidate)
        if label is None:
            get_logger("aggregate").debug('Skipping "%s": not a valid entity', candidate.phrase)
            return None
        topic_key = label.lower()
        event_phrase = is_event_phrase(candidate)
        for doc in documents:
            bucket = self._bucket(topic_key, doc, label)
            bucket.add_mention(doc)
            bucket.add_keywords(candidate.keywords)
            bucket.is_event_phrase = bucket.is_event_phrase or event_phrase
            bucket.relevance = max(bucket.relevance, candidate.relevance)
        return label

    def add_matches(self, matches: list) -> dict:
        """Fold a batch's (candidate, documents) pairs. Returns doc id -> labels."""
        topics_by_doc = {}
        for candidate, documents in matches:
            label = self.add(candidate, documents)
            if label is None:
                continue
            for doc in documents:
                labels = topics_by_doc.setdefault(doc.id, [])
                if label not in labels:
                    labels.append(label)
        return topics_by_doc

    @property
    def topic_keys(self) -> set:
        return {key for key, _ in self._buckets}

    def buckets(self) -> list[TopicBucket]:
        """Accumulated buckets with at least one mention, oldest hour first."""
        return sorted(
            (b for b in self._buckets.values() if b.mention_count >= 1),
            key=lambda b: (b.hour, b.topic_key),
        )

    def flush(self, store) -> tuple[list[TopicBucket], int]:
        """Merge every bucket into ``store``. Returns (stored buckets, conflicts given up on).

        StoreUnavailable propagates: losing the store is fatal for the run.
        """
        stored = []
        conflicts = 0
        for bucket in self.buckets():
            try:
                stored.append(store.merge(bucket))
            except PersistenceConflict as e:
                conflicts += 1
                get_logger("aggregate").error("Could not merge topic '%s': %s", bucket.topic_key, e)
        self._buckets.clear()
        return stored, conflicts
