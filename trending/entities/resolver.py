"""EntityCanonicalizer: alias cache, then fuzzy dictionary, then knowledge base, then passthrough.

The first method that resolves wins. Every successful cache, fuzzy or
knowledge-base resolution is written back to the alias store through the
background task set, so the caller never waits on the write.
"""

import threading
import time

from rapidfuzz import fuzz, process

from ..errors import ResolutionLookupFailure
from ..log import get_logger
from ..models import (
    ENTITY_INVALID,
    ENTITY_UNKNOWN,
    METHOD_CACHE,
    METHOD_FUZZY,
    METHOD_INVALID,
    METHOD_KNOWLEDGE_BASE,
    METHOD_PASSTHROUGH,
    RESOLUTION_PRECEDENCE,
    EntityAlias,
    ResolvedEntity,
)
from ..store import AliasStore
from .dictionary import TOPIC_NORMALIZATIONS, is_valid_entity, normalize_entity, search_terms

KNOWLEDGE_BASE_CONFIDENCE = 0.85
PASSTHROUGH_CONFIDENCE = 0.5
MIN_FUZZY_LENGTH = 3

RESOLVED_METHODS = (METHOD_CACHE, METHOD_FUZZY, METHOD_KNOWLEDGE_BASE)


class EntityCanonicalizer:
    def __init__(
        self,
        alias_store: AliasStore,
        tasks=None,
        knowledge_base=None,
        use_knowledge_base: bool = False,
        kb_limit: int = 10,
        kb_delay: float = 0.1,
        fuzzy_threshold: float = 0.3,
    ):
        self.alias_store = alias_store
        self.tasks = tasks
        self.knowledge_base = knowledge_base
        self.use_knowledge_base = use_knowledge_base and knowledge_base is not None
        self.kb_limit = kb_limit
        self.kb_delay = kb_delay
        self.fuzzy_threshold = fuzzy_threshold

        self._terms = search_terms()
        self._choices = [t[0] for t in self._terms]
        self._kb_lock = threading.Lock()
        self._kb_used = 0
        self._last_kb_call = None

    def reset_run(self):
        """Restore the per-run knowledge-base budget."""
        with self._kb_lock:
            self._kb_used = 0

    # ── write-back ────────────────────────────────────

    def _write_back(self, description: str, fn, *args):
        if self.tasks is not None:
            self.tasks.submit(description, fn, *args)
            return
        try:
            fn(*args)
        except Exception as e:
            get_logger("entities").error("Alias cache write failed (%s): %s", description, e)

    def _cache(self, normalized: str, resolved: ResolvedEntity):
        alias = EntityAlias(
            raw_name=normalized,
            canonical_name=resolved.canonical,
            entity_type=resolved.entity_type,
            resolution_method=resolved.method,
            confidence_score=resolved.confidence,
            usage_count=1,
        )
        self._write_back(f"cache {resolved.method} '{normalized}'", self.alias_store.upsert, alias)

    # ── resolution steps ──────────────────────────────

    def _from_cache(self, original: str, normalized: str) -> ResolvedEntity | None:
        cached = self.alias_store.lookup(normalized)
        if cached is None:
            return None
        self._write_back(f"usage '{normalized}'", self.alias_store.increment_usage, normalized)
        return ResolvedEntity(
            original=original,
            canonical=cached.canonical_name,
            entity_type=cached.entity_type,
            method=METHOD_CACHE,
            confidence=cached.confidence_score,
        )

    def _from_fuzzy(self, original: str, normalized: str) -> ResolvedEntity | None:
        if len(normalized) < MIN_FUZZY_LENGTH:
            return None
        best = process.extractOne(normalized, self._choices, scorer=fuzz.ratio)
        if best is None:
            return None
        _, similarity, index = best
        distance = 1 - similarity / 100
        if distance >= self.fuzzy_threshold:
            return None
        _, canonical, entity_type = self._terms[index]
        resolved = ResolvedEntity(
            original=original,
            canonical=canonical,
            entity_type=entity_type,
            method=METHOD_FUZZY,
            confidence=round(1 - distance, 4),
        )
        self._cache(normalized, resolved)
        return resolved

    def _from_knowledge_base(self, original: str, normalized: str) -> ResolvedEntity | None:
        # Serialized, rate-limited, and capped per run
        with self._kb_lock:
            if self._kb_used >= self.kb_limit:
                return None
            self._kb_used += 1
            if self._last_kb_call is not None:
                remaining = self.kb_delay - (time.monotonic() - self._last_kb_call)
                if remaining > 0:
                    time.sleep(remaining)
            try:
                match = self.knowledge_base.lookup(normalized)
            except ResolutionLookupFailure as e:
                get_logger("entities").warning("Knowledge base unavailable for '%s': %s", original, e)
                return None
            finally:
                self._last_kb_call = time.monotonic()

        if match is None:
            return None
        resolved = ResolvedEntity(
            original=original,
            canonical=match.label,
            entity_type=match.entity_type,
            method=METHOD_KNOWLEDGE_BASE,
            confidence=KNOWLEDGE_BASE_CONFIDENCE,
        )
        self._cache(normalized, resolved)
        return resolved

    # ── public API ────────────────────────────────────

    def resolve(self, text: str, allow_knowledge_base: bool = True, allow_fuzzy: bool = True) -> ResolvedEntity:
        if not is_valid_entity(text):
            return ResolvedEntity(
                original=text, canonical=text, entity_type=ENTITY_INVALID,
                method=METHOD_INVALID, confidence=0.0,
            )
        normalized = normalize_entity(text)

        resolved = self._from_cache(text, normalized)
        if resolved is None and allow_fuzzy:
            resolved = self._from_fuzzy(text, normalized)
        if resolved is None and self.use_knowledge_base and allow_knowledge_base:
            resolved = self._from_knowledge_base(text, normalized)
        if resolved is not None:
            return resolved

        return ResolvedEntity(
            original=text, canonical=text, entity_type=ENTITY_UNKNOWN,
            method=METHOD_PASSTHROUGH, confidence=PASSTHROUGH_CONFIDENCE,
        )

    def resolve_many(self, entities: list[str]) -> tuple[list[ResolvedEntity], dict]:
        """Resolve a list of mentions; returns results plus a count per method."""
        results = [self.resolve(e) for e in entities]
        stats = {"total": len(results)}
        for method in RESOLUTION_PRECEDENCE + (METHOD_INVALID,):
            stats[method] = sum(1 for r in results if r.method == method)
        get_logger("entities").debug("Resolution complete: %s", stats)
        return results, stats

    def canonical_label(
        self, phrase: str, allow_knowledge_base: bool = False, event_phrase: bool = False
    ) -> tuple[str, ResolvedEntity]:
        """Label a topic is aggregated under: resolved canonical, static table, or itself.

        Event phrases only take an existing alias or the static table, never a
        fuzzy or knowledge-base match, so "Senate Vote" stays "Senate Vote".
        """
        resolved = self.resolve(
            phrase,
            allow_knowledge_base=allow_knowledge_base and not event_phrase,
            allow_fuzzy=not event_phrase,
        )
        if resolved.method in RESOLVED_METHODS:
            return resolved.canonical, resolved
        key = " ".join(phrase.lower().split())
        return TOPIC_NORMALIZATIONS.get(key, phrase), resolved
