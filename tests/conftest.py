"""Shared test fixtures."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from trending.errors import ExtractionCallFailure
from trending.extraction.base import TopicExtractionPort
from trending.models import Candidate, RawDocument
from trending.state import ExtractionLedger
from trending.store import MemoryAliasStore, MemoryTrendStore

BASE_TIME = datetime(2026, 10, 18, 14, 0, tzinfo=timezone.utc)


class FakePort(TopicExtractionPort):
    """Returns canned candidates; fails for batches containing ``fail_ids``."""

    name = "fake"

    def __init__(self, candidates=None, fail_ids=(), error=None, on_call=None):
        self.candidates = candidates or []
        self.fail_ids = set(fail_ids)
        self.error = error or ExtractionCallFailure("backend down")
        self.on_call = on_call
        self.calls = []
        self._lock = threading.Lock()

    def extract(self, documents):
        with self._lock:
            self.calls.append([d.id for d in documents])
        if self.on_call is not None:
            self.on_call(documents)
        if any(d.id in self.fail_ids for d in documents):
            raise self.error
        return [Candidate(c.phrase, set(c.keywords), c.relevance, c.kind) for c in self.candidates]


def make_doc(doc_id, title="Senate Passes Border Bill", body="", minutes=0, source="", **kwargs):
    return RawDocument(
        id=doc_id,
        title=title,
        body=body,
        published_at=BASE_TIME + timedelta(minutes=minutes),
        source=source,
        **kwargs,
    )


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def border_bill_documents():
    """Ten articles about the same event within one hour, from three outlets."""
    outlets = ["Reuters", "Associated Press", "Politico"]
    return [
        make_doc(
            f"a{i}",
            title=f"Senate passes border bill after marathon session, report {i}",
            body="The Senate passed the border security bill late on Friday by a narrow margin.",
            minutes=i * 5,
            source=outlets[i % 3],
            sentiment_score=0.4,
            sentiment_label="neutral",
        )
        for i in range(10)
    ]


@pytest.fixture
def border_bill_candidate():
    return Candidate(
        phrase="Senate Passes Border Bill",
        keywords={"senate", "border", "bill"},
        relevance=0.9,
        kind="event_phrase",
    )


@pytest.fixture
def alias_store():
    return MemoryAliasStore()


@pytest.fixture
def trend_store():
    return MemoryTrendStore()


@pytest.fixture
def ledger():
    return ExtractionLedger()
