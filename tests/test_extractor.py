"""Tests for trending/extraction/extractor.py — batching, timeouts, deadline."""

import threading

from trending.errors import ExtractionCallFailure, ExtractionParseFailure
from trending.extraction.extractor import CandidateExtractor
from trending.models import Candidate

from conftest import FakePort, make_doc


def _docs(n):
    return [make_doc(f"d{i}", body="The Senate passed the border bill.") for i in range(n)]


class TestBatches:
    def test_splits_by_batch_size(self):
        extractor = CandidateExtractor(FakePort(), batch_size=20)
        batches = extractor.batches(_docs(45))
        assert [len(b) for b in batches] == [20, 20, 5]

    def test_process_batch_filters_and_matches(self, border_bill_candidate):
        port = FakePort(candidates=[border_bill_candidate, Candidate("Trump", {"trump"}, 0.5)])
        docs = _docs(3) + [make_doc("other", title="Weather turns cold", body="")]
        result = CandidateExtractor(port).process_batch(0, docs)
        assert result.ok
        assert result.candidates_seen == 2
        assert len(result.matches) == 1
        candidate, matched = result.matches[0]
        assert candidate.phrase == "Senate Passes Border Bill"
        assert [d.id for d in matched] == ["d0", "d1", "d2"]


class TestRun:
    def test_all_batches_processed(self, border_bill_candidate):
        port = FakePort(candidates=[border_bill_candidate])
        outcome = CandidateExtractor(port, batch_size=2, max_workers=3).run(_docs(7))
        assert [r.index for r in outcome.results] == [0, 1, 2, 3]
        assert all(r.ok for r in outcome.results)
        assert outcome.deferred == []
        assert len(port.calls) == 4

    def test_failed_batch_contained(self, border_bill_candidate):
        port = FakePort(
            candidates=[border_bill_candidate],
            fail_ids={"d3"},
            error=ExtractionParseFailure("not json"),
        )
        outcome = CandidateExtractor(port, batch_size=2).run(_docs(6))
        failed = outcome.failed
        assert len(failed) == 1
        assert failed[0].index == 1
        assert isinstance(failed[0].error, ExtractionParseFailure)
        assert failed[0].matches == []
        assert sum(1 for r in outcome.results if r.ok) == 2

    def test_unexpected_exception_contained(self):
        def explode(documents):
            raise KeyError("boom")

        outcome = CandidateExtractor(FakePort(on_call=explode), batch_size=5).run(_docs(5))
        assert isinstance(outcome.results[0].error, KeyError)

    def test_on_result_called_per_batch(self, border_bill_candidate):
        seen = []
        CandidateExtractor(FakePort(candidates=[border_bill_candidate]), batch_size=3).run(
            _docs(9), on_result=lambda r: seen.append(r.index)
        )
        assert sorted(seen) == [0, 1, 2]

    def test_slow_call_times_out(self, border_bill_candidate):
        release = threading.Event()

        def stall(documents):
            if documents[0].id == "d2":
                release.wait(5)

        port = FakePort(candidates=[border_bill_candidate], on_call=stall)
        try:
            outcome = CandidateExtractor(port, batch_size=2, call_timeout=0.2).run(_docs(4))
        finally:
            release.set()
        assert outcome.results[0].ok
        assert isinstance(outcome.results[1].error, ExtractionCallFailure)
        assert "timed out" in str(outcome.results[1].error)

    def test_deadline_stops_new_submissions(self, border_bill_candidate):
        now = [0.0]

        def advance(documents):
            now[0] += 50.0

        port = FakePort(candidates=[border_bill_candidate], on_call=advance)
        extractor = CandidateExtractor(
            port, batch_size=1, max_workers=1, call_timeout=1000.0,
            deadline_seconds=45.0, deadline_margin=5.0, clock=lambda: now[0],
        )
        outcome = extractor.run(_docs(3))
        assert len(outcome.results) == 1
        assert [d.id for d in outcome.deferred] == ["d1", "d2"]
        assert len(port.calls) == 1

    def test_empty_input(self):
        outcome = CandidateExtractor(FakePort()).run([])
        assert outcome.results == []
        assert outcome.deferred == []
