"""Tests for trending/state.py — ExtractionLedger."""

import json

from trending.state import ExtractionLedger

from conftest import make_doc


class TestExtractionLedger:
    def test_empty(self):
        ledger = ExtractionLedger()
        assert ledger.state == {}
        assert not ledger.is_extracted("a1")

    def test_preserves_existing_state(self):
        ledger = ExtractionLedger({"a1": {"status": "done", "topics": ["FBI"]}})
        assert ledger.is_extracted("a1")
        assert ledger.topics_for("a1") == ["FBI"]

    def test_mark_extracted(self):
        ledger = ExtractionLedger()
        ledger.mark_extracted("a1", ["Senate Passes Border Bill"])
        assert ledger.is_extracted("a1")
        assert "timestamp" in ledger.state["a1"]
        assert ledger.topics_for("a1") == ["Senate Passes Border Bill"]

    def test_mark_failed_counts_attempts(self):
        ledger = ExtractionLedger()
        ledger.mark_failed("a1", "timed out")
        ledger.mark_failed("a1", "HTTP 529")
        assert ledger.is_failed("a1")
        assert not ledger.is_extracted("a1")
        assert ledger.state["a1"]["attempts"] == 2
        assert ledger.state["a1"]["error"] == "HTTP 529"

    def test_failed_documents_stay_pending(self):
        ledger = ExtractionLedger()
        ledger.mark_extracted("a1")
        ledger.mark_failed("a2", "boom")
        docs = [make_doc("a1"), make_doc("a2"), make_doc("a3")]
        assert [d.id for d in ledger.pending(docs)] == ["a2", "a3"]

    def test_reset_one(self):
        ledger = ExtractionLedger()
        ledger.mark_extracted("a1")
        ledger.mark_extracted("a2")
        ledger.reset("a1")
        assert not ledger.is_extracted("a1")
        assert ledger.is_extracted("a2")

    def test_reset_all(self):
        ledger = ExtractionLedger()
        ledger.mark_extracted("a1")
        ledger.reset()
        assert ledger.state == {}

    def test_summary(self):
        ledger = ExtractionLedger()
        ledger.mark_extracted("a1")
        ledger.mark_failed("a2", "timed out")
        summary = ledger.summary()
        assert "[+] extracted: 1" in summary
        assert "[!] failed:    1" in summary
        assert "a2: timed out" in summary

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "data" / "ledger.json"
        ledger = ExtractionLedger()
        ledger.mark_extracted("a1", ["FBI"])
        ledger.save(path)

        assert json.loads(path.read_text())["a1"]["status"] == "done"
        assert ExtractionLedger.load(path).topics_for("a1") == ["FBI"]

    def test_load_missing_file(self, tmp_path):
        assert ExtractionLedger.load(tmp_path / "nope.json").state == {}
