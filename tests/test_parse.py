"""Tests for trending/extraction/parse.py — response parsing."""

import pytest

from trending.errors import ExtractionParseFailure
from trending.extraction.parse import parse_candidates, strip_code_fences


class TestStripCodeFences:
    def test_json_fence(self):
        assert strip_code_fences('```json\n[{"topic": "X"}]\n```') == '[{"topic": "X"}]'

    def test_plain_text_untouched(self):
        assert strip_code_fences("[1, 2]") == "[1, 2]"


class TestParseCandidates:
    def test_array(self):
        raw = """[
            {"topic": "Senate Passes Border Bill", "keywords": ["Senate", "border"], "relevance": 0.9, "type": "event_phrase"},
            {"topic": "FBI", "keywords": ["fbi"], "relevance": 0.6, "type": "organization"}
        ]"""
        candidates = parse_candidates(raw)
        assert [c.phrase for c in candidates] == ["Senate Passes Border Bill", "FBI"]
        assert candidates[0].keywords == {"senate", "border"}
        assert candidates[0].kind == "event_phrase"
        assert candidates[1].kind == "org"

    def test_fenced_array(self):
        raw = '```json\n[{"topic": "House Rejects Tax Cut", "relevance": 0.7}]\n```'
        assert parse_candidates(raw)[0].phrase == "House Rejects Tax Cut"

    def test_wrapped_object(self):
        raw = '{"topics": [{"topic": "Gaza Ceasefire Collapses"}]}'
        assert len(parse_candidates(raw)) == 1

    def test_single_object(self):
        raw = '{"topic": "Trump Fires FBI Director", "keywords": ["trump", "fbi"]}'
        candidates = parse_candidates(raw)
        assert candidates[0].phrase == "Trump Fires FBI Director"

    def test_missing_keywords_derived_from_phrase(self):
        candidates = parse_candidates('[{"topic": "Supreme Court Blocks Tariffs"}]')
        assert candidates[0].keywords == {"supreme", "court", "blocks", "tariffs"}

    def test_relevance_clamped(self):
        candidates = parse_candidates('[{"topic": "A B", "relevance": 7}, {"topic": "C D", "relevance": "high"}]')
        assert candidates[0].relevance == 1.0
        assert candidates[1].relevance == 0.0

    def test_unknown_type_is_untagged(self):
        assert parse_candidates('[{"topic": "A B", "type": "vibe"}]')[0].kind is None

    def test_drops_malformed_items(self):
        raw = '[{"topic": "Senate Votes"}, "stray string", {"keywords": ["x"]}, {"topic": 42}]'
        assert [c.phrase for c in parse_candidates(raw)] == ["Senate Votes"]

    def test_invalid_json_raises(self):
        with pytest.raises(ExtractionParseFailure):
            parse_candidates("Here are the topics: Senate, House")

    def test_empty_raises(self):
        with pytest.raises(ExtractionParseFailure):
            parse_candidates("   ")

    def test_object_without_candidates_raises(self):
        with pytest.raises(ExtractionParseFailure):
            parse_candidates('{"status": "ok"}')

    def test_scalar_raises(self):
        with pytest.raises(ExtractionParseFailure):
            parse_candidates("42")
