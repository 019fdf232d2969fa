"""Tests for trending/entities/knowledge_base.py — Wikidata client."""

from unittest.mock import MagicMock

import pytest
import requests

from trending.entities.knowledge_base import WikidataClient, classify_description
from trending.errors import ResolutionLookupFailure


def _session(payload=None, error=None):
    session = MagicMock()
    session.headers = {}
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        session.get.return_value = response
    return session


class TestClassifyDescription:
    @pytest.mark.parametrize("description, expected", [
        ("45th president of the United States", "person"),
        ("United States federal law enforcement agency", "organization"),
        ("country in Eastern Europe", "location"),
        ("species of bird", "unknown"),
        ("", "unknown"),
    ])
    def test_buckets(self, description, expected):
        assert classify_description(description) == expected


class TestWikidataClient:
    def test_top_result(self):
        session = _session({"search": [
            {"id": "Q22686", "label": "Donald Trump", "description": "president of the United States"},
            {"id": "Q1", "label": "Other", "description": ""},
        ]})
        match = WikidataClient(session=session).lookup("trump")
        assert match.label == "Donald Trump"
        assert match.id == "Q22686"
        assert match.entity_type == "person"

        params = session.get.call_args.kwargs["params"]
        assert params["action"] == "wbsearchentities"
        assert params["search"] == "trump"

    def test_no_results(self):
        assert WikidataClient(session=_session({"search": []})).lookup("zzzz") is None

    def test_network_error_raises(self):
        session = _session(error=requests.ConnectionError("down"))
        with pytest.raises(ResolutionLookupFailure):
            WikidataClient(session=session).lookup("trump")

    def test_bad_json_raises(self):
        session = _session()
        session.get.return_value.json.side_effect = ValueError("no json")
        with pytest.raises(ResolutionLookupFailure):
            WikidataClient(session=session).lookup("trump")
