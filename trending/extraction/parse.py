"""Parse text-understanding responses into Candidates."""

import json
import re

from ..config import extract_keywords
from ..errors import ExtractionParseFailure
from ..models import EVENT_PHRASE, KINDS, LOCATION, ORG, PERSON, Candidate

_FENCE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

_KIND_ALIASES = {
    "event": EVENT_PHRASE,
    "organization": ORG,
    "organisation": ORG,
    "gpe": LOCATION,
    "place": LOCATION,
    "people": PERSON,
}


def strip_code_fences(raw: str) -> str:
    return _FENCE.sub("", raw).strip()


def _normalize_kind(value) -> str | None:
    if not isinstance(value, str):
        return None
    kind = value.strip().lower().replace("-", "_").replace(" ", "_")
    kind = _KIND_ALIASES.get(kind, kind)
    return kind if kind in KINDS else None


def _to_candidate(item) -> Candidate | None:
    if not isinstance(item, dict):
        return None
    phrase = item.get("topic") or item.get("phrase")
    if not isinstance(phrase, str) or not phrase.strip():
        return None
    phrase = " ".join(phrase.split())

    keywords = item.get("keywords") or []
    if isinstance(keywords, str):
        keywords = [keywords]
    keywords = {str(k).strip().lower() for k in keywords if str(k).strip()}
    if not keywords:
        keywords = set(extract_keywords(phrase))

    try:
        relevance = float(item.get("relevance", 0.0))
    except (TypeError, ValueError):
        relevance = 0.0

    return Candidate(
        phrase=phrase,
        keywords=keywords,
        relevance=min(1.0, max(0.0, relevance)),
        kind=_normalize_kind(item.get("type")),
    )


def parse_candidates(raw: str) -> list[Candidate]:
    """JSON array of candidates, an object wrapping one, or a single candidate object.

    Raises ExtractionParseFailure for anything else.
    """
    if not raw or not raw.strip():
        raise ExtractionParseFailure("empty response")
    cleaned = strip_code_fences(raw)
    try:
        parsed = json.loads(cleaned)
    except ValueError as e:
        raise ExtractionParseFailure(f"invalid JSON: {e}; raw: {cleaned[:200]!r}") from e

    if isinstance(parsed, dict):
        wrapped = parsed.get("topics", parsed.get("candidates"))
        if isinstance(wrapped, list):
            parsed = wrapped
        elif "topic" in parsed or "phrase" in parsed:
            parsed = [parsed]
        else:
            raise ExtractionParseFailure(f"object without candidates: {cleaned[:200]!r}")
    if not isinstance(parsed, list):
        raise ExtractionParseFailure(f"expected a JSON array, got {type(parsed).__name__}")

    return [c for c in (_to_candidate(item) for item in parsed) if c is not None]
