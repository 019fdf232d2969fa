"""Heuristic validation of extracted candidates and document matching."""

import re
from dataclasses import dataclass

from ..config import STOPWORDS
from ..log import get_logger
from ..models import EVENT_PHRASE, Candidate, RawDocument

# Verbs that make a phrase describe something happening (Subject + Verb + Object)
ACTION_VERBS = {
    "passes", "pass", "blocks", "block", "rejects", "reject", "approves", "approve",
    "signs", "sign", "fires", "fire", "resigns", "resign", "announces", "announce",
    "launches", "launch", "bans", "ban", "arrests", "arrest", "indicts", "indict",
    "sues", "sue", "votes", "vote", "confirms", "confirm", "nominates", "nominate",
    "withdraws", "withdraw", "expands", "expand", "cuts", "cut", "raises", "raise",
    "drops", "drop", "ends", "end", "starts", "start", "wins", "win", "loses", "lose",
    "threatens", "threaten", "warns", "warn", "demands", "demand", "orders", "order",
    "halts", "halt", "suspends", "suspend", "reverses", "reverse", "overturns", "overturn",
    "strikes", "strike", "attacks", "attack", "invades", "invade", "sanctions", "sanction",
    "targets", "target", "seizes", "seize", "raids", "raid", "collapses", "collapse",
    "denies", "deny", "vetoes", "veto", "introduces", "introduce", "proposes", "propose",
    "faces", "face",
}

EVENT_NOUNS = {
    "ruling", "trial", "hearing", "shooting", "protest", "speech", "summit",
    "crisis", "scandal", "resignation", "nomination", "confirmation", "sanctions",
    "tariffs", "investigation", "indictment", "verdict", "vote", "bill", "ceasefire",
    "bombing", "strike", "raid", "attack", "collapse", "shutdown", "impeachment",
    "acquittal", "conviction", "deportation", "pardon", "veto", "filibuster",
}

# Publishers report the news; they are never the trend themselves
PUBLISHERS = [
    "associated press", "ap news", "reuters", "bbc", "cnn", "fox news", "nbc", "cbs", "abc",
    "washington post", "new york times", "wall street journal", "guardian",
    "al jazeera", "npr", "politico", "the hill", "daily wire", "axios",
    "bloomberg", "cnbc", "the intercept", "mondoweiss", "democracy now",
    "middle east eye", "electronic intifada", "national review",
    "dropsite news", "drop site", "breitbart", "mediaite", "abc news",
    "nbc news", "cbs news",
]

# Category words: a label containing one is a beat, not an event
GENERIC_CATEGORIES = {
    "policy", "policies", "debate", "debates", "administration", "politics",
    "issues", "news", "coverage", "opinion", "analysis", "update", "updates",
}

# Plural / participle lookalikes the suffix heuristic must ignore
_SUFFIX_EXCEPTIONS = {"news", "states", "united", "us", "politics", "series", "species"}

_PUNCT = "!?.,'\"-:;()[]"


@dataclass(frozen=True)
class ValidationRules:
    """Which candidates survive; one instance per extraction profile."""
    min_words: int = 2
    max_words: int = 6
    require_event_signal: bool = True


def clean_words(phrase: str) -> list[str]:
    """Lowercased words with surrounding punctuation and possessives removed."""
    words = []
    for w in phrase.lower().split():
        w = w.strip(_PUNCT)
        if w.endswith("'s"):
            w = w[:-2]
        if w:
            words.append(w)
    return words


def _contains(text: str, term: str) -> bool:
    """Whole-word (or whole-phrase) containment on lowercased text."""
    return re.search(r"(?<![a-z0-9])" + re.escape(term) + r"(?![a-z0-9])", text) is not None


def is_publisher(phrase: str) -> bool:
    cleaned = " ".join(clean_words(phrase))
    if not cleaned:
        return False
    return any(_contains(cleaned, p) or _contains(p, cleaned) for p in PUBLISHERS)


def has_event_signal(words: list[str]) -> bool:
    """Action verb, event noun, or a verb-like suffix on a content word."""
    if any(w in ACTION_VERBS or w in EVENT_NOUNS for w in words):
        return True
    return any(
        len(w) > 3
        and w not in STOPWORDS
        and w not in _SUFFIX_EXCEPTIONS
        and re.search(r"(?:s|ed|ing)$", w)
        for w in words
    )


def is_event_phrase(candidate: Candidate) -> bool:
    if candidate.kind == EVENT_PHRASE:
        return True
    words = clean_words(candidate.phrase)
    return len(words) >= 2 and has_event_signal(words)


def rejection_reason(candidate: Candidate, rules: ValidationRules) -> str | None:
    """Why a candidate is rejected, or None if it passes."""
    phrase = candidate.phrase.strip()
    if not phrase:
        return "empty"
    raw_words = phrase.split()
    words = clean_words(phrase)

    if len(raw_words) < rules.min_words:
        return "single-word entity" if len(raw_words) == 1 else "too few words"
    if len(raw_words) > rules.max_words:
        return f"too many words (>{rules.max_words})"
    if not phrase[0].isupper():
        return "does not start with a capital"
    if is_publisher(phrase):
        return "news source/publisher"
    if all(w in STOPWORDS for w in words):
        return "only common words"
    generic = next((w for w in words if w in GENERIC_CATEGORIES), None)
    if generic:
        return f"generic category word '{generic}'"
    if rules.require_event_signal and candidate.kind != EVENT_PHRASE and not has_event_signal(words):
        return "no action verb/event noun"
    return None


def filter_candidates(candidates: list[Candidate], rules: ValidationRules) -> list[Candidate]:
    """Drop candidates that fail the rules; each rejection is logged at DEBUG."""
    logger = get_logger("extraction")
    kept = []
    for candidate in candidates:
        reason = rejection_reason(candidate, rules)
        if reason:
            logger.debug('Filtered "%s": %s', candidate.phrase, reason)
            continue
        kept.append(candidate)
    logger.debug("Validation: %d extracted -> %d kept", len(candidates), len(kept))
    return kept


def matches_document(candidate: Candidate, doc: RawDocument) -> bool:
    """A document backs a candidate if 2+ keywords or every phrase word occur in it."""
    text = doc.text
    keyword_hits = sum(1 for kw in candidate.keywords if kw.strip() and _contains(text, kw.strip().lower()))
    if keyword_hits >= 2:
        return True
    words = clean_words(candidate.phrase)
    return bool(words) and all(_contains(text, w) for w in words)
