"""Candidate extraction: prompt-driven phrase/entity extraction + heuristic filtering."""

from .base import TopicExtractionPort
from .claude import ClaudeExtractionPort
from .extractor import BatchResult, CandidateExtractor, ExtractionOutcome
from .parse import parse_candidates
from .profiles import PROFILES, ExtractionProfile, get_profile
from .rules import ValidationRules, filter_candidates, matches_document

__all__ = [
    "TopicExtractionPort",
    "ClaudeExtractionPort",
    "BatchResult",
    "CandidateExtractor",
    "ExtractionOutcome",
    "parse_candidates",
    "PROFILES",
    "ExtractionProfile",
    "get_profile",
    "ValidationRules",
    "filter_candidates",
    "matches_document",
]
