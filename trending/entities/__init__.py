"""Entity canonicalization: alias cache, fuzzy dictionary, knowledge base."""

from .dictionary import CANONICAL_ENTITIES, TOPIC_NORMALIZATIONS, is_valid_entity, normalize_entity
from .knowledge_base import KnowledgeBaseMatch, WikidataClient, classify_description
from .resolver import EntityCanonicalizer

__all__ = [
    "CANONICAL_ENTITIES",
    "TOPIC_NORMALIZATIONS",
    "is_valid_entity",
    "normalize_entity",
    "KnowledgeBaseMatch",
    "WikidataClient",
    "classify_description",
    "EntityCanonicalizer",
]
