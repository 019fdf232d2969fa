"""Wikidata entity search, a best-effort external knowledge base."""

from dataclasses import dataclass

import requests

from ..errors import ResolutionLookupFailure
from ..models import ENTITY_LOCATION, ENTITY_ORGANIZATION, ENTITY_PERSON, ENTITY_UNKNOWN

WIKIDATA_API = "https://www.wikidata.org/w/api.php"

# Description keywords per entity type, checked in this order
TYPE_KEYWORDS = [
    (ENTITY_PERSON, ("politician", "president", "senator", "person")),
    (ENTITY_ORGANIZATION, ("organization", "organisation", "agency", "party", "company")),
    (ENTITY_LOCATION, ("country", "city", "state", "region")),
]


@dataclass
class KnowledgeBaseMatch:
    label: str
    description: str = ""
    id: str = ""

    @property
    def entity_type(self) -> str:
        return classify_description(self.description)


def classify_description(description: str) -> str:
    text = (description or "").lower()
    for entity_type, keywords in TYPE_KEYWORDS:
        if any(k in text for k in keywords):
            return entity_type
    return ENTITY_UNKNOWN


class WikidataClient:
    """Looks up a free-text name with ``wbsearchentities`` and returns the top hit."""

    name = "wikidata"

    def __init__(self, timeout: float = 10.0, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "trending-topics/1.0 (entity-resolver)"})

    def lookup(self, name: str) -> KnowledgeBaseMatch | None:
        """Best match for ``name``, None if Wikidata has none.

        Raises ResolutionLookupFailure when Wikidata cannot be reached.
        """
        params = {
            "action": "wbsearchentities",
            "search": name,
            "language": "en",
            "format": "json",
            "limit": 3,
            "type": "item",
        }
        try:
            r = self.session.get(WIKIDATA_API, params=params, timeout=self.timeout)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise ResolutionLookupFailure(f"Wikidata lookup failed for {name!r}: {e}") from e

        results = data.get("search") or []
        if not results:
            return None
        top = results[0]
        return KnowledgeBaseMatch(
            label=top.get("label") or name,
            description=top.get("description", ""),
            id=top.get("id", ""),
        )
