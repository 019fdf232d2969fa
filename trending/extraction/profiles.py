"""Extraction profiles: prompt template + validation rules, selected by config."""

from dataclasses import dataclass

from .rules import ValidationRules

EVENT_SYSTEM_PROMPT = (
    "You extract verb-centered event phrases (primary) and proper noun entities "
    "(secondary) from news headlines. Event phrases describe WHAT HAPPENED with "
    "Subject + Verb + Object structure. Entities are metadata. Always respond with "
    "valid JSON arrays."
)

EVENT_INSTRUCTIONS = """Extract EVENT PHRASES (primary) and named entities (secondary) from these headlines for trending topics.

{articles}

For EACH headline, extract in ORDER OF PRIORITY:

1. EVENT PHRASES (PRIMARY - these become the trend labels):
   Multi-word verb-centered phrases (2-6 words) that describe WHAT is happening:
   - GOOD: "House Passes Border Bill", "Trump Fires FBI Director", "Gaza Ceasefire Collapses"
   - BAD: Just names like "Donald Trump", "FBI", "Gaza" (these are entities, not events)
   REQUIRE: Subject + Verb + Object pattern when possible.
   Mark these with type: "event_phrase"

2. ENTITIES (SECONDARY - metadata, not primary labels):
   - PERSON: Full canonical names ("Donald Trump", NOT "Trump")
   - ORG: Organizations ("Supreme Court", "FBI", "Democratic Party")
   - GPE: Locations ("Gaza", "Texas", "Washington DC")
   Mark these with type: "person", "org" or "location"

RULES:
- Prioritize event phrases over single entities
- DO NOT include news publishers (CNN, Reuters, AP, BBC)
- DO NOT extract categories ("immigration", "politics", "healthcare")
- Each headline should ideally produce at least ONE event phrase

Return a JSON array:
[{{"topic": "Trump Fires FBI Director", "keywords": ["trump", "fbi", "fired"], "relevance": 0.95, "type": "event_phrase"}},
 {{"topic": "FBI", "keywords": ["fbi", "director"], "relevance": 0.7, "type": "org"}}]"""

ENTITY_SYSTEM_PROMPT = (
    "You extract named entities (people, organizations, locations) from news "
    "headlines. Always respond with valid JSON arrays."
)

ENTITY_INSTRUCTIONS = """Extract the named entities discussed in these headlines.

{articles}

- PERSON: Full canonical names ("Donald Trump", NOT "Trump")
- ORG: Organizations, well-known acronyms allowed ("NATO", "FBI")
- LOCATION: Countries, cities, regions
- DO NOT include news publishers or generic categories

Return a JSON array:
[{{"topic": "FBI", "keywords": ["fbi", "director"], "relevance": 0.7, "type": "org"}}]"""


@dataclass(frozen=True)
class ExtractionProfile:
    name: str
    system_prompt: str
    instructions: str  # must contain "{articles}"
    rules: ValidationRules

    def render(self, articles_text: str) -> str:
        return self.instructions.format(articles=articles_text)


PROFILES = {
    "event": ExtractionProfile(
        name="event",
        system_prompt=EVENT_SYSTEM_PROMPT,
        instructions=EVENT_INSTRUCTIONS,
        rules=ValidationRules(min_words=2, max_words=6, require_event_signal=True),
    ),
    "entity": ExtractionProfile(
        name="entity",
        system_prompt=ENTITY_SYSTEM_PROMPT,
        instructions=ENTITY_INSTRUCTIONS,
        rules=ValidationRules(min_words=1, max_words=6, require_event_signal=False),
    ),
}


def get_profile(name: str) -> ExtractionProfile:
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown extraction profile '{name}' (choose from {', '.join(PROFILES)})")
