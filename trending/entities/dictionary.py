"""Curated canonical entities, static topic normalizations, and input normalization."""

import re

from ..models import ENTITY_LOCATION, ENTITY_ORGANIZATION, ENTITY_PERSON

CANONICAL_ENTITIES = [
    {"name": "Donald Trump", "type": ENTITY_PERSON, "aliases": ["trump", "president trump", "donald j trump"]},
    {"name": "Joe Biden", "type": ENTITY_PERSON, "aliases": ["biden", "president biden", "joseph biden"]},
    {"name": "Elon Musk", "type": ENTITY_PERSON, "aliases": ["musk"]},
    {"name": "Vladimir Putin", "type": ENTITY_PERSON, "aliases": ["putin"]},
    {"name": "Volodymyr Zelensky", "type": ENTITY_PERSON, "aliases": ["zelensky", "zelenskyy"]},
    {"name": "Benjamin Netanyahu", "type": ENTITY_PERSON, "aliases": ["netanyahu", "bibi"]},
    {"name": "Pete Hegseth", "type": ENTITY_PERSON, "aliases": ["hegseth"]},
    {"name": "Ron DeSantis", "type": ENTITY_PERSON, "aliases": ["desantis"]},
    {"name": "Gavin Newsom", "type": ENTITY_PERSON, "aliases": ["newsom"]},
    {"name": "Nancy Pelosi", "type": ENTITY_PERSON, "aliases": ["pelosi"]},
    {"name": "Mitch McConnell", "type": ENTITY_PERSON, "aliases": ["mcconnell"]},
    {"name": "Alexandria Ocasio-Cortez", "type": ENTITY_PERSON, "aliases": ["aoc", "ocasio cortez"]},
    {"name": "Kamala Harris", "type": ENTITY_PERSON, "aliases": ["harris", "vp harris"]},
    {"name": "Mike Pence", "type": ENTITY_PERSON, "aliases": ["pence"]},
    {"name": "Merrick Garland", "type": ENTITY_PERSON, "aliases": ["garland"]},
    {"name": "Supreme Court", "type": ENTITY_ORGANIZATION, "aliases": ["scotus"]},
    {"name": "FBI", "type": ENTITY_ORGANIZATION, "aliases": ["federal bureau of investigation"]},
    {"name": "CIA", "type": ENTITY_ORGANIZATION, "aliases": ["central intelligence agency"]},
    {"name": "Department of Justice", "type": ENTITY_ORGANIZATION, "aliases": ["doj", "justice department"]},
    {"name": "ICE", "type": ENTITY_ORGANIZATION, "aliases": ["immigration and customs enforcement"]},
    {"name": "EPA", "type": ENTITY_ORGANIZATION, "aliases": ["environmental protection agency"]},
    {"name": "DHS", "type": ENTITY_ORGANIZATION, "aliases": ["department of homeland security", "homeland security"]},
    {"name": "Republican Party", "type": ENTITY_ORGANIZATION, "aliases": ["gop", "republicans", "republican"]},
    {"name": "Democratic Party", "type": ENTITY_ORGANIZATION, "aliases": ["democrats", "democrat", "dems"]},
    {"name": "White House", "type": ENTITY_ORGANIZATION, "aliases": ["whitehouse"]},
    {"name": "Congress", "type": ENTITY_ORGANIZATION, "aliases": ["us congress"]},
    {"name": "Senate", "type": ENTITY_ORGANIZATION, "aliases": ["us senate"]},
    {"name": "House of Representatives", "type": ENTITY_ORGANIZATION, "aliases": ["us house"]},
    {"name": "Pentagon", "type": ENTITY_ORGANIZATION, "aliases": ["department of defense", "dod"]},
    {"name": "State Department", "type": ENTITY_ORGANIZATION, "aliases": ["department of state"]},
    {"name": "Federal Reserve", "type": ENTITY_ORGANIZATION, "aliases": ["the fed"]},
    {"name": "NATO", "type": ENTITY_ORGANIZATION, "aliases": ["north atlantic treaty organization"]},
    {"name": "United Nations", "type": ENTITY_ORGANIZATION, "aliases": []},
    {"name": "European Union", "type": ENTITY_ORGANIZATION, "aliases": []},
    {"name": "United States", "type": ENTITY_LOCATION, "aliases": ["usa", "united states of america"]},
    {"name": "China", "type": ENTITY_LOCATION, "aliases": ["prc", "peoples republic of china"]},
    {"name": "Russia", "type": ENTITY_LOCATION, "aliases": ["russian federation"]},
    {"name": "Ukraine", "type": ENTITY_LOCATION, "aliases": []},
    {"name": "Israel", "type": ENTITY_LOCATION, "aliases": []},
    {"name": "Gaza", "type": ENTITY_LOCATION, "aliases": ["gaza strip"]},
    {"name": "West Bank", "type": ENTITY_LOCATION, "aliases": []},
    {"name": "Iran", "type": ENTITY_LOCATION, "aliases": ["islamic republic of iran"]},
    {"name": "North Korea", "type": ENTITY_LOCATION, "aliases": ["dprk"]},
    {"name": "Taiwan", "type": ENTITY_LOCATION, "aliases": []},
    {"name": "Washington DC", "type": ENTITY_LOCATION, "aliases": ["washington", "dc"]},
    {"name": "New York City", "type": ENTITY_LOCATION, "aliases": ["nyc"]},
]

# Exact-match fallback used when neither the alias cache nor fuzzy matching resolved a topic.
# Two-letter acronyms live here because they are too short to fuzz safely.
TOPIC_NORMALIZATIONS = {
    "donald trump": "Donald Trump",
    "trump": "Donald Trump",
    "president trump": "Donald Trump",
    "joe biden": "Joe Biden",
    "biden": "Joe Biden",
    "president biden": "Joe Biden",
    "netanyahu": "Benjamin Netanyahu",
    "benjamin netanyahu": "Benjamin Netanyahu",
    "gaza strip": "Gaza",
    "un": "United Nations",
    "united nations": "United Nations",
    "eu": "European Union",
    "immigration and customs enforcement": "ICE",
    "environmental protection agency": "EPA",
    "federal bureau of investigation": "FBI",
    "central intelligence agency": "CIA",
    "us": "United States",
    "usa": "United States",
    "united states": "United States",
    "nyc": "New York City",
    "new york city": "New York City",
    "dc": "Washington DC",
    "washington dc": "Washington DC",
}

GENERIC_WORDS = {
    "the", "a", "an", "this", "that", "these", "those",
    "news", "breaking", "update", "alert", "report",
    "today", "yesterday", "tomorrow", "now", "just",
    "says", "said", "according", "sources", "reports",
    "people", "man", "woman", "person", "group",
    "new", "old", "big", "small", "good", "bad",
    "first", "last", "next", "previous",
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
}


def normalize_entity(text: str) -> str:
    """Lowercase, trim, strip a leading '#', turn '_' and '-' into spaces."""
    normalized = text.lower().strip()
    if normalized.startswith("#"):
        normalized = normalized[1:]
    normalized = re.sub(r"[_-]", " ", normalized)
    return " ".join(normalized.split())


def is_valid_entity(text: str) -> bool:
    normalized = normalize_entity(text)
    if len(normalized) < 2:
        return False
    if normalized in GENERIC_WORDS:
        return False
    if normalized.replace(" ", "").isdigit():
        return False
    return True


def search_terms() -> list[tuple[str, str, str]]:
    """(search_term, canonical_name, entity_type) for every name and alias."""
    terms = []
    for entity in CANONICAL_ENTITIES:
        terms.append((normalize_entity(entity["name"]), entity["name"], entity["type"]))
        for alias in entity["aliases"]:
            terms.append((normalize_entity(alias), entity["name"], entity["type"]))
    return terms
