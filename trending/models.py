"""Records shared across the extraction, resolution, aggregation and audit stages."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone

# Candidate kinds
EVENT_PHRASE = "event_phrase"
PERSON = "person"
ORG = "org"
LOCATION = "location"
KINDS = (EVENT_PHRASE, PERSON, ORG, LOCATION)

# Entity types produced by the canonicalizer
ENTITY_PERSON = "person"
ENTITY_ORGANIZATION = "organization"
ENTITY_LOCATION = "location"
ENTITY_UNKNOWN = "unknown"
ENTITY_INVALID = "invalid"

# Resolution methods, highest precedence first
METHOD_CACHE = "cache"
METHOD_FUZZY = "fuzzy"
METHOD_KNOWLEDGE_BASE = "knowledge_base"
METHOD_PASSTHROUGH = "passthrough"
METHOD_INVALID = "invalid"
RESOLUTION_PRECEDENCE = (METHOD_CACHE, METHOD_FUZZY, METHOD_KNOWLEDGE_BASE, METHOD_PASSTHROUGH)

# Audit statuses
PASS = "pass"
WARN = "warning"
FAIL = "fail"

SENTIMENT_LABELS = ("positive", "neutral", "negative")
DEFAULT_SENTIMENT_SCORE = 0.5
DEFAULT_SENTIMENT_LABEL = "neutral"

MAX_SAMPLE_IDS = 20
MAX_SAMPLE_TITLES = 5
MAX_KEYWORDS = 10

HOUR = timedelta(hours=1)


def truncate_to_hour(ts: datetime) -> datetime:
    """UTC hour bucket for a timestamp; naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    else:
        ts = ts.astimezone(timezone.utc)
    return ts.replace(minute=0, second=0, microsecond=0)


def parse_timestamp(value: str) -> datetime:
    """ISO-8601 string (``Z`` suffix allowed) to an aware datetime."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class RawDocument:
    """An ingested article or post. Immutable once ingested."""
    id: str
    title: str
    body: str = ""
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sentiment_score: float | None = None
    sentiment_label: str | None = None
    source: str = ""  # publisher name, e.g. "Reuters"

    @property
    def text(self) -> str:
        return f"{self.title} {self.body}".lower()

    @property
    def hour(self) -> datetime:
        return truncate_to_hour(self.published_at)

    @classmethod
    def from_dict(cls, data: dict) -> "RawDocument":
        published = data.get("published_at") or data.get("publishedAt")
        if isinstance(published, str):
            published = parse_timestamp(published)
        elif published is None:
            published = datetime.now(timezone.utc)
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            body=data.get("body") or data.get("description") or data.get("content") or "",
            published_at=published,
            sentiment_score=data.get("sentiment_score", data.get("sentimentScore")),
            sentiment_label=data.get("sentiment_label", data.get("sentimentLabel")),
            source=data.get("source") or data.get("source_name") or "",
        )


@dataclass
class Candidate:
    """A phrase or entity proposed by the extractor. Never persisted."""
    phrase: str
    keywords: set = field(default_factory=set)
    relevance: float = 0.0
    kind: str | None = None  # one of KINDS, None when the extractor did not tag it

    @property
    def words(self) -> list[str]:
        return self.phrase.split()


@dataclass
class EntityAlias:
    """Cached resolution keyed by the normalized raw name."""
    raw_name: str
    canonical_name: str
    entity_type: str
    resolution_method: str
    confidence_score: float
    usage_count: int = 0

    def __post_init__(self):
        self.confidence_score = min(1.0, max(0.0, float(self.confidence_score)))

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "EntityAlias":
        return cls(**data)


@dataclass
class ResolvedEntity:
    original: str
    canonical: str
    entity_type: str
    method: str
    confidence: float


@dataclass
class TopicBucket:
    """Per-topic, per-hour accumulator and persisted trend record.

    ``article_sentiments`` holds every counted article id, so merging two
    buckets never counts the same document twice. Sample lists keep the
    first arrivals.
    """
    topic_key: str
    hour: datetime
    label: str = ""
    sample_article_ids: list = field(default_factory=list)
    sample_titles: list = field(default_factory=list)
    keywords: list = field(default_factory=list)
    sources: list = field(default_factory=list)
    article_sentiments: dict = field(default_factory=dict)  # id -> [score, label]
    is_event_phrase: bool = False
    relevance: float = 0.0
    velocity_score: float = 0.0
    momentum_score: float = 0.0
    version: int = 0

    @property
    def key(self) -> tuple:
        return (self.topic_key, self.hour)

    @property
    def mention_count(self) -> int:
        return len(self.article_sentiments)

    @property
    def sentiment_avg(self) -> float:
        if not self.article_sentiments:
            return 0.0
        return sum(s for s, _ in self.article_sentiments.values()) / len(self.article_sentiments)

    @property
    def sentiment_counts(self) -> dict:
        counts = {label: 0 for label in SENTIMENT_LABELS}
        for _, label in self.article_sentiments.values():
            if label in counts:
                counts[label] += 1
        return counts

    def add_keywords(self, keywords):
        for kw in sorted(keywords):
            if len(self.keywords) >= MAX_KEYWORDS:
                break
            if kw not in self.keywords:
                self.keywords.append(kw)

    def add_mention(self, doc: RawDocument) -> bool:
        """Count a document once. Returns False if it was already counted."""
        if doc.id in self.article_sentiments:
            return False
        score = doc.sentiment_score if doc.sentiment_score is not None else DEFAULT_SENTIMENT_SCORE
        label = doc.sentiment_label or DEFAULT_SENTIMENT_LABEL
        self.article_sentiments[doc.id] = [float(score), label]
        if len(self.sample_article_ids) < MAX_SAMPLE_IDS:
            self.sample_article_ids.append(doc.id)
        if len(self.sample_titles) < MAX_SAMPLE_TITLES and doc.title not in self.sample_titles:
            self.sample_titles.append(doc.title)
        if doc.source and doc.source not in self.sources:
            self.sources.append(doc.source)
        return True

    def absorb(self, other: "TopicBucket") -> int:
        """Merge another writer's bucket for the same key into this one.

        Returns how many new documents were counted.
        """
        if other.key != self.key:
            raise ValueError(f"cannot merge {other.key} into {self.key}")
        added = 0
        for article_id, sentiment in other.article_sentiments.items():
            if article_id not in self.article_sentiments:
                self.article_sentiments[article_id] = list(sentiment)
                added += 1
        for article_id in other.sample_article_ids:
            if len(self.sample_article_ids) >= MAX_SAMPLE_IDS:
                break
            if article_id not in self.sample_article_ids:
                self.sample_article_ids.append(article_id)
        for title in other.sample_titles:
            if len(self.sample_titles) >= MAX_SAMPLE_TITLES:
                break
            if title not in self.sample_titles:
                self.sample_titles.append(title)
        for source in other.sources:
            if source not in self.sources:
                self.sources.append(source)
        self.add_keywords(other.keywords)
        self.label = self.label or other.label
        self.is_event_phrase = self.is_event_phrase or other.is_event_phrase
        self.relevance = max(self.relevance, other.relevance)
        return added

    def to_dict(self) -> dict:
        data = asdict(self)
        data["hour"] = self.hour.isoformat()
        data["mention_count"] = self.mention_count
        data["sentiment_avg"] = self.sentiment_avg
        data["sentiment_counts"] = self.sentiment_counts
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TopicBucket":
        data = dict(data)
        for derived in ("mention_count", "sentiment_avg", "sentiment_counts"):
            data.pop(derived, None)
        data["hour"] = parse_timestamp(data["hour"])
        return cls(**data)


@dataclass
class TrendRecord:
    """The view of a persisted trend that the quality auditor reads."""
    title: str
    is_event_phrase: bool = False
    source_count: int = 0
    confidence_score: float = 0.0  # 0-100
    z_score_velocity: float = 0.0
    mention_count: int = 0
    velocity_score: float = 0.0

    @property
    def word_count(self) -> int:
        return len(self.title.split())


@dataclass
class AuditFinding:
    agent: str
    category: str
    metric: str
    value: float | int
    status: str  # PASS, WARN or FAIL
    recommendation: str | None = None


@dataclass
class RunReport:
    """What a pipeline run tells its caller."""
    articles_analyzed: int = 0  # documents sent to extraction; deferred ones excluded
    topics_extracted: int = 0
    topics_stored: int = 0
    errors: int = 0
    batches_skipped: int = 0
    documents_deferred: int = 0
    top_topics: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "articlesAnalyzed": self.articles_analyzed,
            "topicsExtracted": self.topics_extracted,
            "topicsStored": self.topics_stored,
            "errors": self.errors,
            "batchesSkipped": self.batches_skipped,
            "documentsDeferred": self.documents_deferred,
            "topTopics": self.top_topics,
        }
