"""Quality audit over the trends of the last day.

Three checkers run over the same set of trend records:

* ``20-trend-quality``: label shape, source corroboration, confidence
* ``21-duplicate-detector``: exact and near-duplicate titles
* ``22-evergreen-topic``: always-in-the-news entities trending without a spike

Every checker emits ``AuditFinding`` rows graded pass / warning / fail. An
empty window is reported as a failed "Total Trending Topics" finding rather
than raised.
"""

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone

import numpy as np

from .extraction.rules import ACTION_VERBS
from .log import get_logger
from .models import FAIL, HOUR, PASS, WARN, AuditFinding, TrendRecord, truncate_to_hour

AGENT_QUALITY = "20-trend-quality"
AGENT_DUPLICATES = "21-duplicate-detector"
AGENT_EVERGREEN = "22-evergreen-topic"

EVERGREEN_ENTITIES = [
    "trump", "biden", "harris", "gaza", "israel", "ukraine", "russia", "musk",
    "china", "iran", "netanyahu", "zelensky", "putin",
]

NEAR_DUPLICATE_OVERLAP = 0.6
SPIKE_Z_SCORE = 2.0

MAX_SAMPLE_ISSUES = 15
MAX_DUPLICATE_PAIRS = 10
MAX_EVERGREEN_ISSUES = 10
MAX_TOP_TRENDS = 10


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return int(value * scale + 0.5) / scale


def _percent(part: int, total: int) -> int:
    return int(_round_half_up(100 * part / total)) if total else 0


def velocity_z_score(current: int, baseline) -> float:
    """How unusual ``current`` is against the hourly baseline counts (std floored at 1)."""
    baseline = np.asarray(baseline, dtype=float)
    if baseline.size == 0:
        return 0.0
    std = max(float(baseline.std()), 1.0)
    return round((current - float(baseline.mean())) / std, 2)


def build_trend_records(store, now: datetime | None = None, lookback_hours: int = 24,
                        baseline_hours: int = 24) -> list[TrendRecord]:
    """Latest bucket per topic inside the lookback window, highest confidence first."""
    now = truncate_to_hour(now or datetime.now(timezone.utc))
    since = now - HOUR * lookback_hours

    latest = {}
    for bucket in store.buckets(since=since):
        seen = latest.get(bucket.topic_key)
        if seen is None or bucket.hour > seen.hour:
            latest[bucket.topic_key] = bucket

    records = []
    for bucket in latest.values():
        history = store.history(bucket.topic_key, bucket.hour, baseline_hours)
        baseline = [b.mention_count if b else 0 for b in history]
        records.append(TrendRecord(
            title=bucket.label or bucket.topic_key,
            is_event_phrase=bucket.is_event_phrase,
            source_count=len(bucket.sources),
            confidence_score=round(100 * bucket.relevance, 1),
            z_score_velocity=velocity_z_score(bucket.mention_count, baseline),
            mention_count=bucket.mention_count,
            velocity_score=bucket.velocity_score,
        ))
    records.sort(key=lambda r: r.confidence_score, reverse=True)
    return records


def has_action_verb(title: str) -> bool:
    lowered = title.lower()
    return any(re.search(rf"\b{re.escape(v)}\b", lowered) for v in ACTION_VERBS)


def is_evergreen(title: str, entities=EVERGREEN_ENTITIES) -> bool:
    """True if any evergreen entity appears in the title as a whole word."""
    lowered = title.lower()
    return any(re.search(rf"\b{re.escape(e)}\b", lowered) for e in entities)


def word_overlap(a: str, b: str) -> float:
    """Shared words longer than two characters over all distinct words of both titles."""
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    shared = [w for w in words_a & words_b if len(w) > 2]
    return len(shared) / len(union)


def find_near_duplicates(titles: list[str], threshold: float = NEAR_DUPLICATE_OVERLAP) -> list[tuple]:
    """Every pair (i, j, overlap) of titles whose word overlap exceeds ``threshold``."""
    pairs = []
    for i in range(len(titles)):
        for j in range(i + 1, len(titles)):
            overlap = word_overlap(titles[i], titles[j])
            if overlap > threshold:
                pairs.append((i, j, overlap))
    return pairs


def grade_at_least(value, pass_min, warn_min=None) -> str:
    if value >= pass_min:
        return PASS
    if warn_min is None or value >= warn_min:
        return WARN
    return FAIL


def grade_at_most(value, pass_max, warn_max=None) -> str:
    if value <= pass_max:
        return PASS
    if warn_max is not None and value <= warn_max:
        return WARN
    return FAIL


@dataclass
class AuditReport:
    timestamp: str
    findings: list = field(default_factory=list)
    sample_issues: list = field(default_factory=list)
    near_duplicate_pairs: list = field(default_factory=list)
    evergreen_issues: list = field(default_factory=list)
    top_trends: list = field(default_factory=list)

    def count(self, status: str) -> int:
        return sum(1 for f in self.findings if f.status == status)

    @property
    def health_score(self) -> int:
        if not self.findings:
            return 0
        return int(_round_half_up(100 * (self.count(PASS) + 0.5 * self.count(WARN)) / len(self.findings)))

    @property
    def critical_issues(self) -> list[dict]:
        return [
            {"metric": f.metric, "value": f.value, "recommendation": f.recommendation}
            for f in self.findings if f.status == FAIL
        ]

    def finding(self, metric: str) -> AuditFinding | None:
        return next((f for f in self.findings if f.metric == metric), None)

    @property
    def summary(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "total_checks": len(self.findings),
            "passed": self.count(PASS),
            "warnings": self.count(WARN),
            "failed": self.count(FAIL),
            "health_score": self.health_score,
            "critical_issues": self.critical_issues,
        }

    def to_dict(self) -> dict:
        return {
            "audit_type": "trend_quality",
            "timestamp": self.timestamp,
            "summary": self.summary,
            "results": [asdict(f) for f in self.findings],
            "sample_issues": self.sample_issues,
            "near_duplicate_pairs": self.near_duplicate_pairs,
            "evergreen_issues": self.evergreen_issues,
            "top_trends": self.top_trends,
        }


def _trend_row(record: TrendRecord) -> dict:
    return {
        "title": record.title,
        "confidence_score": record.confidence_score,
        "z_score_velocity": record.z_score_velocity,
        "source_count": record.source_count,
        "is_event_phrase": record.is_event_phrase,
    }


class QualityAuditor:
    def __init__(self, evergreen_entities=None, clock=None):
        self.evergreen_entities = evergreen_entities or EVERGREEN_ENTITIES
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def audit(self, records: list[TrendRecord]) -> AuditReport:
        report = AuditReport(timestamp=self.clock().isoformat())
        if not records:
            get_logger("audit").warning("No trend records in the audit window")

        report.findings.extend(self.label_quality(records))
        duplicate_findings, pairs = self.duplicates(records)
        report.findings.extend(duplicate_findings)
        evergreen_findings, evergreen_issues = self.evergreen(records)
        report.findings.extend(evergreen_findings)

        report.near_duplicate_pairs = pairs[:MAX_DUPLICATE_PAIRS]
        report.evergreen_issues = evergreen_issues[:MAX_EVERGREEN_ISSUES]
        report.sample_issues = self.sample_issues(records)
        report.top_trends = [_trend_row(r) for r in records[:MAX_TOP_TRENDS]]
        get_logger("audit").info(
            "Audit: %d checks, %d passed, %d warnings, %d failed (health %d)",
            len(report.findings), report.count(PASS), report.count(WARN),
            report.count(FAIL), report.health_score,
        )
        return report

    # ── 20: label and source quality ──────────────────

    def label_quality(self, records: list[TrendRecord]) -> list[AuditFinding]:
        total = len(records)
        event_like = single_word = 0
        for r in records:
            if r.is_event_phrase:
                event_like += 1
            elif r.word_count == 1:
                single_word += 1
            elif r.word_count > 2 and has_action_verb(r.title):
                event_like += 1

        event_pct = _percent(event_like, total)
        single_pct = _percent(single_word, total)
        multi_source_pct = _percent(sum(1 for r in records if r.source_count >= 3), total)
        avg_sources = _round_half_up(sum(r.source_count for r in records) / total, 1) if total else 0
        avg_confidence = _round_half_up(sum(r.confidence_score for r in records) / total, 1) if total else 0
        high_confidence = sum(1 for r in records if r.confidence_score >= 70)

        def finding(category, metric, value, status, recommendation=None):
            return AuditFinding(AGENT_QUALITY, category, metric, value, status,
                                recommendation if status != PASS else None)

        return [
            finding("Label Quality", "Total Trending Topics", total,
                    PASS if total > 10 else WARN if total > 0 else FAIL,
                    "No trend records in the audit window"),
            finding("Label Quality", "Event Phrase Rate (%)", event_pct,
                    grade_at_least(event_pct, 50, 30),
                    "Improve event phrase extraction, target >50%"),
            finding("Label Quality", "Single-Word Entity Rate (%)", single_pct,
                    grade_at_most(single_pct, 15, 25),
                    "Increase evergreen penalties, target <15%"),
            finding("Source Quality", "Multi-Source Rate (3+) (%)", multi_source_pct,
                    grade_at_least(multi_source_pct, 70, 50),
                    "Require more corroboration, target >70%"),
            finding("Source Quality", "Avg Sources per Trend", avg_sources,
                    grade_at_least(avg_sources, 3)),
            finding("Confidence", "Avg Confidence Score", avg_confidence,
                    grade_at_least(avg_confidence, 50)),
            finding("Confidence", "High Confidence (>=70) Count", high_confidence,
                    grade_at_least(high_confidence, 5)),
        ]

    # ── 21: duplicates ────────────────────────────────

    def duplicates(self, records: list[TrendRecord]) -> tuple[list[AuditFinding], list[dict]]:
        seen = set()
        exact = 0
        for r in records:
            title = r.title.lower().strip()
            if title in seen:
                exact += 1
            else:
                seen.add(title)

        titles = [r.title for r in records]
        near = find_near_duplicates(titles)
        pairs = [
            {"a": titles[i], "b": titles[j], "overlap": int(_round_half_up(overlap * 100))}
            for i, j, overlap in near
        ]
        findings = [
            AuditFinding(AGENT_DUPLICATES, "Exact Duplicates", "Exact Title Duplicates", exact,
                         PASS if exact == 0 else FAIL,
                         "Deduplicate topics before storing" if exact else None),
            AuditFinding(AGENT_DUPLICATES, "Near Duplicates", "Similar Title Pairs (>60% word overlap)",
                         len(near), grade_at_most(len(near), 5, 15),
                         "Merge semantically similar topics" if len(near) > 5 else None),
        ]
        return findings, pairs

    # ── 22: evergreen entities ────────────────────────

    def evergreen(self, records: list[TrendRecord]) -> tuple[list[AuditFinding], list[dict]]:
        total = without_spike = single_word = 0
        issues = []
        for r in records:
            if not is_evergreen(r.title, self.evergreen_entities):
                continue
            total += 1
            if r.z_score_velocity < SPIKE_Z_SCORE:
                without_spike += 1
                issues.append({"title": r.title, "z_score": r.z_score_velocity, "issue": "LOW_VELOCITY"})
            if r.word_count == 1:
                single_word += 1
                issues.append({"title": r.title, "z_score": r.z_score_velocity, "issue": "SINGLE_WORD_ENTITY"})

        findings = [
            AuditFinding(AGENT_EVERGREEN, "Evergreen Handling", "Evergreen Topics Trending", total, PASS),
            AuditFinding(AGENT_EVERGREEN, "Evergreen Handling", "Without Spike (z<2)", without_spike,
                         grade_at_most(without_spike, 0, 3),
                         "Raise the z-score threshold for evergreen topics" if without_spike else None),
            AuditFinding(AGENT_EVERGREEN, "Evergreen Handling", "Single-Word Evergreen", single_word,
                         PASS if single_word == 0 else FAIL,
                         "Single-word evergreen entities should not trend" if single_word else None),
        ]
        return findings, issues

    # ── report extras ─────────────────────────────────

    @staticmethod
    def issue_type(record: TrendRecord) -> str:
        if record.word_count == 1:
            return "SINGLE_WORD"
        if not record.is_event_phrase:
            return "NOT_EVENT_PHRASE"
        if record.source_count < 3:
            return "LOW_SOURCES"
        if record.z_score_velocity < SPIKE_Z_SCORE:
            return "LOW_VELOCITY"
        return "OK"

    def sample_issues(self, records: list[TrendRecord]) -> list[dict]:
        flagged = [
            r for r in records
            if r.word_count == 1 or not r.is_event_phrase or r.source_count < 2
        ]
        return [
            {**_trend_row(r), "word_count": r.word_count, "issue_type": self.issue_type(r)}
            for r in flagged[:MAX_SAMPLE_ISSUES]
        ]
