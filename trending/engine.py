"""TrendPipeline: extract -> canonicalize -> aggregate -> score, one run at a time."""

from .aggregate import TopicAggregator
from .config import get_section
from .entities import EntityCanonicalizer, WikidataClient
from .extraction import CandidateExtractor, ClaudeExtractionPort, get_profile
from .log import get_logger, log
from .models import RunReport
from .state import ExtractionLedger
from .velocity import VelocityEngine

TOP_TOPICS = 10


def top_topics(buckets: list, scores: dict | None = None, limit: int = TOP_TOPICS) -> list[dict]:
    """Most-mentioned topics of a run, with their average sentiment."""
    scores = scores or {}
    ranked = sorted(buckets, key=lambda b: b.mention_count, reverse=True)[:limit]
    rows = []
    for b in ranked:
        velocity, momentum = scores.get(b.key, (b.velocity_score, b.momentum_score))
        rows.append({
            "topic": b.label or b.topic_key,
            "hour": b.hour.isoformat(),
            "mentions": b.mention_count,
            "sentiment": round(b.sentiment_avg, 2),
            "velocity": round(velocity, 1),
            "momentum": round(momentum, 1),
        })
    return rows


class TrendPipeline:
    """Runs documents through every stage and reports what happened.

    Only StoreUnavailable escapes ``run``; every other failure is counted in
    the report and the affected documents stay pending in the ledger.
    """

    def __init__(self, extractor: CandidateExtractor, canonicalizer: EntityCanonicalizer,
                 trend_store, ledger: ExtractionLedger | None = None, tasks=None):
        self.extractor = extractor
        self.canonicalizer = canonicalizer
        self.trend_store = trend_store
        self.ledger = ledger if ledger is not None else ExtractionLedger()
        self.tasks = tasks
        self.velocity = VelocityEngine(trend_store)

    @classmethod
    def from_config(cls, alias_store, trend_store, ledger=None, tasks=None, port=None, config=None):
        """Wire every stage from the ``extraction`` and ``resolver`` config sections."""
        extraction = get_section("extraction", config)
        resolver = get_section("resolver", config)

        profile = get_profile(extraction["profile"])
        if port is None:
            port = ClaudeExtractionPort(
                profile=profile,
                model=extraction["model"],
                body_chars=extraction["body_chars"],
                timeout=extraction["call_timeout"],
            )
        extractor = CandidateExtractor(
            port,
            rules=profile.rules,
            batch_size=extraction["batch_size"],
            max_workers=extraction["max_workers"],
            call_timeout=extraction["call_timeout"],
            deadline_seconds=extraction["deadline_seconds"],
            deadline_margin=extraction["deadline_margin"],
        )
        canonicalizer = EntityCanonicalizer(
            alias_store,
            tasks=tasks,
            knowledge_base=WikidataClient() if resolver["use_knowledge_base"] else None,
            use_knowledge_base=resolver["use_knowledge_base"],
            kb_limit=resolver["kb_limit"],
            kb_delay=resolver["kb_delay"],
            fuzzy_threshold=resolver["fuzzy_threshold"],
        )
        return cls(extractor, canonicalizer, trend_store, ledger=ledger, tasks=tasks)

    def run(self, documents: list) -> RunReport:
        pending = self.ledger.pending(documents)
        already = len(documents) - len(pending)
        if already:
            log(f"Skipping {already} already-extracted document(s)")

        report = RunReport()
        if not pending:
            log("No new documents to analyze")
            return report

        log(f"Analyzing {len(pending)} document(s) in batches of {self.extractor.batch_size}")
        self.canonicalizer.reset_run()
        aggregator = TopicAggregator(self.canonicalizer)

        def on_result(result):
            if not result.ok:
                report.errors += 1
                report.batches_skipped += 1
                for doc in result.documents:
                    self.ledger.mark_failed(doc.id, str(result.error))
                return
            topics_by_doc = aggregator.add_matches(result.matches)
            for doc in result.documents:
                self.ledger.mark_extracted(doc.id, topics_by_doc.get(doc.id, []))
            get_logger().debug(
                "%s: %d candidate(s), %d kept", result.label, result.candidates_seen, len(result.matches)
            )

        outcome = self.extractor.run(pending, on_result=on_result)
        report.documents_deferred = len(outcome.deferred)
        report.articles_analyzed = len(pending) - len(outcome.deferred)
        if outcome.failed:
            get_logger().warning(
                "%d batch(es) failed, documents kept for retry: %s",
                len(outcome.failed), ", ".join(r.label for r in outcome.failed),
            )
        report.topics_extracted = len(aggregator.topic_keys)

        stored, conflicts = aggregator.flush(self.trend_store)
        report.errors += conflicts
        report.topics_stored = len(stored)

        scores = self.velocity.score([b.key for b in stored])

        if self.tasks is not None:
            failed_writes = self.tasks.join()
            if failed_writes:
                get_logger().warning("%d alias cache write(s) failed", failed_writes)

        report.top_topics = top_topics(stored, scores)
        log(
            f"Run complete: {report.topics_extracted} topic(s), {report.topics_stored} bucket(s) stored, "
            f"{report.errors} error(s), {report.documents_deferred} document(s) deferred"
        )
        return report
