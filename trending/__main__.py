"""CLI entry point: python -m trending."""

import argparse
import json
import sys
from pathlib import Path

from .config import ALIASES_FILE, LEDGER_FILE, TRENDS_FILE, get_section
from .errors import StoreUnavailable
from .log import log, set_verbose


def _load_stores():
    from .state import ExtractionLedger
    from .store import MemoryAliasStore, MemoryTrendStore

    return (
        MemoryAliasStore.load(ALIASES_FILE),
        MemoryTrendStore.load(TRENDS_FILE),
        ExtractionLedger.load(LEDGER_FILE),
    )


def cmd_run(args):
    from .engine import TrendPipeline
    from .sources import collect_documents, load_documents, load_sources
    from .tasks import BackgroundTasks

    extraction = get_section("extraction")
    hours_back = extraction["hours_back"] if args.hours_back is None else args.hours_back

    if args.input:
        documents = [doc for path in args.input for doc in load_documents(Path(path))]
    else:
        documents = collect_documents(load_sources(), limit=args.limit, hours_back=hours_back)
    if not documents:
        print("  No documents found. Configure sources or pass --input.")
        return

    alias_store, trend_store, ledger = _load_stores()
    if args.force:
        ledger.reset()

    with BackgroundTasks() as tasks:
        pipeline = TrendPipeline.from_config(alias_store, trend_store, ledger=ledger, tasks=tasks)
        report = pipeline.run(documents)

    alias_store.save(ALIASES_FILE)
    trend_store.save(TRENDS_FILE)
    ledger.save(LEDGER_FILE)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return

    print(f"\n  Analyzed {report.articles_analyzed} document(s): "
          f"{report.topics_extracted} topic(s), {report.topics_stored} bucket(s) stored")
    if report.errors or report.documents_deferred:
        print(f"  {report.errors} error(s), {report.batches_skipped} batch(es) skipped, "
              f"{report.documents_deferred} document(s) deferred to the next run")
    if report.top_topics:
        print("\n  Top topics:\n")
        for i, t in enumerate(report.top_topics, 1):
            print(f"  {i:2d}. {t['topic']}  [{t['mentions']} mentions, "
                  f"velocity {t['velocity']:+.0f}%, sentiment {t['sentiment']:.2f}]")


def cmd_resolve(args):
    from .entities import EntityCanonicalizer, WikidataClient
    from .store import MemoryAliasStore

    resolver = get_section("resolver")
    use_kb = args.kb or resolver["use_knowledge_base"]
    alias_store = MemoryAliasStore.load(ALIASES_FILE)
    canonicalizer = EntityCanonicalizer(
        alias_store,
        knowledge_base=WikidataClient() if use_kb else None,
        use_knowledge_base=use_kb,
        kb_limit=resolver["kb_limit"],
        kb_delay=resolver["kb_delay"],
        fuzzy_threshold=resolver["fuzzy_threshold"],
    )
    results, stats = canonicalizer.resolve_many(args.entities)
    alias_store.save(ALIASES_FILE)

    if args.json:
        print(json.dumps({"results": [vars(r) for r in results], "stats": stats}, indent=2))
        return
    for r in results:
        print(f"  {r.original!r:30} -> {r.canonical!r:30} {r.entity_type:12} {r.method:15} {r.confidence:.2f}")
    print(f"\n  {stats}")


def cmd_audit(args):
    from .audit import QualityAuditor, build_trend_records
    from .store import MemoryTrendStore

    settings = get_section("audit")
    trend_store = MemoryTrendStore.load(TRENDS_FILE)
    records = build_trend_records(
        trend_store,
        lookback_hours=args.hours or settings["lookback_hours"],
        baseline_hours=settings["baseline_hours"],
    )
    report = QualityAuditor().audit(records)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return

    summary = report.summary
    print(f"\n  Trend quality: health {summary['health_score']}/100 "
          f"({summary['passed']} pass, {summary['warnings']} warning, {summary['failed']} fail)\n")
    markers = {"pass": "+", "warning": "~", "fail": "!"}
    for f in report.findings:
        print(f"  [{markers[f.status]}] {f.agent:22} {f.metric:42} {f.value}")
        if f.recommendation:
            print(f"      {f.recommendation}")
    if report.near_duplicate_pairs:
        print("\n  Near-duplicate pairs:")
        for pair in report.near_duplicate_pairs:
            print(f"    {pair['a']}  ~  {pair['b']}  ({pair['overlap']}%)")


def cmd_topics(args):
    from .audit import build_trend_records
    from .store import MemoryTrendStore

    trend_store = MemoryTrendStore.load(TRENDS_FILE)
    records = build_trend_records(trend_store, lookback_hours=args.hours)
    records.sort(key=lambda r: (r.mention_count, r.velocity_score), reverse=True)
    if not records:
        print("  No trending topics stored yet. Run `python -m trending run` first.")
        return

    print(f"\n  Trending topics ({len(records)} found):\n")
    for i, r in enumerate(records[:args.limit], 1):
        tag = " [event]" if r.is_event_phrase else ""
        print(f"  {i:2d}. {r.title}{tag}  {r.mention_count} mentions, "
              f"velocity {r.velocity_score:+.0f}%, z {r.z_score_velocity:+.1f}")


def cmd_ledger(args):
    from .state import ExtractionLedger

    ledger = ExtractionLedger.load(LEDGER_FILE)
    if args.reset:
        ledger.reset()
        ledger.save(LEDGER_FILE)
        print("  Ledger cleared.")
        return
    print(ledger.summary())


def cmd_config(args):
    from .config import CONFIG_FILE, DEFAULTS, load_config, save_config, set_option

    config = load_config()
    if args.set:
        for option in args.set:
            dotted, _, raw = option.partition("=")
            set_option(config, dotted, raw)
        save_config(config)
        print(f"  Config saved to {CONFIG_FILE}")

    for name in DEFAULTS:
        print(f"\n  [{name}]")
        for key, value in get_section(name, config).items():
            print(f"    {key} = {value}")


def main():
    parser = argparse.ArgumentParser(
        description="Trending topic detection and entity resolution",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    # run
    p_run = sub.add_parser("run", help="Extract, aggregate and score new documents")
    p_run.add_argument("--input", nargs="*", help="JSON file(s) of documents instead of configured sources")
    p_run.add_argument("--hours-back", type=float, default=None, help="Only documents from the last N hours")
    p_run.add_argument("--limit", type=int, default=200, help="Max documents to fetch")
    p_run.add_argument("--force", action="store_true", help="Re-extract documents already in the ledger")
    p_run.add_argument("--json", action="store_true", help="Print the run report as JSON")

    # resolve
    p_resolve = sub.add_parser("resolve", help="Canonicalize entity mentions")
    p_resolve.add_argument("entities", nargs="+")
    p_resolve.add_argument("--kb", action="store_true", help="Allow knowledge-base lookups")
    p_resolve.add_argument("--json", action="store_true")

    # audit
    p_audit = sub.add_parser("audit", help="Audit the quality of recent trends")
    p_audit.add_argument("--hours", type=int, default=None, help="Lookback window in hours")
    p_audit.add_argument("--json", action="store_true")

    # topics
    p_topics = sub.add_parser("topics", help="Show stored trending topics")
    p_topics.add_argument("--limit", type=int, default=15, help="Max topics to show")
    p_topics.add_argument("--hours", type=int, default=24, help="Lookback window in hours")

    # ledger
    p_ledger = sub.add_parser("ledger", help="Show extraction ledger status")
    p_ledger.add_argument("--reset", action="store_true", help="Forget every document")

    # config
    p_config = sub.add_parser("config", help="Show or change settings")
    p_config.add_argument("--set", nargs="*", metavar="SECTION.KEY=VALUE", help="e.g. extraction.batch_size=10")

    args = parser.parse_args()

    if args.verbose:
        set_verbose(True)

    if not args.cmd:
        parser.print_help()
        return

    commands = {
        "run": cmd_run,
        "resolve": cmd_resolve,
        "audit": cmd_audit,
        "topics": cmd_topics,
        "ledger": cmd_ledger,
        "config": cmd_config,
    }
    try:
        commands[args.cmd](args)
    except StoreUnavailable as e:
        log(f"Store unavailable: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
