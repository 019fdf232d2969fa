"""Document sources and parallel collection."""

import concurrent.futures
from datetime import datetime, timezone

from ..config import load_config
from ..log import get_logger, log
from ..models import HOUR, RawDocument
from .base import DocumentSource
from .files import JSONFileSource, load_documents
from .rss import RSSSource

SOURCE_TYPES = {
    "rss": RSSSource,
    "file": JSONFileSource,
}


def load_sources(config: dict | None = None) -> list[DocumentSource]:
    """Enabled sources from the ``sources`` config section."""
    if config is None:
        config = load_config()
    source_config = config.get("sources", {})
    sources = []
    for name, cls in SOURCE_TYPES.items():
        src_cfg = source_config.get(name, {})
        if src_cfg.get("enabled", True):
            sources.append(cls(src_cfg))
    return sources


def collect_documents(sources: list[DocumentSource], limit: int = 200, hours_back: float | None = None,
                      now: datetime | None = None) -> list[RawDocument]:
    """Fetch from every available source in parallel, drop duplicate ids, newest first."""
    documents = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=5) as pool:
        futures = {
            pool.submit(src.fetch_documents, limit): src
            for src in sources if src.is_available
        }
        for future in concurrent.futures.as_completed(futures):
            src = futures[future]
            try:
                found = future.result()
            except Exception as e:
                get_logger("sources").error("%s: failed: %s", src.name, e)
                continue
            documents.extend(found)
            log(f"{src.name}: found {len(found)} document(s)")

    if hours_back:
        cutoff = (now or datetime.now(timezone.utc)) - HOUR * hours_back
        documents = [d for d in documents if d.published_at >= cutoff]

    seen = set()
    unique = []
    for doc in sorted(documents, key=lambda d: d.published_at, reverse=True):
        if doc.id not in seen:
            seen.add(doc.id)
            unique.append(doc)
    return unique[:limit]


__all__ = [
    "DocumentSource",
    "RSSSource",
    "JSONFileSource",
    "load_documents",
    "load_sources",
    "collect_documents",
]
