"""RSS/Atom feed document source."""

import calendar
import hashlib
import re
from datetime import datetime, timezone

import feedparser
import requests

from ..log import get_logger
from ..models import RawDocument
from ..retry import with_retry
from .base import DocumentSource

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(text: str) -> str:
    return " ".join(_TAG_RE.sub(" ", text or "").split())


def _entry_time(entry) -> datetime:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)
    return datetime.now(timezone.utc)


def _entry_id(entry, feed_url: str) -> str:
    key = entry.get("id") or entry.get("link")
    if key:
        return key
    return hashlib.sha1(f"{feed_url}|{entry.get('title', '')}".encode()).hexdigest()[:16]


@with_retry(max_retries=2, base_delay=1.0, retry_on=(requests.RequestException,))
def fetch_feed(url: str, timeout: float = 10.0) -> bytes:
    r = requests.get(url, headers={"User-Agent": "trending-topics/1.0"}, timeout=timeout)
    r.raise_for_status()
    return r.content


class RSSSource(DocumentSource):
    name = "rss"

    def __init__(self, config: dict = None):
        config = config or {}
        self.feeds = config.get("feeds", [])
        self.timeout = config.get("timeout", 10.0)

    @property
    def is_available(self) -> bool:
        return bool(self.feeds)

    def parse_feed(self, content: bytes, feed_url: str) -> list[RawDocument]:
        feed = feedparser.parse(content)
        publisher = feed.feed.get("title", "") or feed_url
        documents = []
        for entry in feed.entries:
            title = strip_html(entry.get("title", ""))
            if not title:
                continue
            documents.append(RawDocument(
                id=_entry_id(entry, feed_url),
                title=title,
                body=strip_html(entry.get("summary", "")),
                published_at=_entry_time(entry),
                source=publisher,
            ))
        return documents

    def fetch_documents(self, limit: int = 100) -> list[RawDocument]:
        documents = []
        for feed_url in self.feeds:
            try:
                content = fetch_feed(feed_url, timeout=self.timeout)
            except requests.RequestException as e:
                get_logger("sources").warning("Feed %s unavailable: %s", feed_url, e)
                continue
            documents.extend(self.parse_feed(content, feed_url))
        documents.sort(key=lambda d: d.published_at, reverse=True)
        return documents[:limit]
