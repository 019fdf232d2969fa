"""Documents from a local JSON file (a list, or {"documents": [...]})."""

import json
from pathlib import Path

from ..log import get_logger
from ..models import RawDocument
from .base import DocumentSource


def load_documents(path: Path) -> list[RawDocument]:
    data = json.loads(Path(path).read_text())
    if isinstance(data, dict):
        data = data.get("documents") or data.get("articles") or []
    documents = []
    for item in data:
        try:
            documents.append(RawDocument.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            get_logger("sources").warning("Skipping malformed document in %s: %s", path, e)
    return documents


class JSONFileSource(DocumentSource):
    name = "file"

    def __init__(self, config: dict = None):
        config = config or {}
        self.paths = [Path(p).expanduser() for p in config.get("paths", [])]

    @property
    def is_available(self) -> bool:
        return any(p.exists() for p in self.paths)

    def fetch_documents(self, limit: int = 100) -> list[RawDocument]:
        documents = []
        for path in self.paths:
            if path.exists():
                documents.extend(load_documents(path))
        return documents[:limit]
