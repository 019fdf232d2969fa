"""Extraction ledger: which documents have had their topics extracted.

A document is only marked done after its batch was extracted successfully.
Failed or never-submitted documents stay pending and are retried next run.
"""

import json
from datetime import datetime, timezone
from pathlib import Path

DONE = "done"
FAILED = "failed"


class ExtractionLedger:
    """Tracks extraction status per document id.

    Each entry records: status (done/failed), timestamp, and either the
    extracted topics or the error.
    """

    def __init__(self, state: dict | None = None):
        self.state = state if state is not None else {}

    def is_extracted(self, doc_id: str) -> bool:
        return self.state.get(doc_id, {}).get("status") == DONE

    def is_failed(self, doc_id: str) -> bool:
        return self.state.get(doc_id, {}).get("status") == FAILED

    def pending(self, documents: list) -> list:
        """Documents not yet extracted, in input order."""
        return [d for d in documents if not self.is_extracted(d.id)]

    def mark_extracted(self, doc_id: str, topics: list[str] | None = None):
        self.state[doc_id] = {
            "status": DONE,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "topics": list(topics or []),
        }

    def mark_failed(self, doc_id: str, error: str = ""):
        entry = self.state.get(doc_id, {})
        self.state[doc_id] = {
            "status": FAILED,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "error": error,
            "attempts": entry.get("attempts", 0) + 1,
        }

    def topics_for(self, doc_id: str) -> list[str]:
        return self.state.get(doc_id, {}).get("topics", [])

    def reset(self, doc_id: str | None = None):
        """Forget one document, or everything (for --force)."""
        if doc_id is None:
            self.state.clear()
        else:
            self.state.pop(doc_id, None)

    def summary(self) -> str:
        """Human-readable counts per status."""
        done = sum(1 for e in self.state.values() if e.get("status") == DONE)
        failed = sum(1 for e in self.state.values() if e.get("status") == FAILED)
        lines = [f"  [+] extracted: {done}", f"  [!] failed:    {failed}"]
        for doc_id, entry in self.state.items():
            if entry.get("status") == FAILED:
                lines.append(f"      {doc_id}: {entry.get('error', '')} (attempts: {entry.get('attempts', 1)})")
        return "\n".join(lines)

    def save(self, path: Path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.state, indent=2, ensure_ascii=False))

    @classmethod
    def load(cls, path: Path) -> "ExtractionLedger":
        if not path.exists():
            return cls()
        return cls(json.loads(path.read_text()))
