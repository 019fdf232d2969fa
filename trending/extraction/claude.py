"""Claude-backed candidate extraction."""

import subprocess

from ..config import (
    DEFAULT_MODEL,
    call_claude_cli,
    get_anthropic_client,
    get_claude_backend,
)
from ..errors import ExtractionCallFailure
from ..log import get_logger
from ..models import Candidate, RawDocument
from .base import TopicExtractionPort
from .parse import parse_candidates
from .profiles import ExtractionProfile, get_profile


def build_articles_text(documents: list[RawDocument], body_chars: int = 500) -> str:
    return "\n\n---\n\n".join(
        f"ID: {d.id}\nTitle: {d.title}\nContent: {d.body[:body_chars]}"
        for d in documents
    )


class ClaudeExtractionPort(TopicExtractionPort):
    """One prompt per batch; the whole batch fails together."""

    name = "claude"

    def __init__(
        self,
        profile: ExtractionProfile | None = None,
        model: str = DEFAULT_MODEL,
        body_chars: int = 500,
        timeout: float = 30.0,
        max_tokens: int = 2000,
    ):
        self.profile = profile or get_profile("event")
        self.model = model
        self.body_chars = body_chars
        self.timeout = timeout
        self.max_tokens = max_tokens

    @property
    def is_available(self) -> bool:
        try:
            get_claude_backend()
            return True
        except RuntimeError:
            return False

    def build_prompt(self, documents: list[RawDocument]) -> str:
        return self.profile.render(build_articles_text(documents, self.body_chars))

    def _call_claude(self, prompt: str) -> str:
        """Call Claude via API key or CLI. Any failure becomes ExtractionCallFailure."""
        import anthropic

        try:
            backend = get_claude_backend()
            if backend == "api":
                client = get_anthropic_client(timeout=self.timeout)
                msg = client.messages.create(
                    model=self.model,
                    max_tokens=self.max_tokens,
                    system=self.profile.system_prompt,
                    messages=[{"role": "user", "content": prompt}],
                )
                return msg.content[0].text.strip()
            get_logger("extraction").debug("Using claude CLI for extraction")
            return call_claude_cli(
                f"{self.profile.system_prompt}\n\n{prompt}",
                model=self.model,
                timeout=self.timeout,
            )
        except anthropic.APIStatusError as e:
            raise ExtractionCallFailure(f"HTTP {e.status_code}: {e.message}") from e
        except anthropic.APITimeoutError as e:
            raise ExtractionCallFailure(f"timed out after {self.timeout}s") from e
        except anthropic.APIConnectionError as e:
            raise ExtractionCallFailure(f"connection error: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise ExtractionCallFailure(f"claude CLI timed out after {self.timeout}s") from e
        except RuntimeError as e:
            raise ExtractionCallFailure(str(e)) from e

    def extract(self, documents: list[RawDocument]) -> list[Candidate]:
        raw = self._call_claude(self.build_prompt(documents))
        return parse_candidates(raw)
