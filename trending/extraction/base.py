"""TopicExtractionPort ABC — the seam to the text-understanding backend."""

from abc import ABC, abstractmethod

from ..models import Candidate, RawDocument


class TopicExtractionPort(ABC):
    """Turns one batch of documents into candidates.

    Implementations raise ExtractionCallFailure when the backend cannot be
    reached and ExtractionParseFailure when its answer is not candidate JSON.
    """

    name: str = "unknown"

    @abstractmethod
    def extract(self, documents: list[RawDocument]) -> list[Candidate]:
        ...

    @property
    def is_available(self) -> bool:
        """Check if this backend is configured and available."""
        return True
