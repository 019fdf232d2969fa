"""DocumentSource ABC."""

from abc import ABC, abstractmethod

from ..models import RawDocument


class DocumentSource(ABC):
    """Abstract base class for document sources."""

    name: str = "unknown"

    @abstractmethod
    def fetch_documents(self, limit: int = 100) -> list[RawDocument]:
        """Fetch recent documents from this source."""
        ...

    @property
    def is_available(self) -> bool:
        """Check if this source is configured and available."""
        return True
