"""Error taxonomy for the trending pipeline.

Extraction and resolution errors are contained per batch / per entity by
their callers. Only StoreUnavailable is allowed to abort a run.
"""


class TrendingError(Exception):
    """Base class for pipeline errors."""


class ExtractionCallFailure(TrendingError):
    """The text-understanding call failed: network, timeout or non-2xx."""


class ExtractionParseFailure(TrendingError):
    """The text-understanding call returned content that is not candidate JSON."""


class ResolutionLookupFailure(TrendingError):
    """The external knowledge base could not be reached."""


class PersistenceConflict(TrendingError):
    """A record changed between read and write; the writer must re-merge."""


class StoreUnavailable(TrendingError):
    """The alias or trend store cannot be read or written."""
