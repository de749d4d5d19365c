# ccc_retrieval/domain/errors.py


class RetrievalError(Exception):
    """Base class for every error raised by the retrieval core."""


class ConfigurationError(RetrievalError):
    """Startup-time misconfiguration, e.g. embedding dimension mismatch."""


class StoreUnavailable(RetrievalError):
    """The paragraph store could not be reached or failed a query."""


class RewriteFailed(RetrievalError):
    """The completion provider failed or returned nothing usable."""


class EmbeddingFailed(RetrievalError):
    """The embedding provider failed or returned a malformed vector."""


class SearchFailed(RetrievalError):
    """No usable result set could be produced for the request."""


class ParagraphNotFound(RetrievalError):
    """A valid reference matched no stored paragraphs."""


# ── Reference classification ──────────────────────────────────────────────────

class NotAReference(RetrievalError):
    """The token has no paragraph-reference shape; treat it as a search query."""


class InvalidReference(NotAReference):
    """The token looks like a reference but fails validation."""


class OutOfRange(InvalidReference):
    """Start or end lies outside [1, corpus_size]."""


class InvalidRange(InvalidReference):
    """Start exceeds end, or the range spans more paragraphs than allowed."""
