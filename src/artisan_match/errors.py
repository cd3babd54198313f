"""Exception hierarchy for the matching engine.

Only two errors ever reach an API caller:

- ``InvalidQueryError``: the query was rejected before any downstream call.
- ``CatalogUnavailableError``: no candidate pool could be loaded.

``EmbeddingProviderError`` and its subclasses are raised by provider adapters
and the embedding client, and are absorbed by the orchestrator, which answers
the request from the fallback matcher instead.
"""


class MatchingError(Exception):
    """Base exception for matching operations"""


class InvalidQueryError(MatchingError):
    """Query text is empty or whitespace only"""


class CatalogUnavailableError(MatchingError):
    """Catalog store could not produce a candidate pool"""


class EmbeddingProviderError(MatchingError):
    """Embedding provider call failed.

    Attributes:
        call: Name of the failing operation (e.g. ``encode_batch``)
        transient: Whether a retry later may succeed
    """

    transient: bool = True

    def __init__(self, message: str, call: str = "encode") -> None:
        super().__init__(message)
        self.call = call


class EmbeddingTimeoutError(EmbeddingProviderError):
    """Embedding request timed out"""


class EmbeddingQuotaError(EmbeddingProviderError):
    """Rate limit or quota exceeded"""


class EmbeddingTransportError(EmbeddingProviderError):
    """Provider unreachable or returned a server error"""


class EmbeddingAuthError(EmbeddingProviderError):
    """Authentication failed"""

    transient = False


class EmbeddingInvalidResponseError(EmbeddingProviderError):
    """Provider returned an invalid or unexpected payload"""

    transient = False
