"""Artisan Match - semantic matching of buyer queries to artisan profiles.

Ranks artisans by embedding similarity when the embedding provider is
healthy, and by deterministic keyword matching when it is not, behind
one result contract.

Layers:
    - protocols: Interface contracts (CatalogStore, EmbeddingProvider, EmbeddingStore)
    - repositories: Data access implementations
    - services: Business logic (normalizer, embedding client, matchers, orchestrator)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from artisan_match.entities import MatchQuery
    from artisan_match.repositories import InMemoryCatalogStore, OllamaEmbeddingProvider
    from artisan_match.services import MatchingOrchestrator

    orchestrator = MatchingOrchestrator.create(
        catalog=InMemoryCatalogStore.from_json("catalog.json"),
        provider=OllamaEmbeddingProvider.create(),
    )
    outcome = await orchestrator.search(MatchQuery(text="silver jewelry jaipur"))
    ```

For HTTP API:
    ```python
    from artisan_match.api.app import app
    ```
"""

from artisan_match.config import get_redis_client, settings
from artisan_match.entities import ArtisanProfile, MatchQuery, MatchResult, SearchFilters, SearchOutcome
from artisan_match.errors import (
    CatalogUnavailableError,
    EmbeddingProviderError,
    InvalidQueryError,
    MatchingError,
)
from artisan_match.protocols import CatalogStore, EmbeddingProvider, EmbeddingStore
from artisan_match.repositories import InMemoryCatalogStore, OllamaEmbeddingProvider
from artisan_match.services import MatchingOrchestrator

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "CatalogStore",
    "EmbeddingProvider",
    "EmbeddingStore",
    # Services (business logic)
    "MatchingOrchestrator",
    # Repositories (data access)
    "InMemoryCatalogStore",
    "OllamaEmbeddingProvider",
    # Entities (domain models)
    "ArtisanProfile",
    "MatchQuery",
    "MatchResult",
    "SearchFilters",
    "SearchOutcome",
    # Errors
    "MatchingError",
    "InvalidQueryError",
    "CatalogUnavailableError",
    "EmbeddingProviderError",
]
