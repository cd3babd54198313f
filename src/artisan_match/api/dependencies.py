"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from artisan_match.config import settings
from artisan_match.handlers import SearchHandler
from artisan_match.protocols import EmbeddingProvider, EmbeddingStore
from artisan_match.repositories import (
    InMemoryCatalogStore,
    InMemoryEmbeddingStore,
    OllamaEmbeddingProvider,
    RedisEmbeddingStore,
)
from artisan_match.services import MatchingOrchestrator

logger = logging.getLogger(__name__)


def get_orchestrator(request: Request) -> MatchingOrchestrator:
    """Dependency injection for MatchingOrchestrator from app.state.

    Raises:
        RuntimeError: If the orchestrator is not initialized
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise RuntimeError("MatchingOrchestrator not initialized. Check lifespan setup.")
    return orchestrator


def get_handler(request: Request) -> SearchHandler:
    """Dependency injection for SearchHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "search_handler", None)
    if handler is None:
        raise RuntimeError("SearchHandler not initialized. Check lifespan setup.")
    return handler


def build_embedding_provider() -> EmbeddingProvider:
    """Create the embedding provider selected by EMBEDDING_PROVIDER."""
    if settings.embedding_provider == "local":
        # Imported here so sentence-transformers loads only when selected
        from artisan_match.repositories.local_embedding_provider import LocalEmbeddingProvider

        return LocalEmbeddingProvider.create()
    return OllamaEmbeddingProvider.create()


def build_embedding_store() -> EmbeddingStore:
    """Create the embedding record store selected by EMBEDDING_STORE."""
    if settings.embedding_store == "redis":
        return RedisEmbeddingStore.create()
    return InMemoryEmbeddingStore()


def build_catalog() -> InMemoryCatalogStore:
    """Load the catalog seed file, or start with an empty catalog."""
    if settings.catalog_path:
        return InMemoryCatalogStore.from_json(settings.catalog_path)
    logger.warning("CATALOG_PATH not set; starting with an empty catalog")
    return InMemoryCatalogStore()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Repositories (catalog, embedding provider, record store)
    2. Orchestrator (business logic) - stored in app.state.orchestrator
    3. Handler (HTTP endpoints) - stored in app.state.search_handler

    Cleanup:
        Closes the provider and removes all services from app.state on shutdown
    """
    catalog = build_catalog()
    provider = build_embedding_provider()
    record_store = build_embedding_store()

    orchestrator = MatchingOrchestrator.create(
        catalog=catalog,
        provider=provider,
        record_store=record_store,
    )

    app.state.catalog = catalog
    app.state.orchestrator = orchestrator
    app.state.search_handler = SearchHandler(orchestrator=orchestrator)

    logger.info(
        "Matching service initialized (provider=%s, model=%s, store=%s, profiles=%d)",
        settings.embedding_provider,
        provider.model_name,
        settings.embedding_store,
        len(catalog),
    )

    yield

    await orchestrator.close()
    del app.state.search_handler
    del app.state.orchestrator
    del app.state.catalog
    logger.info("Matching service shut down")


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[SearchHandler, Depends(get_handler)]
OrchestratorDep = Annotated[MatchingOrchestrator, Depends(get_orchestrator)]
