"""HTTP handlers for search operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import logging

from fastapi import HTTPException, status

from artisan_match.dto import (
    ArtisanSummary,
    HealthCheckResponse,
    InvalidateResponse,
    MatchItem,
    SearchRequest,
    SearchResponse,
)
from artisan_match.entities import MatchQuery, MatchResult, SearchFilters
from artisan_match.errors import CatalogUnavailableError, InvalidQueryError
from artisan_match.services import MatchingOrchestrator

logger = logging.getLogger(__name__)


class SearchHandler:
    """HTTP handlers for search operations.

    This handler delegates business logic to MatchingOrchestrator
    and handles HTTP-specific concerns like:
    - Converting DTOs to entities and back
    - Mapping domain errors to status codes (400, 503, 500)

    Example:
        ```python
        handler = SearchHandler(orchestrator=MatchingOrchestrator.create(catalog, provider))

        @app.post("/search", response_model=SearchResponse)
        async def search(request: SearchRequest):
            return await handler.search(request)
        ```
    """

    def __init__(self, orchestrator: MatchingOrchestrator) -> None:
        """Initialize the search handler.

        Args:
            orchestrator: The matching orchestrator (required).
        """
        self._orchestrator = orchestrator

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Handle POST /search requests.

        Args:
            request: The search request DTO

        Returns:
            SearchResponse with ranked matches

        Raises:
            HTTPException: 400 for an invalid query, 503 when the catalog is
                unavailable, 500 for anything else
        """
        try:
            outcome = await self._orchestrator.search(self._to_query(request))
        except InvalidQueryError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
        except CatalogUnavailableError as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=f"Catalog unavailable: {e}",
            ) from e
        except Exception as e:
            logger.exception("Search failed for %r", request.query_text)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Search failed: {e}",
            ) from e

        return SearchResponse(
            matches=[self._to_item(match) for match in outcome.matches],
            total_found=outcome.total_found,
            processing_time=round(outcome.processing_time_ms, 2),
            search_type=outcome.search_type,
            confidence=outcome.confidence,
            query_analysis=outcome.query_analysis,
        )

    async def invalidate_profile(self, profile_id: str) -> InvalidateResponse:
        """Handle POST /profiles/{profile_id}/invalidate requests."""
        removed = self._orchestrator.invalidate_profile(profile_id)
        return InvalidateResponse(profile_id=profile_id, invalidated_entries=removed)

    async def get_stats(self) -> dict:
        """Handle GET /stats requests."""
        try:
            return self._orchestrator.get_stats()
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to get stats: {e}",
            ) from e

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        The service is degraded, not down, while only the embedding
        provider is unhealthy: searches are still answered by fallback.
        """
        health = await self._orchestrator.health_check()
        if not health["catalog_healthy"]:
            overall = "unhealthy"
        elif not (health["embedding_healthy"] and health["embedding_store_healthy"]):
            overall = "degraded"
        else:
            overall = "healthy"

        return HealthCheckResponse(
            status=overall,
            catalog_healthy=health["catalog_healthy"],
            embedding_healthy=health["embedding_healthy"],
            embedding_store_healthy=health["embedding_store_healthy"],
        )

    @staticmethod
    def _to_query(request: SearchRequest) -> MatchQuery:
        filters = SearchFilters()
        if request.filters is not None:
            filters = SearchFilters(
                profession=request.filters.profession,
                materials=tuple(request.filters.materials),
                techniques=tuple(request.filters.techniques),
                location=request.filters.location,
                experience_level=request.filters.experience_level,
                availability=request.filters.availability,
                quality_level=request.filters.quality_level,
            )
        return MatchQuery(
            text=request.query_text,
            filters=filters,
            max_results=request.max_results,
            min_score=request.min_score,
            sort_by=request.sort_by,
            enable_explanations=request.enable_explanations,
        )

    @staticmethod
    def _to_item(match: MatchResult) -> MatchItem:
        profile = match.profile
        return MatchItem(
            artisan=ArtisanSummary(
                id=profile.id,
                name=profile.name,
                profession=profile.profession,
                location=profile.location,
                materials=list(profile.materials),
                techniques=list(profile.techniques),
                specializations=list(profile.specializations),
                experience_years=profile.experience_years,
                experience_level=profile.experience_level.value,
                availability=profile.availability.value,
                quality_level=profile.quality_level.value,
                rating=profile.rating,
            ),
            relevance_score=match.relevance_score,
            rank=match.rank,
            match_reasons=list(match.match_reasons),
            profession_match=match.profession_match,
            material_match=match.material_match,
            technique_match=match.technique_match,
            location_match=match.location_match,
            specialization_match=match.specialization_match,
            reduced_confidence=match.reduced_confidence,
            explanation=match.explanation,
        )
