"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import Field

from artisan_match.entities import SearchType

from .base import CamelModel


class ArtisanSummary(CamelModel):
    """Profile fields returned with each match."""

    id: str
    name: str
    profession: str
    location: str = ""
    materials: list[str] = Field(default_factory=list)
    techniques: list[str] = Field(default_factory=list)
    specializations: list[str] = Field(default_factory=list)
    experience_years: int = 0
    experience_level: str
    availability: str
    quality_level: str
    rating: float = 0.0


class MatchItem(CamelModel):
    """Single ranked match (in matches array)."""

    artisan: ArtisanSummary
    relevance_score: float = Field(..., description="Relevance in [0, 1]", ge=0.0, le=1.0)
    rank: int = Field(..., description="1-based rank, contiguous", ge=1)
    match_reasons: list[str] = Field(default_factory=list)
    profession_match: bool = False
    material_match: bool = False
    technique_match: bool = False
    location_match: bool = False
    specialization_match: bool = False
    reduced_confidence: bool = Field(False, description="Some profile fields could not be compared")
    explanation: str | None = None


class SearchResponse(CamelModel):
    """Response DTO for POST /search."""

    matches: list[MatchItem] = Field(default_factory=list, description="Ranked matches, best first")
    total_found: int = Field(..., description="Matches above minScore before truncation", ge=0)
    processing_time: float = Field(..., description="Processing time in milliseconds")
    search_type: SearchType = Field(..., description="'intelligent' (vector path) or 'fallback'")
    confidence: float = Field(..., description="Trust in the result list", ge=0.0, le=1.0)
    query_analysis: dict[str, Any] | None = Field(None, description="Keywords detected in the query")


class InvalidateResponse(CamelModel):
    """Response DTO for POST /profiles/{profile_id}/invalidate."""

    profile_id: str
    invalidated_entries: int = Field(..., description="Cached result lists removed", ge=0)


class HealthCheckResponse(CamelModel):
    """Response DTO for health check."""

    status: str = Field(..., description="'healthy', 'degraded' or 'unhealthy'")
    catalog_healthy: bool = Field(..., description="Whether the catalog store is readable")
    embedding_healthy: bool = Field(..., description="Whether the embedding provider is usable")
    embedding_store_healthy: bool = Field(..., description="Whether the embedding record store is reachable")
