"""Request DTOs for API endpoints."""

from pydantic import Field

from artisan_match.config import settings
from artisan_match.entities import AvailabilityStatus, ExperienceLevel, QualityLevel, SortBy

from .base import CamelModel


class SearchFiltersModel(CamelModel):
    """Structured filters applied before any relevance scoring."""

    profession: str | None = Field(None, description="Profession, or one of its synonyms")
    materials: list[str] = Field(default_factory=list, description="Every listed material is required")
    techniques: list[str] = Field(default_factory=list, description="Every listed technique is required")
    location: str | None = Field(None, description="Substring of the artisan's location")
    experience_level: ExperienceLevel | None = Field(None, description="Minimum experience level")
    availability: AvailabilityStatus | None = Field(None, description="Required availability")
    quality_level: QualityLevel | None = Field(None, description="Minimum quality level")


class SearchRequest(CamelModel):
    """Request DTO for POST /search.

    Empty or whitespace-only query text is accepted here and rejected by
    the handler, so it is reported the same way as other invalid queries.
    """

    query_text: str = Field(..., description="Free-text buyer query")
    filters: SearchFiltersModel | None = Field(None, description="Optional structured filters")
    max_results: int = Field(
        default_factory=lambda: settings.default_max_results,
        description=f"Maximum matches returned (capped at {settings.max_results_cap})",
        ge=1,
    )
    min_score: float = Field(
        default_factory=lambda: settings.default_min_score,
        description="Matches scoring below this are dropped",
        ge=0.0,
        le=1.0,
    )
    sort_by: SortBy = Field(SortBy.RELEVANCE, description="Ordering of the result list")
    enable_explanations: bool = Field(False, description="Attach a prose explanation to each match")
