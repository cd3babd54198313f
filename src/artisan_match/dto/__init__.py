"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract (camelCase JSON).
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import SearchFiltersModel, SearchRequest
from .responses import (
    ArtisanSummary,
    HealthCheckResponse,
    InvalidateResponse,
    MatchItem,
    SearchResponse,
)

__all__ = [
    "SearchRequest",
    "SearchFiltersModel",
    "ArtisanSummary",
    "MatchItem",
    "SearchResponse",
    "InvalidateResponse",
    "HealthCheckResponse",
]
