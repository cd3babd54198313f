from dataclasses import dataclass

from artisan_match.entities import SearchType


@dataclass
class MatchingMetrics:
    """Track performance metrics for search requests."""

    total_searches: int = 0
    intelligent_searches: int = 0
    fallback_searches: int = 0
    invalid_queries: int = 0
    fallback_after_error: int = 0
    total_processing_time_ms: float = 0.0

    @property
    def fallback_rate(self) -> float:
        """Share of searches answered by the fallback matcher."""
        if self.total_searches == 0:
            return 0.0
        return self.fallback_searches / self.total_searches

    @property
    def avg_processing_time_ms(self) -> float:
        if self.total_searches == 0:
            return 0.0
        return self.total_processing_time_ms / self.total_searches

    def record_search(self, search_type: SearchType, processing_time_ms: float) -> None:
        """Record a completed search."""
        self.total_searches += 1
        self.total_processing_time_ms += processing_time_ms
        if search_type is SearchType.INTELLIGENT:
            self.intelligent_searches += 1
        else:
            self.fallback_searches += 1

    def record_vector_failure(self) -> None:
        """Record a vector attempt that failed and was answered by fallback."""
        self.fallback_after_error += 1

    def record_invalid(self) -> None:
        """Record a query rejected before matching."""
        self.invalid_queries += 1

    def to_dict(self) -> dict[str, float | int]:
        """Convert metrics to dictionary."""
        return {
            "total_searches": self.total_searches,
            "intelligent_searches": self.intelligent_searches,
            "fallback_searches": self.fallback_searches,
            "invalid_queries": self.invalid_queries,
            "fallback_after_error": self.fallback_after_error,
            "fallback_rate": self.fallback_rate,
            "avg_processing_time_ms": self.avg_processing_time_ms,
        }
