import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Embedding provider
    embedding_provider: str = os.getenv("EMBEDDING_PROVIDER", "ollama")  # or "local"
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "embeddinggemma")
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # Embedding client
    embedding_timeout: float = float(os.getenv("EMBEDDING_TIMEOUT", "5.0"))
    embedding_batch_size: int = int(os.getenv("EMBEDDING_BATCH_SIZE", "16"))
    embedding_concurrency: int = int(os.getenv("EMBEDDING_CONCURRENCY", "4"))
    embedding_retry_backoff: float = float(os.getenv("EMBEDDING_RETRY_BACKOFF", "0.25"))
    embedding_cache_ttl: int = int(os.getenv("EMBEDDING_CACHE_TTL", "86400"))  # 1 day
    embedding_cache_size: int = int(os.getenv("EMBEDDING_CACHE_SIZE", "5000"))

    # Retrieval cache
    retrieval_cache_ttl: int = int(os.getenv("RETRIEVAL_CACHE_TTL", "600"))  # 10 minutes
    retrieval_cache_size: int = int(os.getenv("RETRIEVAL_CACHE_SIZE", "1000"))

    # Provider health
    health_window: int = int(os.getenv("HEALTH_WINDOW", "20"))
    health_min_samples: int = int(os.getenv("HEALTH_MIN_SAMPLES", "3"))
    health_failure_threshold: float = float(os.getenv("HEALTH_FAILURE_THRESHOLD", "0.5"))
    health_latency_budget_ms: float = float(os.getenv("HEALTH_LATENCY_BUDGET_MS", "3000"))
    health_cooldown: float = float(os.getenv("HEALTH_COOLDOWN", "30"))

    # Matching
    vector_path_timeout: float = float(os.getenv("VECTOR_PATH_TIMEOUT", "8.0"))
    reembed_budget: int = int(os.getenv("REEMBED_BUDGET", "64"))
    default_max_results: int = int(os.getenv("DEFAULT_MAX_RESULTS", "20"))
    max_results_cap: int = int(os.getenv("MAX_RESULTS_CAP", "50"))
    default_min_score: float = float(os.getenv("DEFAULT_MIN_SCORE", "0.2"))

    # Catalog seed file (JSON list of profiles)
    catalog_path: str | None = os.getenv("CATALOG_PATH")

    # Embedding record store
    embedding_store: str = os.getenv("EMBEDDING_STORE", "memory")  # or "redis"
    embedding_store_prefix: str = os.getenv("EMBEDDING_STORE_PREFIX", "artisan_embeddings")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # API
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.embedding_provider not in ("ollama", "local"):
            raise ValueError(
                f"EMBEDDING_PROVIDER must be 'ollama' or 'local', got {self.embedding_provider!r}"
            )

        if self.embedding_store not in ("memory", "redis"):
            raise ValueError(
                f"EMBEDDING_STORE must be 'memory' or 'redis', got {self.embedding_store!r}"
            )

        if not 0 <= self.default_min_score <= 1:
            raise ValueError("DEFAULT_MIN_SCORE must be between 0 and 1")

        if not 0 < self.health_failure_threshold <= 1:
            raise ValueError("HEALTH_FAILURE_THRESHOLD must be in (0, 1]")

        if self.default_max_results < 1 or self.default_max_results > self.max_results_cap:
            raise ValueError(
                f"DEFAULT_MAX_RESULTS must be between 1 and MAX_RESULTS_CAP ({self.max_results_cap})"
            )

        for name in ("embedding_batch_size", "embedding_concurrency", "health_window"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name.upper()} must be at least 1")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=False,
    )
