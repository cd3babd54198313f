"""Embedding client: caching, batching and health tracking around a provider.

This service sits between the matchers and an ``EmbeddingProvider``:

- every text is normalized before it is embedded, so cache keys are stable
- vectors are cached under a content-hash key with a TTL
- provider calls run under a bounded semaphore and a timeout
- every call outcome feeds the rolling ``ProviderHealth``
- provider failures surface only as ``EmbeddingProviderError``
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from artisan_match.cache import BoundedCache
from artisan_match.config import settings
from artisan_match.errors import (
    EmbeddingInvalidResponseError,
    EmbeddingProviderError,
    EmbeddingTimeoutError,
    EmbeddingTransportError,
)
from artisan_match.protocols import EmbeddingProvider
from artisan_match.services.provider_health import ProviderHealth
from artisan_match.services.text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class BatchEmbeddingResult:
    """Vectors for a batch of texts, in input order.

    Items the provider could not embed (after one retry) are None and
    listed in ``missing``; the rest of the batch is still usable.
    """

    vectors: tuple[tuple[float, ...] | None, ...]

    @property
    def missing(self) -> list[int]:
        return [index for index, vector in enumerate(self.vectors) if vector is None]

    @property
    def complete(self) -> bool:
        return not self.missing

    def __len__(self) -> int:
        return len(self.vectors)


class EmbeddingClient:
    """Cached, batched and health-tracked access to an embedding provider.

    Example:
        ```python
        client = EmbeddingClient.create(provider=OllamaEmbeddingProvider.create())

        vector = await client.embed("hand-carved rosewood chair")
        batch = await client.embed_batch(["silver filigree", "blue pottery"], field_type="skills")
        if not batch.complete:
            print("missing:", batch.missing)
        ```
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        normalizer: TextNormalizer,
        cache: BoundedCache,
        health: ProviderHealth,
        batch_size: int = 16,
        concurrency: int = 4,
        timeout: float = 5.0,
        retry_backoff: float = 0.25,
    ) -> None:
        """Initialize the embedding client.

        Args:
            provider: Embedding provider (required).
            normalizer: Normalizer used to build cache keys (required).
            cache: Cache for vectors (required).
            health: Rolling health tracker (required).
            batch_size: Maximum texts per provider batch call.
            concurrency: Maximum provider calls in flight.
            timeout: Seconds before a provider call is cancelled.
            retry_backoff: Seconds to wait before retrying failed batch items.
        """
        self._provider = provider
        self._normalizer = normalizer
        self._cache = cache
        self._health = health
        self._batch_size = batch_size
        self._semaphore = asyncio.Semaphore(concurrency)
        self._timeout = timeout
        self._retry_backoff = retry_backoff
        self._dimension: int | None = None
        self._provider_calls = 0

    @classmethod
    def create(
        cls,
        provider: EmbeddingProvider,
        normalizer: TextNormalizer | None = None,
        cache: BoundedCache | None = None,
        health: ProviderHealth | None = None,
    ) -> "EmbeddingClient":
        """Factory method to create an EmbeddingClient with settings defaults.

        Args:
            provider: Embedding provider (required).
            normalizer: If None, a default TextNormalizer.
            cache: If None, a BoundedCache sized from settings.
            health: If None, a ProviderHealth configured from settings.

        Returns:
            Configured EmbeddingClient
        """
        return cls(
            provider=provider,
            normalizer=normalizer or TextNormalizer(),
            cache=cache
            or BoundedCache(
                capacity=settings.embedding_cache_size,
                default_ttl=settings.embedding_cache_ttl,
                name="embeddings",
            ),
            health=health
            or ProviderHealth(
                window=settings.health_window,
                min_samples=settings.health_min_samples,
                failure_threshold=settings.health_failure_threshold,
                latency_budget_ms=settings.health_latency_budget_ms,
                cooldown=settings.health_cooldown,
            ),
            batch_size=settings.embedding_batch_size,
            concurrency=settings.embedding_concurrency,
            timeout=settings.embedding_timeout,
            retry_backoff=settings.embedding_retry_backoff,
        )

    def is_healthy(self) -> bool:
        """Check whether the provider should be used for the next request."""
        return self._health.is_healthy()

    async def is_available(self) -> bool:
        """Probe the provider directly, bypassing the cache and health window."""
        return await self._provider.is_available()

    def cache_key(self, normalized_text: str, field_type: str) -> str:
        """Cache key for a normalized text of a given field type."""
        digest = self._normalizer.content_hash(normalized_text, field_type)
        return f"embedding:{self._provider.model_name}:{digest}"

    async def embed(self, text: str, field_type: str = "query") -> list[float]:
        """Embed one text, using the cache when possible.

        Args:
            text: Text to embed (normalized before lookup).
            field_type: Field the text belongs to; part of the cache key.

        Returns:
            The embedding vector.

        Raises:
            EmbeddingProviderError: If the provider call fails.
            ValueError: If the text is empty.
        """
        normalized = self._prepare(text)
        key = self.cache_key(normalized, field_type)

        cached = self._cache.get(key)
        if cached is not None:
            return list(cached)

        raw = await self._call("encode", self._provider.encode, normalized)
        vector = self._validate_vector(raw)
        if vector is None:
            error = EmbeddingInvalidResponseError("Provider returned an invalid vector", call="encode")
            self._health.record_failure(error)
            raise error

        self._cache.set(key, vector)
        return list(vector)

    async def embed_batch(self, texts: Sequence[str], field_type: str = "document") -> BatchEmbeddingResult:
        """Embed many texts with caching, batching and per-item recovery.

        Cached texts are served from the cache; the rest are sent to the
        provider in batches of at most ``batch_size``. When a batch call
        fails, or returns an unusable vector for some item, the affected
        items are retried once individually after a backoff. Items that
        still fail are reported as missing; this method never raises for
        provider failures.

        Args:
            texts: Texts to embed.
            field_type: Field the texts belong to; part of the cache key.

        Returns:
            BatchEmbeddingResult aligned with ``texts``.
        """
        vectors: list[tuple[float, ...] | None] = [None] * len(texts)
        pending: dict[str, tuple[str, list[int]]] = {}

        for index, text in enumerate(texts):
            normalized = self._prepare(text)
            key = self.cache_key(normalized, field_type)
            cached = self._cache.get(key)
            if cached is not None:
                vectors[index] = cached
            elif key in pending:
                pending[key][1].append(index)
            else:
                pending[key] = (normalized, [index])

        items = list(pending.items())
        batches = [items[start : start + self._batch_size] for start in range(0, len(items), self._batch_size)]
        results = await asyncio.gather(*(self._embed_items(batch) for batch in batches))

        for batch_result in results:
            for key, vector in batch_result.items():
                for index in pending[key][1]:
                    vectors[index] = vector

        result = BatchEmbeddingResult(vectors=tuple(vectors))
        if result.missing:
            logger.warning(
                "Embedding batch incomplete: %d of %d %s texts missing",
                len(result.missing),
                len(texts),
                field_type,
            )
        return result

    async def _embed_items(
        self,
        items: list[tuple[str, tuple[str, list[int]]]],
    ) -> dict[str, tuple[float, ...] | None]:
        """Embed one provider batch, retrying failed items once."""
        texts = [normalized for _, (normalized, _) in items]
        embedded: dict[str, tuple[float, ...] | None] = {}
        failed: list[tuple[str, str]] = []

        try:
            raw_vectors = await self._call("encode_batch", self._provider.encode_batch, texts)
        except EmbeddingProviderError:
            raw_vectors = None

        if raw_vectors is not None and len(raw_vectors) != len(texts):
            logger.warning(
                "Provider returned %d vectors for %d texts; retrying items individually",
                len(raw_vectors),
                len(texts),
            )
            raw_vectors = None

        for position, (key, (normalized, _)) in enumerate(items):
            vector = self._validate_vector(raw_vectors[position]) if raw_vectors is not None else None
            if vector is None:
                failed.append((key, normalized))
            else:
                embedded[key] = vector
                self._cache.set(key, vector)

        if failed:
            await asyncio.sleep(self._retry_backoff)
            retried = await asyncio.gather(*(self._retry_item(normalized) for _, normalized in failed))
            for (key, _), vector in zip(failed, retried):
                embedded[key] = vector
                if vector is not None:
                    self._cache.set(key, vector)

        return embedded

    async def _retry_item(self, text: str) -> tuple[float, ...] | None:
        try:
            raw = await self._call("encode_item", self._provider.encode, text)
        except EmbeddingProviderError:
            return None
        vector = self._validate_vector(raw)
        if vector is None:
            self._health.record_failure(
                EmbeddingInvalidResponseError("Provider returned an invalid vector", call="encode_item")
            )
        return vector

    async def _call(self, call: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run one provider call under the concurrency bound and timeout.

        Raises:
            EmbeddingProviderError: For any failure, including timeouts.
        """
        async with self._semaphore:
            self._provider_calls += 1
            start_time = time.perf_counter()
            try:
                result = await asyncio.wait_for(func(*args), timeout=self._timeout)
            except asyncio.TimeoutError as e:
                error = EmbeddingTimeoutError(
                    f"Embedding provider timed out after {self._timeout:.2f}s", call=call
                )
                self._record_failure(error)
                raise error from e
            except EmbeddingProviderError as e:
                e.call = call
                self._record_failure(e)
                raise
            except Exception as e:
                error = EmbeddingTransportError(f"Embedding provider call failed: {e}", call=call)
                self._record_failure(error)
                raise error from e

            latency_ms = (time.perf_counter() - start_time) * 1000
            self._health.record_success(latency_ms)
            return result

    def _record_failure(self, error: EmbeddingProviderError) -> None:
        logger.warning(
            "Embedding provider %s failed: %s (%s, transient=%s)",
            error.call,
            type(error).__name__,
            error,
            error.transient,
        )
        self._health.record_failure(error)

    def _prepare(self, text: str) -> str:
        normalized = self._normalizer.normalize(text) or " ".join(text.split()).lower()
        if not normalized:
            raise ValueError("Cannot embed empty text")
        return normalized

    def _validate_vector(self, raw: Any) -> tuple[float, ...] | None:
        if raw is None:
            return None
        try:
            vector = tuple(float(value) for value in raw)
        except (TypeError, ValueError):
            return None
        if not vector:
            return None
        if self._dimension is None:
            self._dimension = len(vector)
        elif len(vector) != self._dimension:
            logger.warning("Discarding vector of dimension %d (expected %d)", len(vector), self._dimension)
            return None
        return vector

    async def close(self) -> None:
        """Release provider resources (HTTP clients, models)."""
        close = getattr(self._provider, "close", None)
        if close is not None:
            await close()

    def get_stats(self) -> dict[str, Any]:
        """Get client statistics."""
        return {
            "embedding_model": self._provider.model_name,
            "embedding_dimension": self.dimension,
            "provider_calls": self._provider_calls,
            "cache": self._cache.get_stats(),
            "health": self._health.snapshot(),
        }

    @property
    def dimension(self) -> int:
        """Vector dimension observed so far, or the provider's declared one."""
        return self._dimension or self._provider.dimension

    @property
    def model_name(self) -> str:
        return self._provider.model_name

    @property
    def provider_calls(self) -> int:
        """Number of provider calls made (including retries)."""
        return self._provider_calls

    @property
    def health(self) -> ProviderHealth:
        return self._health

    @property
    def normalizer(self) -> TextNormalizer:
        return self._normalizer
