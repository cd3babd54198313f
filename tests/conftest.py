"""Shared fixtures: a sample catalog and a deterministic fake embedding provider."""

import asyncio
import hashlib
import re

import pytest

from artisan_match.cache import BoundedCache
from artisan_match.entities import (
    ArtisanProfile,
    AvailabilityStatus,
    ExperienceLevel,
    QualityLevel,
    SearchFilters,
)
from artisan_match.errors import CatalogUnavailableError, EmbeddingTransportError
from artisan_match.repositories import InMemoryCatalogStore, InMemoryEmbeddingStore
from artisan_match.services import (
    EmbeddingClient,
    FallbackMatchingService,
    MatchingOrchestrator,
    ProviderHealth,
    TextNormalizer,
    VectorRetrievalService,
)


class FakeEmbeddingProvider:
    """Hashed bag-of-words embeddings; counts calls and can fail or hang."""

    def __init__(self, dimension: int = 256, delay: float = 0.0) -> None:
        self._dimension = dimension
        self.delay = delay
        self.calls = 0
        self.batch_calls = 0
        self.fail = False
        self.hang = False
        self.fail_substrings: set[str] = set()
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def model_name(self) -> str:
        return "fake-bow"

    def vector(self, text: str) -> list[float]:
        values = [0.0] * self._dimension
        for word in re.findall(r"\w+", text.lower()):
            digest = hashlib.md5(word.encode("utf-8")).digest()
            values[int.from_bytes(digest[:4], "big") % self._dimension] += 1.0
        return values

    async def encode(self, text: str) -> list[float]:
        self.calls += 1
        await self._call([text])
        return self.vector(text)

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        self.batch_calls += 1
        await self._call(texts)
        return [self.vector(text) for text in texts]

    async def _call(self, texts: list[str]) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.hang:
                await asyncio.sleep(3600)
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise EmbeddingTransportError("fake provider is down")
            if any(marker in text for text in texts for marker in self.fail_substrings):
                raise EmbeddingTransportError("fake provider rejected the text")
        finally:
            self.in_flight -= 1

    async def is_available(self) -> bool:
        return not self.fail


class RecordingCatalogStore(InMemoryCatalogStore):
    """In-memory catalog that counts reads and can be switched off."""

    def __init__(self, profiles=()) -> None:
        super().__init__(profiles)
        self.queries = 0
        self.unavailable = False

    async def query_profiles(self, filters: SearchFilters) -> list[ArtisanProfile]:
        self.queries += 1
        if self.unavailable:
            raise CatalogUnavailableError("catalog is offline")
        return await super().query_profiles(filters)

    async def get_profile(self, profile_id: str) -> ArtisanProfile | None:
        if self.unavailable:
            raise CatalogUnavailableError("catalog is offline")
        return await super().get_profile(profile_id)


@pytest.fixture
def profiles() -> list[ArtisanProfile]:
    return [
        ArtisanProfile(
            id="art-1",
            name="Lakshmi Devi",
            profession="jewelry",
            materials=("silver", "gemstones"),
            techniques=("filigree", "engraving"),
            skills=("stone setting",),
            specializations=("bridal necklaces",),
            products=("necklace", "earrings"),
            description="Handmade silver jewelry with traditional filigree work.",
            location="Jaipur, Rajasthan",
            experience_years=15,
            experience_level=ExperienceLevel.EXPERT,
            quality_level=QualityLevel.PREMIUM,
            business_type="family business",
            rating=4.8,
        ),
        ArtisanProfile(
            id="art-2",
            name="Ramesh Kumar",
            profession="pottery",
            materials=("clay", "terracotta"),
            techniques=("wheel throwing", "glazing"),
            skills=("kiln firing",),
            products=("vase", "bowl"),
            description="Blue pottery vases and bowls fired in a wood kiln.",
            location="Delhi",
            experience_years=8,
            experience_level=ExperienceLevel.INTERMEDIATE,
            quality_level=QualityLevel.STANDARD,
            business_type="individual",
            rating=4.2,
        ),
        ArtisanProfile(
            id="art-3",
            name="Anil Sharma",
            profession="woodworking",
            materials=("teak", "rosewood"),
            techniques=("carving", "inlay"),
            skills=("furniture design",),
            products=("chair", "table"),
            description="Hand-carved wooden furniture for homes and temples.",
            location="Udaipur, Rajasthan",
            experience_years=22,
            experience_level=ExperienceLevel.MASTER,
            quality_level=QualityLevel.LUXURY,
            business_type="cooperative",
            rating=4.9,
        ),
        ArtisanProfile(
            id="art-4",
            name="Fatima Begum",
            profession="textiles",
            materials=("silk", "cotton"),
            techniques=("block printing", "weaving"),
            skills=("natural dyeing",),
            products=("saree", "shawl"),
            description="Handwoven Banarasi silk sarees with natural dyes.",
            location="Varanasi, Uttar Pradesh",
            experience_years=12,
            experience_level=ExperienceLevel.EXPERT,
            availability=AvailabilityStatus.BUSY,
            quality_level=QualityLevel.PREMIUM,
            business_type="individual",
            rating=4.5,
        ),
    ]


@pytest.fixture
def catalog(profiles) -> RecordingCatalogStore:
    return RecordingCatalogStore(profiles)


@pytest.fixture
def provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def normalizer() -> TextNormalizer:
    return TextNormalizer()


@pytest.fixture
def health() -> ProviderHealth:
    return ProviderHealth(window=20, min_samples=3, failure_threshold=0.5, cooldown=30.0)


@pytest.fixture
def client(provider, normalizer, health) -> EmbeddingClient:
    return EmbeddingClient(
        provider=provider,
        normalizer=normalizer,
        cache=BoundedCache(capacity=500, default_ttl=3600, name="embeddings"),
        health=health,
        batch_size=16,
        concurrency=4,
        timeout=0.2,
        retry_backoff=0.0,
    )


@pytest.fixture
def record_store() -> InMemoryEmbeddingStore:
    return InMemoryEmbeddingStore()


@pytest.fixture
def retrieval(catalog, client, record_store) -> VectorRetrievalService:
    return VectorRetrievalService(
        catalog=catalog,
        embedding_client=client,
        record_store=record_store,
        cache=BoundedCache(capacity=100, default_ttl=600, name="retrieval"),
    )


@pytest.fixture
def fallback(catalog, normalizer) -> FallbackMatchingService:
    return FallbackMatchingService(catalog=catalog, normalizer=normalizer)


@pytest.fixture
def orchestrator(client, retrieval, fallback, catalog) -> MatchingOrchestrator:
    return MatchingOrchestrator(
        embedding_client=client,
        retrieval=retrieval,
        fallback=fallback,
        catalog=catalog,
        vector_timeout=1.0,
        max_results_cap=50,
    )
