"""Vector retrieval: rank a filtered candidate pool by embedding similarity.

Each profile is embedded as three fields (a weighted composite of the whole
profile, its skills and its portfolio). Field vectors are persisted as
``EmbeddingRecord``s keyed by content hash, so unchanged profiles are never
re-embedded. Ranked result lists are cached until their TTL or until the
catalog reports a change that could alter them; a list with any missing
field vector is never cached, so the next request embeds the rest.
"""

import hashlib
import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from artisan_match.cache import BoundedCache
from artisan_match.config import settings
from artisan_match.entities import (
    ArtisanProfile,
    EmbeddingRecord,
    MatchQuery,
    RankedMatches,
    ScoredCandidate,
)
from artisan_match.errors import EmbeddingProviderError
from artisan_match.protocols import CatalogStore, EmbeddingStore, ProfileChange
from artisan_match.services.embedding_client import EmbeddingClient
from artisan_match.services.fallback_matching import FallbackMatchingService
from artisan_match.services.query_analysis import (
    QueryAnalysis,
    analyze_query,
    describe_matches,
    match_fields,
)
from artisan_match.services.ranking import fetch_candidate_pool, rank_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddedField:
    """A profile field embedded separately, with its weight in the score."""

    name: str
    weight: float


VECTOR_FIELDS: tuple[EmbeddedField, ...] = (
    EmbeddedField("profile", 0.4),
    EmbeddedField("skills", 0.4),
    EmbeddedField("portfolio", 0.2),
)

CATALOG_TAG = "catalog"


def profile_tag(profile_id: str) -> str:
    return f"profile:{profile_id}"


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors, in [-1, 1].

    A zero-magnitude vector has similarity 0 with every vector.

    Raises:
        ValueError: If the vectors have different dimensions.
    """
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape:
        raise ValueError(f"Dimension mismatch: {left.shape} vs {right.shape}")

    norm = np.linalg.norm(left) * np.linalg.norm(right)
    if norm == 0:
        return 0.0
    return float(np.clip(np.dot(left, right) / norm, -1.0, 1.0))


class VectorRetrievalService:
    """Similarity ranking over the filtered candidate pool.

    Example:
        ```python
        retrieval = VectorRetrievalService.create(catalog=catalog, embedding_client=client)

        ranked = await retrieval.search(MatchQuery(text="blue pottery vases"))
        for match in ranked.matches:
            print(match.rank, match.profile.name, match.relevance_score)
        ```
    """

    def __init__(
        self,
        catalog: CatalogStore,
        embedding_client: EmbeddingClient,
        record_store: EmbeddingStore,
        cache: BoundedCache,
        fields: tuple[EmbeddedField, ...] = VECTOR_FIELDS,
        reembed_budget: int = 64,
        max_chunk_size: int = 512,
        overlap_size: int = 50,
        keyword_scorer: FallbackMatchingService | None = None,
    ) -> None:
        """Initialize the retrieval service and subscribe to catalog changes.

        Args:
            catalog: Catalog store providing the candidate pool (required).
            embedding_client: Client used for query and profile embeddings (required).
            record_store: Persistent store for profile field embeddings (required).
            cache: Cache for ranked result lists (required).
            fields: Embedded fields and their weights.
            reembed_budget: Maximum stale field texts embedded per request.
            max_chunk_size: Token budget per chunk for long field texts.
            overlap_size: Tokens carried between consecutive chunks.
            keyword_scorer: Scores candidates that have no field vector yet.
                Defaults to a FallbackMatchingService over the same catalog.
        """
        self._catalog = catalog
        self._client = embedding_client
        self._records = record_store
        self._cache = cache
        self._fields = fields
        self._reembed_budget = reembed_budget
        self._max_chunk_size = max_chunk_size
        self._overlap_size = overlap_size
        self._keyword_scorer = keyword_scorer or FallbackMatchingService(
            catalog=catalog, normalizer=embedding_client.normalizer
        )
        catalog.subscribe(self.handle_profile_change)

    @classmethod
    def create(
        cls,
        catalog: CatalogStore,
        embedding_client: EmbeddingClient,
        record_store: EmbeddingStore | None = None,
        cache: BoundedCache | None = None,
        keyword_scorer: FallbackMatchingService | None = None,
    ) -> "VectorRetrievalService":
        """Factory method to create a VectorRetrievalService with settings defaults.

        Args:
            catalog: Catalog store (required).
            embedding_client: Embedding client (required).
            record_store: If None, an in-memory record store.
            cache: If None, a BoundedCache sized from settings.
            keyword_scorer: If None, a FallbackMatchingService over the catalog.

        Returns:
            Configured VectorRetrievalService
        """
        if record_store is None:
            from artisan_match.repositories import InMemoryEmbeddingStore

            record_store = InMemoryEmbeddingStore()

        return cls(
            catalog=catalog,
            embedding_client=embedding_client,
            record_store=record_store,
            cache=cache
            or BoundedCache(
                capacity=settings.retrieval_cache_size,
                default_ttl=settings.retrieval_cache_ttl,
                name="retrieval",
            ),
            reembed_budget=settings.reembed_budget,
            keyword_scorer=keyword_scorer,
        )

    async def search(self, query: MatchQuery, analysis: QueryAnalysis | None = None) -> RankedMatches:
        """Rank the filtered candidate pool by similarity to the query.

        Args:
            query: The validated query.
            analysis: Keyword analysis of the query, used for match flags.

        Returns:
            RankedMatches for the query.

        Raises:
            CatalogUnavailableError: If the candidate pool cannot be loaded.
            EmbeddingProviderError: If the query cannot be embedded, or no
                candidate has any usable embedding.
        """
        normalizer = self._client.normalizer
        key = self.result_cache_key(query)

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Retrieval cache hit for %r", query.text)
            return cached

        pool = await fetch_candidate_pool(self._catalog, query.filters)
        if not pool:
            ranked = RankedMatches(matches=(), total_found=0, pool_size=0)
            self._cache.set(key, ranked, tags=[CATALOG_TAG])
            return ranked

        analysis = analysis or analyze_query(query.text, normalizer)
        query_vector = await self._client.embed(query.text, field_type="query")
        field_vectors = await self._field_vectors(pool)

        candidates = []
        usable = 0
        for profile in pool:
            candidate, has_vectors = self._score(profile, query_vector, field_vectors, analysis)
            if not has_vectors:
                # No field vector yet: rank on keyword points until embedded
                candidate = self._keyword_scorer.score_profile(profile, analysis)
                candidate.reduced_confidence = True
            candidates.append(candidate)
            usable += has_vectors

        if not usable:
            raise EmbeddingProviderError(
                f"No usable embeddings for {len(pool)} candidates", call="embed_batch"
            )

        ranked = rank_candidates(candidates, query, pool_size=len(pool))
        if any(candidate.reduced_confidence for candidate in candidates):
            logger.debug("Not caching ranking for %r: some field vectors are missing", query.text)
        else:
            self._cache.set(key, ranked, tags=[CATALOG_TAG, *(profile_tag(p.id) for p in pool)])
        return ranked

    def result_cache_key(self, query: MatchQuery) -> str:
        """Cache key for a ranked list: normalized query plus everything that shapes the list."""
        payload = json.dumps(
            {
                "query": self._client.normalizer.normalize(query.text),
                "filters": query.filters.cache_key(),
                "max_results": query.max_results,
                "min_score": query.min_score,
                "sort_by": query.sort_by.value,
                "explanations": query.enable_explanations,
                "model": self._client.model_name,
            },
            sort_keys=True,
        )
        return "retrieval:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def field_text(self, profile: ArtisanProfile, field_name: str) -> str:
        """Text embedded for one field of a profile."""
        normalizer = self._client.normalizer
        if field_name == "profile":
            return normalizer.preprocess_profile(profile)
        if field_name == "skills":
            values = profile.skills + profile.materials + profile.techniques
        elif field_name == "portfolio":
            values = profile.specializations + profile.products
        else:
            raise ValueError(f"Unknown embedded field: {field_name}")
        return normalizer.normalize(", ".join(values))

    async def _field_vectors(
        self,
        pool: list[ArtisanProfile],
    ) -> dict[tuple[str, str], tuple[float, ...] | None]:
        """Fresh vectors for every non-empty field of every candidate.

        Fresh records are read from the record store. Stale or missing ones
        are re-embedded (chunked, then chunk-averaged) up to the re-embed
        budget, candidates without any fresh vector first; whatever is left
        over, or fails, maps to None.
        """
        normalizer = self._client.normalizer
        vectors: dict[tuple[str, str], tuple[float, ...] | None] = {}
        stale: list[tuple[str, str, str, str]] = []

        for profile in pool:
            for embedded_field in self._fields:
                text = self.field_text(profile, embedded_field.name)
                if not text:
                    continue
                content_hash = normalizer.content_hash(text, embedded_field.name)
                record = self._records.get(profile.id, embedded_field.name)
                if (
                    record is not None
                    and record.is_fresh(content_hash)
                    and record.model_name == self._client.model_name
                ):
                    vectors[(profile.id, embedded_field.name)] = record.vector
                else:
                    vectors[(profile.id, embedded_field.name)] = None
                    stale.append((profile.id, embedded_field.name, text, content_hash))

        scored = {owner_id for (owner_id, _), vector in vectors.items() if vector is not None}
        stale.sort(key=lambda item: item[0] in scored)

        if len(stale) > self._reembed_budget:
            logger.warning(
                "Re-embed budget exceeded: %d stale fields, embedding %d",
                len(stale),
                self._reembed_budget,
            )
            stale = stale[: self._reembed_budget]

        if stale:
            await self._reembed(stale, vectors)
        return vectors

    async def _reembed(
        self,
        stale: list[tuple[str, str, str, str]],
        vectors: dict[tuple[str, str], tuple[float, ...] | None],
    ) -> None:
        normalizer = self._client.normalizer
        chunks: list[str] = []
        spans: list[tuple[int, int]] = []
        for _, _, text, _ in stale:
            pieces = normalizer.chunk(text, self._max_chunk_size, self._overlap_size)
            spans.append((len(chunks), len(chunks) + len(pieces)))
            chunks.extend(pieces)

        batch = await self._client.embed_batch(chunks, field_type="document")

        for (owner_id, field_name, _, content_hash), (start, end) in zip(stale, spans):
            pieces = [vector for vector in batch.vectors[start:end] if vector is not None]
            if not pieces:
                continue
            vector = tuple(float(value) for value in np.mean(np.asarray(pieces, dtype=np.float64), axis=0))
            vectors[(owner_id, field_name)] = vector
            self._records.put(
                EmbeddingRecord(
                    owner_id=owner_id,
                    field_type=field_name,
                    content_hash=content_hash,
                    vector=vector,
                    model_name=self._client.model_name,
                )
            )

    def _score(
        self,
        profile: ArtisanProfile,
        query_vector: Sequence[float],
        field_vectors: dict[tuple[str, str], tuple[float, ...] | None],
        analysis: QueryAnalysis,
    ) -> tuple[ScoredCandidate, bool]:
        weighted = 0.0
        total_weight = 0.0
        gap = False
        for embedded_field in self._fields:
            key = (profile.id, embedded_field.name)
            if key not in field_vectors:
                continue
            vector = field_vectors[key]
            if vector is None or len(vector) != len(query_vector):
                gap = True
                continue
            similarity = max(0.0, cosine_similarity(query_vector, vector))
            weighted += similarity * embedded_field.weight
            total_weight += embedded_field.weight

        score = weighted / total_weight if total_weight else 0.0
        matches = match_fields(profile, analysis, self._client.normalizer)
        reasons = describe_matches(matches, profile)
        if total_weight:
            reasons.append(f"Semantic similarity {score:.0%}")

        candidate = ScoredCandidate(
            profile=profile,
            score=score,
            reasons=reasons,
            profession_match=bool(matches.profession),
            material_match=bool(matches.materials),
            technique_match=bool(matches.techniques),
            location_match=bool(matches.location),
            specialization_match=bool(matches.specializations),
            reduced_confidence=gap,
        )
        return candidate, total_weight > 0

    def handle_profile_change(self, change: ProfileChange) -> None:
        """Catalog change listener: drop results and records that reference the profile."""
        if change.kind != "created":
            self.invalidate_profile(change.profile_id)
        if change.kind == "deleted":
            return
        # A new or edited profile may now belong to any cached pool
        removed = self._cache.invalidate_tag(CATALOG_TAG)
        logger.info("Profile %s %s: dropped %d cached result lists", change.profile_id, change.kind, removed)

    def invalidate_profile(self, profile_id: str) -> int:
        """Drop cached result lists and stored embeddings for one profile.

        Returns:
            Number of cached result lists removed
        """
        removed = self._cache.invalidate_tag(profile_tag(profile_id))
        records = self._records.delete_owner(profile_id)
        logger.info(
            "Invalidated profile %s: %d cached result lists, %d embedding records",
            profile_id,
            removed,
            records,
        )
        return removed

    def get_stats(self) -> dict[str, Any]:
        """Get retrieval statistics."""
        return {
            "result_cache": self._cache.get_stats(),
            "embedding_records": self._records.count_all(),
            "fields": {embedded_field.name: embedded_field.weight for embedded_field in self._fields},
            "reembed_budget": self._reembed_budget,
        }

    @property
    def cache(self) -> BoundedCache:
        return self._cache

    @property
    def record_store(self) -> EmbeddingStore:
        return self._records
