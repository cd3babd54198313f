"""
Tests for the embedding client: caching, batching, retries and timeouts.
"""

import pytest

from artisan_match.cache import BoundedCache
from artisan_match.errors import EmbeddingProviderError, EmbeddingTimeoutError
from artisan_match.services import EmbeddingClient, ProviderHealth


async def test_embed_twice_makes_one_provider_call(client, provider):
    first = await client.embed("hand carved rosewood chair")
    second = await client.embed("hand carved rosewood chair")

    assert provider.calls == 1
    assert first == second
    stats = client.get_stats()["cache"]
    assert stats["misses"] == 1
    assert stats["hits"] == 1


async def test_cache_key_uses_normalized_text(client, provider):
    await client.embed("Silver   Filigree")
    await client.embed("silver filigree")
    assert provider.calls == 1


async def test_field_type_separates_cache_entries(client, provider):
    await client.embed("silver filigree", field_type="query")
    await client.embed("silver filigree", field_type="skills")
    assert provider.calls == 2


async def test_embed_rejects_empty_text(client):
    with pytest.raises(ValueError):
        await client.embed("   ")


async def test_embed_batch_dedupes_and_caches(client, provider):
    result = await client.embed_batch(["blue pottery", "silk saree", "Blue  Pottery"])

    assert result.complete
    assert provider.batch_calls == 1
    assert result.vectors[0] == result.vectors[2]

    await client.embed_batch(["silk saree"])
    assert provider.calls == 1


async def test_embed_batch_respects_batch_size(provider, normalizer, health):
    client = EmbeddingClient(
        provider=provider,
        normalizer=normalizer,
        cache=BoundedCache(capacity=100, default_ttl=60),
        health=health,
        batch_size=2,
        retry_backoff=0.0,
    )

    result = await client.embed_batch(["silver ring", "clay pot", "silk saree", "teak chair", "brass lamp"])

    assert len(result) == 5
    assert result.complete
    assert provider.batch_calls == 3


async def test_failed_item_does_not_fail_batch(client, provider):
    provider.fail_substrings = {"broken"}

    result = await client.embed_batch(["silver ring", "broken record", "clay pot"])

    assert result.missing == [1]
    assert result.vectors[0] is not None
    assert result.vectors[2] is not None
    # one batch call, then one retry per item
    assert provider.calls == 4


async def test_provider_outage_reports_all_missing(client, provider):
    provider.fail = True

    result = await client.embed_batch(["silver ring", "clay pot"])

    assert result.missing == [0, 1]
    assert not result.complete


async def test_embed_failure_raises_provider_error_and_updates_health(client, provider):
    provider.fail = True

    for i in range(3):
        with pytest.raises(EmbeddingProviderError) as exc_info:
            await client.embed(f"query {i}")
        assert exc_info.value.call == "encode"

    assert not client.is_healthy()


async def test_hanging_provider_times_out(client, provider):
    provider.hang = True

    with pytest.raises(EmbeddingTimeoutError):
        await client.embed("rosewood")

    assert client.health.snapshot()["last_error"] == "EmbeddingTimeoutError"


async def test_concurrency_is_bounded(provider, normalizer):
    provider.delay = 0.01
    client = EmbeddingClient(
        provider=provider,
        normalizer=normalizer,
        cache=BoundedCache(capacity=100, default_ttl=60),
        health=ProviderHealth(),
        batch_size=1,
        concurrency=2,
        timeout=1.0,
        retry_backoff=0.0,
    )

    result = await client.embed_batch([f"artisan text {i}" for i in range(8)])

    assert result.complete
    assert provider.max_in_flight <= 2
