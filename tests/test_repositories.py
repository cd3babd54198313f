"""
Tests for the Ollama provider adapter, the in-memory stores and the Redis record store.
"""

import fnmatch
import json

import httpx
import pytest

from artisan_match.entities import EmbeddingRecord, ExperienceLevel, SearchFilters
from artisan_match.errors import (
    CatalogUnavailableError,
    EmbeddingAuthError,
    EmbeddingInvalidResponseError,
    EmbeddingQuotaError,
    EmbeddingTimeoutError,
    EmbeddingTransportError,
)
from artisan_match.repositories import (
    InMemoryCatalogStore,
    InMemoryEmbeddingStore,
    OllamaEmbeddingProvider,
    RedisEmbeddingStore,
)


def ollama_with(handler) -> OllamaEmbeddingProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OllamaEmbeddingProvider(model_name="nomic-embed-text", base_url="http://ollama:11434", client=client)


async def test_ollama_encode_batch_posts_all_texts():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"embeddings": [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]})

    provider = ollama_with(handler)
    vectors = await provider.encode_batch(["silver ring", "clay pot"])

    assert seen["path"] == "/api/embed"
    assert seen["body"] == {"model": "nomic-embed-text", "input": ["silver ring", "clay pot"]}
    assert vectors[1] == [0.4, 0.5, 0.6]
    assert provider.dimension == 3
    await provider.close()


@pytest.mark.parametrize(
    ("status_code", "error_type"),
    [
        (401, EmbeddingAuthError),
        (403, EmbeddingAuthError),
        (429, EmbeddingQuotaError),
        (404, EmbeddingTransportError),
        (503, EmbeddingTransportError),
    ],
)
async def test_ollama_maps_status_codes(status_code, error_type):
    provider = ollama_with(lambda request: httpx.Response(status_code, json={"error": "nope"}))

    with pytest.raises(error_type) as exc_info:
        await provider.encode("silver")

    assert exc_info.value.call == "encode"


async def test_ollama_maps_timeouts():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(EmbeddingTimeoutError):
        await ollama_with(handler).encode_batch(["silver"])


async def test_ollama_rejects_wrong_embedding_count():
    provider = ollama_with(lambda request: httpx.Response(200, json={"embeddings": [[0.1, 0.2]]}))

    with pytest.raises(EmbeddingInvalidResponseError):
        await provider.encode_batch(["silver", "clay"])


async def test_ollama_rejects_non_json_body():
    provider = ollama_with(lambda request: httpx.Response(200, text="<html>gateway</html>"))

    with pytest.raises(EmbeddingInvalidResponseError):
        await provider.encode("silver")


async def test_ollama_availability_check():
    up = ollama_with(lambda request: httpx.Response(200, json={"embeddings": [[1.0]]}))
    down = ollama_with(lambda request: httpx.Response(500))

    assert await up.is_available() is True
    assert await down.is_available() is False


def test_catalog_loads_json_seed(tmp_path):
    seed = tmp_path / "catalog.json"
    seed.write_text(
        json.dumps(
            [
                {"id": "a1", "name": "Meera", "profession": "pottery", "experienceLevel": "master"},
                {"uid": "a2", "name": "Ravi", "artisticProfession": "textiles", "materials": "silk"},
            ]
        )
    )

    catalog = InMemoryCatalogStore.from_json(seed)

    assert len(catalog) == 2


def test_catalog_seed_errors_are_catalog_unavailable(tmp_path):
    seed = tmp_path / "catalog.json"
    seed.write_text(json.dumps([{"id": "a1", "name": "No profession"}]))

    with pytest.raises(CatalogUnavailableError):
        InMemoryCatalogStore.from_json(seed)
    with pytest.raises(CatalogUnavailableError):
        InMemoryCatalogStore.from_json(tmp_path / "missing.json")


async def test_catalog_filters_are_conjunctive(catalog):
    by_material = await catalog.query_profiles(SearchFilters(materials=("silk", "cotton")))
    partial = await catalog.query_profiles(SearchFilters(materials=("silk", "clay")))
    by_level = await catalog.query_profiles(SearchFilters(experience_level=ExperienceLevel.EXPERT))

    assert [p.id for p in by_material] == ["art-4"]
    assert partial == []
    assert [p.id for p in by_level] == ["art-1", "art-3", "art-4"]


async def test_catalog_emits_change_events(catalog, profiles):
    changes = []
    catalog.subscribe(changes.append)

    catalog.upsert(profiles[0])
    catalog.remove("art-2")
    catalog.remove("art-2")

    assert [(c.profile_id, c.kind) for c in changes] == [("art-1", "updated"), ("art-2", "deleted")]
    assert await catalog.get_profile("art-2") is None


def test_embedding_store_delete_owner():
    store = InMemoryEmbeddingStore()
    for owner, field_type in [("a1", "profile"), ("a1", "skills"), ("a2", "profile")]:
        store.put(
            EmbeddingRecord(
                owner_id=owner,
                field_type=field_type,
                content_hash="h",
                vector=(0.1, 0.2),
                model_name="fake",
            )
        )

    assert store.delete_owner("a1") == 2
    assert store.count_all() == 1
    assert store.get("a2", "profile").vector == (0.1, 0.2)


class FakeRedis:
    """Just enough of the redis client API for RedisEmbeddingStore."""

    def __init__(self) -> None:
        self.hashes: dict[str, dict[bytes, bytes]] = {}
        self.expiries: dict[str, int] = {}

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    def hset(self, key, mapping):
        encoded = {k.encode(): v if isinstance(v, bytes) else str(v).encode() for k, v in mapping.items()}
        self.hashes.setdefault(key, {}).update(encoded)

    def expire(self, key, seconds):
        self.expiries[key] = seconds

    def pipeline(self):
        return self

    def execute(self):
        return []

    def scan_iter(self, match):
        return [key for key in list(self.hashes) if fnmatch.fnmatchcase(key, match)]

    def delete(self, *keys):
        return sum(self.hashes.pop(key, None) is not None for key in keys)

    def ping(self):
        return True


def test_redis_store_round_trips_records():
    fake = FakeRedis()
    store = RedisEmbeddingStore(redis_client=fake, prefix="test", ttl=60)
    record = EmbeddingRecord(
        owner_id="a1",
        field_type="skills",
        content_hash="abc",
        vector=(0.5, -1.0, 2.0),
        model_name="fake",
    )

    store.put(record)
    loaded = store.get("a1", "skills")

    assert loaded.vector == (0.5, -1.0, 2.0)
    assert loaded.content_hash == "abc"
    assert loaded.is_fresh("abc")
    assert fake.expiries["test:a1:skills"] == 60
    assert store.get("a1", "profile") is None


def test_redis_store_deletes_by_owner_and_skips_corrupt_records():
    fake = FakeRedis()
    store = RedisEmbeddingStore(redis_client=fake, prefix="test")
    for field_type in ("profile", "skills"):
        store.put(EmbeddingRecord(owner_id="a1", field_type=field_type, content_hash="h", vector=(1.0,)))
    fake.hashes["test:a2:profile"] = {b"vector": b"\x00"}

    assert store.get("a2", "profile") is None
    assert store.count_all() == 3
    assert store.delete_owner("a1") == 2
    assert store.count_all() == 1
    assert store.health_check() is True
