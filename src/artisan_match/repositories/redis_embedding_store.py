"""Redis implementation of EmbeddingStore.

Each record is a Redis hash under ``{prefix}:{owner_id}:{field_type}`` with
the vector packed as float32 bytes. A shared Redis lets several API
workers reuse each other's profile embeddings.
"""

import logging
import struct
from datetime import datetime

import redis

from artisan_match.config import get_redis_client, settings
from artisan_match.entities import EmbeddingRecord

logger = logging.getLogger(__name__)


class RedisEmbeddingStore:
    """Redis hash-backed implementation of the EmbeddingStore protocol.

    This class satisfies the EmbeddingStore protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        prefix: str | None = None,
        ttl: int | None = None,
    ) -> None:
        """Initialize the Redis embedding store.

        Args:
            redis_client: Redis client instance. If None, creates default.
            prefix: Key prefix for records. Defaults to settings.
            ttl: Optional expiry for records in seconds (None keeps them).
        """
        self._client = redis_client or get_redis_client()
        self._prefix = prefix or settings.embedding_store_prefix
        self._ttl = ttl

    @classmethod
    def create(cls, prefix: str | None = None, ttl: int | None = None) -> "RedisEmbeddingStore":
        """Factory method to create RedisEmbeddingStore with defaults."""
        return cls(prefix=prefix, ttl=ttl)

    def _key(self, owner_id: str, field_type: str) -> str:
        return f"{self._prefix}:{owner_id}:{field_type}"

    def get(self, owner_id: str, field_type: str) -> EmbeddingRecord | None:
        data = self._client.hgetall(self._key(owner_id, field_type))
        if not data:
            return None

        try:
            raw_vector = data[b"vector"]
            vector = struct.unpack(f"{len(raw_vector) // 4}f", raw_vector)
            return EmbeddingRecord(
                owner_id=owner_id,
                field_type=field_type,
                content_hash=data[b"content_hash"].decode(),
                vector=tuple(vector),
                model_name=data.get(b"model_name", b"").decode(),
                generated_at=datetime.fromisoformat(data[b"generated_at"].decode()),
            )
        except (KeyError, ValueError, struct.error) as e:
            # Unreadable records are treated as missing and get regenerated
            logger.warning("Discarding corrupt embedding record %s: %s", self._key(owner_id, field_type), e)
            return None

    def put(self, record: EmbeddingRecord) -> None:
        key = self._key(record.owner_id, record.field_type)
        vector_bytes = struct.pack(f"{len(record.vector)}f", *record.vector)

        pipe = self._client.pipeline()
        pipe.hset(
            key,
            mapping={
                "content_hash": record.content_hash,
                "vector": vector_bytes,
                "model_name": record.model_name,
                "generated_at": record.generated_at.isoformat(),
            },
        )
        if self._ttl:
            pipe.expire(key, self._ttl)
        pipe.execute()

    def delete_owner(self, owner_id: str) -> int:
        keys = list(self._client.scan_iter(match=f"{self._prefix}:{owner_id}:*"))
        if not keys:
            return 0
        result: int = self._client.delete(*keys)  # type: ignore[assignment]
        return result

    def count_all(self) -> int:
        count = 0
        for _ in self._client.scan_iter(match=f"{self._prefix}:*"):
            count += 1
        return count

    def health_check(self) -> bool:
        """Check if Redis is accessible."""
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning("Redis health check failed: %s", e)
            return False

    @property
    def client(self) -> redis.Redis:
        return self._client
