"""In-memory embedding record store (default backend, tests)."""

import threading

from artisan_match.entities import EmbeddingRecord


class InMemoryEmbeddingStore:
    """Dictionary-backed implementation of the EmbeddingStore protocol."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str], EmbeddingRecord] = {}
        self._lock = threading.Lock()

    def get(self, owner_id: str, field_type: str) -> EmbeddingRecord | None:
        with self._lock:
            return self._records.get((owner_id, field_type))

    def put(self, record: EmbeddingRecord) -> None:
        with self._lock:
            self._records[(record.owner_id, record.field_type)] = record

    def delete_owner(self, owner_id: str) -> int:
        with self._lock:
            keys = [key for key in self._records if key[0] == owner_id]
            for key in keys:
                del self._records[key]
            return len(keys)

    def count_all(self) -> int:
        with self._lock:
            return len(self._records)

    def health_check(self) -> bool:
        return True
