"""Embedding record store protocol.

Persists per-field embeddings of catalog profiles so they survive across
requests (and, with a shared backend, across processes).

Implementations:
- In-memory dictionary (default, tests)
- Redis hashes
"""

from typing import Protocol, runtime_checkable

from artisan_match.entities import EmbeddingRecord


@runtime_checkable
class EmbeddingStore(Protocol):
    """Protocol for embedding record storage backends."""

    def get(self, owner_id: str, field_type: str) -> EmbeddingRecord | None:
        """Fetch the record for one owner field.

        Args:
            owner_id: The profile id
            field_type: The embedded field

        Returns:
            The stored record, or None. Freshness is checked by the caller.
        """
        ...

    def put(self, record: EmbeddingRecord) -> None:
        """Store (or replace) a record."""
        ...

    def delete_owner(self, owner_id: str) -> int:
        """Delete every record of an owner.

        Returns:
            Number of records deleted
        """
        ...

    def count_all(self) -> int:
        """Count stored records."""
        ...

    def health_check(self) -> bool:
        """Check if the store is accessible."""
        ...
