"""Embedding record domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class EmbeddingRecord:
    """Embedding of one field of one catalog owner.

    A record is only valid while ``content_hash`` equals the hash of the
    owner's current normalized field text; stale records are regenerated,
    never reused.

    Attributes:
        owner_id: Profile id the vector belongs to
        field_type: Embedded field (e.g. "profile", "skills")
        content_hash: Hash of the normalized text that was embedded
        vector: The embedding vector
        model_name: Model that produced the vector
        generated_at: When the vector was produced
    """

    owner_id: str
    field_type: str
    content_hash: str
    vector: tuple[float, ...]
    model_name: str = ""
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def dimension(self) -> int:
        return len(self.vector)

    def is_fresh(self, content_hash: str) -> bool:
        """Check whether this record still describes the given content."""
        return self.content_hash == content_hash
