"""Repository layer for data access.

This layer abstracts external dependencies (the catalog, Redis, embedding
models) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (memory → Redis, Ollama → local model)
- Unit testing with fake implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.

The sentence-transformers provider is imported from its own module so the
model library is only loaded when it is actually selected.
"""

from .memory_catalog_store import InMemoryCatalogStore
from .memory_embedding_store import InMemoryEmbeddingStore
from .ollama_embedding_provider import OllamaEmbeddingProvider
from .redis_embedding_store import RedisEmbeddingStore

__all__ = [
    "InMemoryCatalogStore",
    "InMemoryEmbeddingStore",
    "OllamaEmbeddingProvider",
    "RedisEmbeddingStore",
]
