"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Ollama → local model, memory → Redis)
- Unit testing with fake implementations
- Clear separation of concerns
"""

from .catalog_store import CatalogStore, ChangeListener, ProfileChange
from .embedding_provider import EmbeddingProvider
from .embedding_store import EmbeddingStore

__all__ = [
    "CatalogStore",
    "ChangeListener",
    "EmbeddingProvider",
    "EmbeddingStore",
    "ProfileChange",
]
