"""Embedding provider protocol.

Defines the interface for any embedding generation service that can
convert text to vector embeddings.

Implementations can include:
- Ollama HTTP API (default)
- sentence-transformers (local, in-process)
- Any hosted text-embedding API

Providers are treated as unreliable: they may time out, hit quotas or
reject credentials. Adapters translate those failures into
``EmbeddingProviderError`` subclasses; callers never see transport
exceptions.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for embedding generation services.

    Any type that implements these methods satisfies the protocol, no
    explicit inheritance needed.

    Example:
        ```python
        from artisan_match.protocols import EmbeddingProvider

        provider: EmbeddingProvider = OllamaEmbeddingProvider.create()
        provider: EmbeddingProvider = LocalEmbeddingProvider.create()
        ```
    """

    @property
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        ...

    @property
    def model_name(self) -> str:
        """Return the name/identifier of the model."""
        ...

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Args:
            text: The text to encode

        Returns:
            The embedding vector as a list of floats

        Raises:
            EmbeddingProviderError: If the provider call fails
        """
        ...

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in one call.

        Args:
            texts: List of texts to encode

        Returns:
            List of embedding vectors, in input order

        Raises:
            EmbeddingProviderError: If the provider call fails
        """
        ...

    async def is_available(self) -> bool:
        """Check if the embedding provider is reachable.

        Returns:
            True if available, False otherwise
        """
        ...
