"""Ollama-based embedding provider.

Uses Ollama's local API to generate embeddings. Ollama serves models locally
without requiring HuggingFace authentication or downloading models manually.

Requirements:
    - Ollama installed: https://ollama.com
    - Model pulled: `ollama pull embeddinggemma`
    - Ollama running: `ollama serve` (usually runs automatically)

Failures are translated into ``EmbeddingProviderError`` subclasses:

- 401/403            -> EmbeddingAuthError
- 429                -> EmbeddingQuotaError
- timeouts           -> EmbeddingTimeoutError
- other HTTP errors  -> EmbeddingTransportError
- malformed payloads -> EmbeddingInvalidResponseError

Models available:
- embeddinggemma (308M params, 768 dims, 2K context)
- nomic-embed-text (137M params, 768 dims)
- mxbai-embed-large (335M params, 1024 dims)
- all-minilm (22M params, 384 dims)
"""

import logging
from typing import Any

import httpx

from artisan_match.config import settings
from artisan_match.errors import (
    EmbeddingAuthError,
    EmbeddingInvalidResponseError,
    EmbeddingProviderError,
    EmbeddingQuotaError,
    EmbeddingTimeoutError,
    EmbeddingTransportError,
)

logger = logging.getLogger(__name__)


class OllamaEmbeddingProvider:
    """Ollama-based implementation of EmbeddingProvider protocol.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = OllamaEmbeddingProvider.create(
            model_name="embeddinggemma",
            base_url="http://localhost:11434",
        )

        vectors = await provider.encode_batch(["silver filigree", "blue pottery"])
        print(len(vectors[0]))  # 768
        ```
    """

    # Known model dimensions (for common models)
    MODEL_DIMENSIONS = {
        "embeddinggemma": 768,
        "embeddinggemma:300m": 768,
        "nomic-embed-text": 768,
        "mxbai-embed-large": 1024,
        "all-minilm": 384,
    }

    def __init__(
        self,
        model_name: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the Ollama embedding provider.

        Args:
            model_name: Name of the Ollama model.
                       Defaults to settings.embedding_model.
            base_url: Ollama API base URL.
                     Defaults to settings.ollama_base_url.
            timeout: Request timeout in seconds.
            client: Pre-built HTTP client (tests use httpx.MockTransport).
        """
        self._model_name = model_name or settings.embedding_model
        self._base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self._timeout = timeout
        self._dimension: int | None = None
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @classmethod
    def create(
        cls,
        model_name: str | None = None,
        base_url: str | None = None,
    ) -> "OllamaEmbeddingProvider":
        """Factory method to create OllamaEmbeddingProvider with defaults.

        Args:
            model_name: Model name. If None, uses settings.
            base_url: Ollama API URL. If None, uses settings.

        Returns:
            Configured OllamaEmbeddingProvider
        """
        return cls(model_name=model_name, base_url=base_url, timeout=settings.embedding_timeout)

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension.

        Known models report their documented dimension until the first
        response is seen; unknown models default to 768.
        """
        if self._dimension is None:
            return self.MODEL_DIMENSIONS.get(self._model_name, 768)
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text.

        Raises:
            EmbeddingProviderError: If the Ollama request fails
        """
        vectors = await self._embed([text], call="encode")
        return vectors[0]

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in one request.

        Raises:
            EmbeddingProviderError: If the Ollama request fails
        """
        if not texts:
            return []
        return await self._embed(texts, call="encode_batch")

    async def _embed(self, texts: list[str], call: str) -> list[list[float]]:
        url = f"{self._base_url}/api/embed"
        payload = {"model": self._model_name, "input": texts}

        try:
            response = await self.client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise EmbeddingTimeoutError(f"Ollama request timed out: {e}", call=call) from e
        except httpx.HTTPStatusError as e:
            raise self._status_error(e, call) from e
        except httpx.HTTPError as e:
            message = f"Ollama API error: {e}"
            if "connection refused" in str(e).lower():
                message += " (is Ollama running? Try: ollama serve)"
            raise EmbeddingTransportError(message, call=call) from e
        except ValueError as e:
            raise EmbeddingInvalidResponseError(f"Ollama returned invalid JSON: {e}", call=call) from e

        vectors = self._parse(data, len(texts), call)
        self._dimension = len(vectors[0])
        return vectors

    def _status_error(self, error: httpx.HTTPStatusError, call: str) -> EmbeddingProviderError:
        code = error.response.status_code
        if code in (401, 403):
            return EmbeddingAuthError(f"Ollama rejected credentials (HTTP {code})", call=call)
        if code == 429:
            return EmbeddingQuotaError("Ollama rate limit exceeded (HTTP 429)", call=call)
        if code == 404:
            return EmbeddingTransportError(
                f"Ollama model not found (HTTP 404). Try: ollama pull {self._model_name}", call=call
            )
        return EmbeddingTransportError(f"Ollama API error (HTTP {code})", call=call)

    @staticmethod
    def _parse(data: Any, expected: int, call: str) -> list[list[float]]:
        # Ollama returns {"embeddings": [[...], ...]}; older servers {"embedding": [...]}
        if isinstance(data, dict) and isinstance(data.get("embeddings"), list):
            vectors = data["embeddings"]
        elif isinstance(data, dict) and isinstance(data.get("embedding"), list) and expected == 1:
            vectors = [data["embedding"]]
        else:
            raise EmbeddingInvalidResponseError(f"Unexpected response format: {str(data)[:200]}", call=call)

        if len(vectors) != expected or not all(vectors):
            raise EmbeddingInvalidResponseError(
                f"Expected {expected} embeddings, got {len(vectors)}", call=call
            )
        return vectors

    async def is_available(self) -> bool:
        """Check if Ollama is running and the model answers."""
        try:
            await self.encode("test")
            return True
        except EmbeddingProviderError as e:
            logger.warning("Ollama not available: %s", e)
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
