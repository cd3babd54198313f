"""Local sentence-transformers embedding provider.

Runs a sentence-transformers model in-process. Encoding is CPU-bound, so
calls run in a worker thread to keep the event loop responsive.
"""

import asyncio
import logging
import time

import numpy as np
from sentence_transformers import SentenceTransformer

from artisan_match.config import settings
from artisan_match.errors import EmbeddingInvalidResponseError, EmbeddingTransportError

logger = logging.getLogger(__name__)


class LocalEmbeddingProvider:
    """Local sentence-transformers implementation of EmbeddingProvider.

    This class satisfies the EmbeddingProvider protocol through structural
    typing - no explicit inheritance needed.
    """

    def __init__(self, model_name: str | None = None, batch_size: int = 32) -> None:
        """Initialize the local embedding provider.

        Args:
            model_name: Name of the sentence-transformers model.
                       Defaults to settings.embedding_model.
            batch_size: Batch size used inside the model.
        """
        self._model_name = model_name or settings.embedding_model
        self._batch_size = batch_size
        self._model: SentenceTransformer | None = None
        self._dimension: int | None = None

    @classmethod
    def create(cls, model_name: str | None = None) -> "LocalEmbeddingProvider":
        """Factory method to create LocalEmbeddingProvider with defaults."""
        return cls(model_name=model_name)

    @property
    def model(self) -> SentenceTransformer:
        """Lazy-load the embedding model."""
        if self._model is None:
            logger.info("Loading embedding model: %s", self._model_name)
            start_time = time.time()
            self._model = SentenceTransformer(self._model_name)
            logger.info("Model loaded in %.2fs", time.time() - start_time)
        return self._model

    @property
    def dimension(self) -> int:
        """Get the embedding vector dimension."""
        if self._dimension is None:
            dimension = self.model.get_sentence_embedding_dimension()
            if dimension is None:
                dimension = len(self.model.encode(["test"], show_progress_bar=False)[0])
            self._dimension = int(dimension)
        return self._dimension

    @property
    def model_name(self) -> str:
        return self._model_name

    async def encode(self, text: str) -> list[float]:
        """Generate embedding vector for a single text."""
        vectors = await self.encode_batch([text])
        return vectors[0]

    async def encode_batch(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for multiple texts in a worker thread.

        Raises:
            EmbeddingTransportError: If the model fails to load or encode
            EmbeddingInvalidResponseError: If the model output has the wrong shape
        """
        if not texts:
            return []
        try:
            embeddings = await asyncio.to_thread(self._encode_sync, texts)
        except (OSError, RuntimeError) as e:
            raise EmbeddingTransportError(f"Local model failed: {e}", call="encode_batch") from e

        if not isinstance(embeddings, np.ndarray) or embeddings.ndim != 2 or len(embeddings) != len(texts):
            raise EmbeddingInvalidResponseError("Local model returned an unexpected shape", call="encode_batch")
        return embeddings.tolist()

    def _encode_sync(self, texts: list[str]) -> np.ndarray:
        return self.model.encode(
            texts,
            batch_size=self._batch_size,
            show_progress_bar=False,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )

    async def is_available(self) -> bool:
        """Check if the model can be loaded."""
        try:
            await asyncio.to_thread(lambda: self.model)
            return True
        except (OSError, RuntimeError) as e:
            logger.warning("Local embedding model not available: %s", e)
            return False
