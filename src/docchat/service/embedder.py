"""Embedding adapter used identically by ingestion and retrieval."""

import asyncio
import logging

from docchat.constants import DEFAULT_EMBED_CONCURRENCY, DEFAULT_EMBED_TIMEOUT
from docchat.errors import EmbeddingError
from docchat.llm.base import EmbeddingService

logger = logging.getLogger(__name__)


class Embedder:
    """Turns text into fixed-length vectors with one embedding model.

    Build one instance and share it between the ingestion and retrieval
    pipelines: vectors produced by different models are not comparable.
    Calls are not retried, since every call is billed by the provider.
    """

    def __init__(
        self,
        service: EmbeddingService,
        model: str,
        timeout: float = DEFAULT_EMBED_TIMEOUT,
        max_concurrency: int = DEFAULT_EMBED_CONCURRENCY,
    ) -> None:
        """Initialize the embedder.

        Args:
            service: Provider implementing the EmbeddingService protocol
            model: Embedding model name passed on every call
            timeout: Seconds allowed per embedding call
            max_concurrency: Maximum embedding calls in flight in embed_many
        """
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        self.service = service
        self.model = model
        self.timeout = timeout
        self.max_concurrency = max_concurrency

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingError: If the provider fails, times out or returns no vector
        """
        try:
            async with asyncio.timeout(self.timeout):
                vectors = await asyncio.to_thread(
                    self.service.generate_embeddings, [text], self.model
                )
        except TimeoutError as e:
            raise EmbeddingError(
                f"Embedding call timed out after {self.timeout}s", stage="embed"
            ) from e
        except Exception as e:
            raise EmbeddingError(
                f"Embedding service error: {type(e).__name__}: {e}", stage="embed"
            ) from e

        if not vectors or not vectors[0]:
            raise EmbeddingError("Embedding service returned an empty vector", stage="embed")
        return [float(x) for x in vectors[0]]

    async def embed_many(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts concurrently, preserving input order.

        All-or-nothing: the first failure cancels the remaining calls and is
        raised to the caller.

        Raises:
            EmbeddingError: If any call fails or the vectors differ in length
        """
        if not texts:
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)
        results: list[list[float] | None] = [None] * len(texts)

        async def _embed_at(index: int, text: str) -> None:
            async with semaphore:
                results[index] = await self.embed(text)

        # Each task writes to its own slot, so completion order does not matter
        try:
            async with asyncio.TaskGroup() as group:
                for index, text in enumerate(texts):
                    group.create_task(_embed_at(index, text))
        except ExceptionGroup as group_error:
            raise group_error.exceptions[0] from None

        vectors = [vector for vector in results if vector is not None]
        dimensions = {len(vector) for vector in vectors}
        if len(dimensions) > 1:
            raise EmbeddingError(
                f"Embedding service returned mixed dimensions: {sorted(dimensions)}",
                stage="embed",
            )

        logger.info(f"✅ Generated {len(vectors)} embeddings with {self.model}")
        return vectors
