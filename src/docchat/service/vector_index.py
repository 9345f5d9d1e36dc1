"""Vector index contract and the in-process implementation.

Backends are interchangeable strategies behind the ``VectorIndex`` protocol.
Similarity search always takes a ``SearchFilter``; there is no way to search
across users.
"""

import logging
import math
import threading
from collections.abc import Iterator, Sequence
from typing import Protocol

from docchat.service.models import ChunkRecord, QueryMatch, SearchFilter

logger = logging.getLogger(__name__)


class VectorIndex(Protocol):
    """Persistent store of (vector, text, metadata) chunk records."""

    def upsert(self, records: Sequence[ChunkRecord]) -> int:
        """Insert or replace records by id.

        Returns:
            int: Number of records written
        """
        ...

    def similarity_search(
        self, query_vector: list[float], top_k: int, search_filter: SearchFilter
    ) -> list[QueryMatch]:
        """Return up to top_k matches passing the filter, most similar first.

        An empty list (not an error) is returned when nothing matches.
        """
        ...

    def delete_document(self, document_id: str, user_id: str) -> int:
        """Remove every chunk of a document owned by user_id.

        Returns:
            int: Number of chunk records removed
        """
        ...

    def count(self, user_id: str | None = None) -> int:
        """Count stored chunk records, optionally for one user."""
        ...


def cosine_similarity(vec_a: list[float], vec_b: list[float]) -> float:
    """Compute cosine similarity between two vectors.

    Args:
        vec_a: First embedding vector
        vec_b: Second embedding vector

    Returns:
        float: Cosine similarity in [-1, 1]; 0.0 for empty, mismatched or zero vectors
    """
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec_a, vec_b))
    magnitude_a = math.sqrt(sum(a * a for a in vec_a))
    magnitude_b = math.sqrt(sum(b * b for b in vec_b))

    if magnitude_a == 0 or magnitude_b == 0:
        return 0.0

    return dot_product / (magnitude_a * magnitude_b)


def batched(records: Sequence[ChunkRecord], size: int) -> Iterator[list[ChunkRecord]]:
    """Yield consecutive slices of at most ``size`` records."""
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    for start in range(0, len(records), size):
        yield list(records[start : start + size])


class InMemoryVectorIndex:
    """Exact nearest-neighbour search over records held in a dict.

    Used for local development and tests. Thread-safe: Flask may serve
    requests from several threads against one instance.
    """

    def __init__(self) -> None:
        self._records: dict[str, ChunkRecord] = {}
        self._lock = threading.Lock()

    def upsert(self, records: Sequence[ChunkRecord]) -> int:
        with self._lock:
            for record in records:
                self._records[record.id] = record
        logger.debug(f"Upserted {len(records)} records into in-memory index")
        return len(records)

    def similarity_search(
        self, query_vector: list[float], top_k: int, search_filter: SearchFilter
    ) -> list[QueryMatch]:
        if top_k <= 0:
            return []

        with self._lock:
            candidates = [
                record
                for record in self._records.values()
                if search_filter.matches(record.user_id, record.document_id)
            ]

        scored = [
            (cosine_similarity(query_vector, record.embedding), record) for record in candidates
        ]
        # Ties break on chunk id so results are reproducible
        scored.sort(key=lambda item: (-item[0], item[1].id))

        return [
            QueryMatch(
                chunk_id=record.id,
                document_id=record.document_id,
                user_id=record.user_id,
                chunk_index=record.chunk_index,
                text=record.text,
                score=score,
                document_name=record.document_name,
            )
            for score, record in scored[:top_k]
        ]

    def delete_document(self, document_id: str, user_id: str) -> int:
        with self._lock:
            doomed = [
                record_id
                for record_id, record in self._records.items()
                if record.document_id == document_id and record.user_id == user_id
            ]
            for record_id in doomed:
                del self._records[record_id]
        return len(doomed)

    def count(self, user_id: str | None = None) -> int:
        with self._lock:
            if user_id is None:
                return len(self._records)
            return sum(1 for record in self._records.values() if record.user_id == user_id)

    def get(self, record_id: str) -> ChunkRecord | None:
        """Look up one record by id."""
        with self._lock:
            return self._records.get(record_id)
