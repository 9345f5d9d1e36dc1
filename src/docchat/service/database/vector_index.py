"""RavenDB implementation of the VectorIndex protocol."""

import logging
from collections.abc import Sequence
from typing import Any

from ravendb import DocumentStore

from docchat.errors import VectorIndexError
from docchat.service.database.config import CHUNK_COLLECTION
from docchat.service.database.models import ChunkEntity
from docchat.service.database.operations import create_document_store, ensure_index_exists
from docchat.service.models import ChunkRecord, QueryMatch, SearchFilter
from docchat.service.vector_index import cosine_similarity

logger = logging.getLogger(__name__)


def _result_score(result: dict[str, Any], query_vector: list[float]) -> float:
    """Score a raw query result, preferring the server's index score."""
    metadata = result.get("@metadata", {})
    index_score = metadata.get("@index-score")
    if index_score is not None:
        return float(index_score)
    result_embedding = result.get("embedding", [])
    if result_embedding:
        return cosine_similarity(query_vector, result_embedding)
    return 0.0


class RavenDBVectorIndex:
    """Chunk records stored as RavenDB documents with a vector index.

    Chunk ids are used as RavenDB document ids, so storing a record twice
    replaces it.
    """

    def __init__(
        self,
        store: DocumentStore | None = None,
        url: str | None = None,
        database: str | None = None,
    ) -> None:
        """Initialize the index.

        Args:
            store: An initialized DocumentStore; created from url/database if None
            url: RavenDB server URL (defaults to RavenDBConfig)
            database: Database name (defaults to RavenDBConfig)
        """
        self.store = store if store is not None else create_document_store(url, database)
        self._index_checked = False

    def _ensure_index(self) -> None:
        if not self._index_checked:
            if ensure_index_exists(self.store):
                logger.info("🗂️ Created RavenDB vector index")
            self._index_checked = True

    def upsert(self, records: Sequence[ChunkRecord]) -> int:
        if not records:
            return 0
        try:
            self._ensure_index()
            with self.store.open_session() as session:
                for record in records:
                    entity = ChunkEntity.from_record(record)
                    session.store(entity, record.id)

                    # Set the collection in document metadata
                    metadata = session.advanced.get_metadata_for(entity)
                    metadata["@collection"] = CHUNK_COLLECTION

                session.save_changes()
        except Exception as e:
            raise VectorIndexError(
                f"RavenDB upsert failed: {type(e).__name__}: {e}", stage="upsert"
            ) from e

        logger.debug(f"Stored {len(records)} chunks in RavenDB")
        return len(records)

    def similarity_search(
        self, query_vector: list[float], top_k: int, search_filter: SearchFilter
    ) -> list[QueryMatch]:
        if top_k <= 0:
            return []
        try:
            with self.store.open_session() as session:
                query = session.query_collection(CHUNK_COLLECTION, object_type=dict).where_equals(
                    "user_id", search_filter.user_id
                )
                if search_filter.document_id is not None:
                    query = query.and_also().where_equals("document_id", search_filter.document_id)
                results = list(
                    query.and_also()
                    .vector_search("embedding", query_vector)
                    .order_by_score()
                    .take(top_k)
                )
        except Exception as e:
            raise VectorIndexError(
                f"RavenDB search failed: {type(e).__name__}: {e}",
                stage="search",
                user_id=search_filter.user_id,
            ) from e

        matches = []
        for result in results:
            if not search_filter.matches(result.get("user_id", ""), result.get("document_id", "")):
                logger.warning(
                    f"⚠️ Dropping chunk {result.get('@metadata', {}).get('@id')} "
                    f"outside the search filter"
                )
                continue
            matches.append(
                QueryMatch(
                    chunk_id=result.get("@metadata", {}).get("@id", ""),
                    document_id=result.get("document_id", ""),
                    user_id=result.get("user_id", ""),
                    chunk_index=result.get("chunk_index", 0),
                    text=result.get("text", ""),
                    score=_result_score(result, query_vector),
                    document_name=result.get("document_name", ""),
                )
            )

        matches.sort(key=lambda match: match.score, reverse=True)
        return matches[:top_k]

    def delete_document(self, document_id: str, user_id: str) -> int:
        try:
            with self.store.open_session() as session:
                results = list(
                    session.query_collection(CHUNK_COLLECTION, object_type=dict)
                    .where_equals("document_id", document_id)
                    .and_also()
                    .where_equals("user_id", user_id)
                )
                for result in results:
                    session.delete(result["@metadata"]["@id"])
                session.save_changes()
        except Exception as e:
            raise VectorIndexError(
                f"RavenDB delete failed: {type(e).__name__}: {e}",
                stage="delete",
                document_id=document_id,
                user_id=user_id,
            ) from e
        return len(results)

    def count(self, user_id: str | None = None) -> int:
        try:
            with self.store.open_session() as session:
                if user_id is None:
                    query = session.advanced.raw_query(
                        f"from {CHUNK_COLLECTION}", object_type=dict
                    )
                else:
                    query = session.advanced.raw_query(
                        f"from {CHUNK_COLLECTION} where user_id = $user_id", object_type=dict
                    ).add_parameter("user_id", user_id)
                return len(list(query))
        except Exception as e:
            raise VectorIndexError(
                f"RavenDB count failed: {type(e).__name__}: {e}", stage="count"
            ) from e
