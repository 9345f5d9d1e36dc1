"""Ingestion pipeline: PDF bytes to indexed chunk vectors and document metadata.

Stages run in order and any failure aborts the document:

    RECEIVED -> TEXT_EXTRACTED -> CHUNKED -> INDEXED -> METADATA_PERSISTED -> COMPLETE

Chunk ids are derived from the document id, so re-running a failed ingestion
with the same document id overwrites rather than duplicates. The document
metadata row is only written after every chunk has been indexed. Errors are
tagged with the failing step and the document and user ids.
"""

import asyncio
import logging
import uuid
from collections.abc import Callable
from enum import Enum

from docchat.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_INDEX_TIMEOUT,
    UPSERT_BATCH_SIZE,
)
from docchat.errors import (
    DocChatError,
    ExtractionError,
    MetadataStoreError,
    ValidationError,
    VectorIndexError,
)
from docchat.service.chunker import chunk_text
from docchat.service.embedder import Embedder
from docchat.service.extraction import extract_text_from_pdf_bytes, fetch_pdf_bytes
from docchat.service.metadata_store import MetadataStore
from docchat.service.models import ChunkRecord, Document, IngestResult, make_chunk_id, utc_now
from docchat.service.vector_index import VectorIndex, batched

logger = logging.getLogger(__name__)


class IngestionStage(str, Enum):
    """Progress of one document through the pipeline."""

    RECEIVED = "received"
    TEXT_EXTRACTED = "text_extracted"
    CHUNKED = "chunked"
    INDEXED = "indexed"
    METADATA_PERSISTED = "metadata_persisted"
    COMPLETE = "complete"


# Step that runs after each stage, used to tag errors raised without one
FAILING_STEP = {
    IngestionStage.RECEIVED: "extract",
    IngestionStage.TEXT_EXTRACTED: "chunk",
    IngestionStage.CHUNKED: "upsert",
    IngestionStage.INDEXED: "persist_metadata",
}


class IngestionPipeline:
    """Turns one PDF into indexed chunks plus a Document row."""

    def __init__(
        self,
        embedder: Embedder,
        vector_index: VectorIndex,
        metadata_store: MetadataStore,
        extractor: Callable[[bytes], str] = extract_text_from_pdf_bytes,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        batch_size: int = UPSERT_BATCH_SIZE,
        index_timeout: float = DEFAULT_INDEX_TIMEOUT,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    ) -> None:
        """Initialize the pipeline.

        Args:
            embedder: Embedder shared with the retrieval pipeline
            vector_index: Vector index backend
            metadata_store: Metadata store backend
            extractor: Callable turning PDF bytes into text
            chunk_size: Characters per chunk
            batch_size: Records per upsert batch
            index_timeout: Seconds allowed per upsert batch attempt
            fetch_timeout: Seconds allowed to download a PDF by URL
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.embedder = embedder
        self.vector_index = vector_index
        self.metadata_store = metadata_store
        self.extractor = extractor
        self.chunk_size = chunk_size
        self.batch_size = batch_size
        self.index_timeout = index_timeout
        self.fetch_timeout = fetch_timeout

    async def ingest(
        self,
        pdf_bytes: bytes,
        user_id: str,
        document_name: str,
        source_url: str = "",
        document_id: str | None = None,
    ) -> IngestResult:
        """Run the full pipeline for one document.

        Args:
            pdf_bytes: Raw PDF content
            user_id: Owning user
            document_name: Display name
            source_url: Where the original file lives, if anywhere
            document_id: Optional id; pass the same id to retry an ingestion

        Returns:
            IngestResult: The new document id, chunk count and Document row

        Raises:
            ValidationError: If an input is missing
            ExtractionError: If the PDF cannot be parsed or has no text
            EmbeddingError: If any chunk fails to embed
            VectorIndexError: If a batch fails twice
            MetadataStoreError: If the Document row cannot be written
        """
        if not pdf_bytes:
            raise ValidationError("A PDF file is required", stage="validate")
        if not user_id or not user_id.strip():
            raise ValidationError("userId is required", stage="validate")
        if not document_name or not document_name.strip():
            raise ValidationError("documentName is required", stage="validate")

        document_id = document_id or uuid.uuid4().hex
        stage = IngestionStage.RECEIVED
        logger.info(
            f"📥 Ingesting '{document_name}' (document={document_id}, user={user_id}, "
            f"{len(pdf_bytes)} bytes)"
        )

        try:
            text = await self._extract(pdf_bytes)
            stage = IngestionStage.TEXT_EXTRACTED

            chunks = chunk_text(text, self.chunk_size)
            if not chunks:
                raise ExtractionError("The PDF contains no extractable text", stage="chunk")
            stage = IngestionStage.CHUNKED
            logger.info(f"✂️ Split document {document_id} into {len(chunks)} chunks")

            records = await self._build_records(chunks, document_id, user_id, document_name, source_url)
            await self._upsert_batches(records)
            stage = IngestionStage.INDEXED

            document = Document(
                id=document_id,
                user_id=user_id,
                name=document_name,
                source_url=source_url,
                chunk_count=len(records),
            )
            await self._persist_document(document)
            stage = IngestionStage.METADATA_PERSISTED
        except DocChatError as e:
            e.stage = e.stage or FAILING_STEP[stage]
            e.document_id = document_id
            e.user_id = user_id
            logger.error(
                f"❌ Ingestion failed at step '{e.stage}' "
                f"(document={document_id}, user={user_id}): {e}"
            )
            if stage == IngestionStage.INDEXED:
                logger.error(
                    f"❌ {len(records)} chunks for document {document_id} are indexed "
                    f"without a metadata row"
                )
            raise

        logger.info(f"✅ Ingested document {document_id} with {document.chunk_count} chunks")
        return IngestResult(document_id=document_id, chunk_count=document.chunk_count, document=document)

    async def ingest_url(
        self,
        url: str,
        user_id: str,
        document_name: str,
        document_id: str | None = None,
    ) -> IngestResult:
        """Download a PDF and ingest it, recording the URL as its source.

        Raises:
            ValidationError: If the URL is missing
            ExtractionError: If the download fails
        """
        if not url or not url.strip():
            raise ValidationError("fileUrl is required", stage="validate")
        pdf_bytes = await asyncio.to_thread(fetch_pdf_bytes, url, self.fetch_timeout)
        return await self.ingest(
            pdf_bytes,
            user_id=user_id,
            document_name=document_name,
            source_url=url,
            document_id=document_id,
        )

    async def _extract(self, pdf_bytes: bytes) -> str:
        try:
            return await asyncio.to_thread(self.extractor, pdf_bytes)
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(
                f"Could not extract text: {type(e).__name__}: {e}",
                stage="extract",
            ) from e

    async def _build_records(
        self,
        chunks: list[str],
        document_id: str,
        user_id: str,
        document_name: str,
        source_url: str,
    ) -> list[ChunkRecord]:
        vectors = await self.embedder.embed_many(chunks)
        created_at = utc_now()
        return [
            ChunkRecord(
                id=make_chunk_id(document_id, index),
                document_id=document_id,
                user_id=user_id,
                chunk_index=index,
                text=chunk,
                embedding=vector,
                document_name=document_name,
                source_url=source_url,
                created_at=created_at,
            )
            for index, (chunk, vector) in enumerate(zip(chunks, vectors))
        ]

    async def _upsert_batches(self, records: list[ChunkRecord]) -> None:
        """Upsert records batch by batch, retrying each batch once."""
        batches = list(batched(records, self.batch_size))
        for number, batch in enumerate(batches, start=1):
            try:
                await self._upsert_once(batch)
            except VectorIndexError as first_error:
                logger.warning(
                    f"⚠️ Upsert batch {number}/{len(batches)} failed, retrying once: {first_error}"
                )
                await self._upsert_once(batch)
            logger.debug(f"Upserted batch {number}/{len(batches)} ({len(batch)} records)")

    async def _upsert_once(self, batch: list[ChunkRecord]) -> None:
        try:
            async with asyncio.timeout(self.index_timeout):
                await asyncio.to_thread(self.vector_index.upsert, batch)
        except VectorIndexError:
            raise
        except TimeoutError as e:
            raise VectorIndexError(
                f"Upsert timed out after {self.index_timeout}s", stage="upsert"
            ) from e
        except Exception as e:
            raise VectorIndexError(
                f"Upsert failed: {type(e).__name__}: {e}", stage="upsert"
            ) from e

    async def _persist_document(self, document: Document) -> None:
        try:
            await asyncio.to_thread(self.metadata_store.add_document, document)
        except MetadataStoreError:
            raise
        except Exception as e:
            raise MetadataStoreError(
                f"Could not store document metadata: {type(e).__name__}: {e}",
                stage="persist_metadata",
            ) from e
