"""Pytest configuration and shared fixtures for the test suite."""

import hashlib
import math
import re
from unittest.mock import AsyncMock

import fitz
import pytest
import requests

from docchat.service.documents import ChatHistory, DocumentManager
from docchat.service.embedder import Embedder
from docchat.service.ingestion import IngestionPipeline
from docchat.service.metadata_store import InMemoryMetadataStore
from docchat.service.models import ChunkRecord, make_chunk_id
from docchat.service.retrieval import RetrievalPipeline
from docchat.service.vector_index import InMemoryVectorIndex

EMBEDDING_DIMENSIONS = 64


# Service availability checks
def ollama_available() -> bool:
    """Check if Ollama server is running and accessible.

    Returns:
        True if Ollama is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:11434/api/tags", timeout=2)
        return response.status_code == 200
    except requests.RequestException:
        return False


def ravendb_available() -> bool:
    """Check if RavenDB server is running and accessible.

    Returns:
        True if RavenDB is available, False otherwise
    """
    try:
        response = requests.get("http://localhost:8080/databases", timeout=2)
        return response.status_code in (200, 401)  # Auth required is OK
    except requests.RequestException:
        return False


def fake_vector(text: str, dimensions: int = EMBEDDING_DIMENSIONS) -> list[float]:
    """Deterministic bag-of-words vector: texts sharing words point the same way."""
    vector = [0.0] * dimensions
    for word in re.findall(r"[a-z0-9]+", text.lower()):
        bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % dimensions
        vector[bucket] += 1.0
    norm = math.sqrt(sum(x * x for x in vector))
    if norm == 0:
        # Non-empty vector for texts without words
        vector[0] = 1.0
        return vector
    return [x / norm for x in vector]


class FakeEmbeddingService:
    """EmbeddingService double that records every text it embeds."""

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS) -> None:
        self.dimensions = dimensions
        self.calls: list[str] = []
        self.fail_on: set[str] = set()

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        embeddings = []
        for text in texts:
            self.calls.append(text)
            if text in self.fail_on:
                raise ConnectionError("embedding backend unavailable")
            embeddings.append(fake_vector(text, self.dimensions))
        return embeddings


def make_record(
    document_id: str,
    user_id: str,
    index: int,
    text: str,
    document_name: str = "doc.pdf",
) -> ChunkRecord:
    """Build a chunk record embedded with the fake vectorizer."""
    return ChunkRecord(
        id=make_chunk_id(document_id, index),
        document_id=document_id,
        user_id=user_id,
        chunk_index=index,
        text=text,
        embedding=fake_vector(text),
        document_name=document_name,
    )


def make_pdf_bytes(pages: list[str]) -> bytes:
    """Create an in-memory PDF with one text line per page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


# Service fixtures with skip markers
@pytest.fixture
def ollama_service():
    """Provide OllamaService instance, skip if Ollama not available."""
    if not ollama_available():
        pytest.skip("Ollama server not running on localhost:11434")

    from docchat.llm import OllamaService

    return OllamaService(host="http://localhost:11434", model="llama3")


@pytest.fixture
def ravendb_store():
    """Provide RavenDB DocumentStore on a throwaway database, skip if unavailable."""
    if not ravendb_available():
        pytest.skip("RavenDB server not running on localhost:8080")

    from docchat.service.database import create_database, create_document_store, delete_database

    db_name = "test_docchat"
    create_database(database=db_name)
    store = create_document_store(database=db_name)
    yield store
    store.close()
    delete_database(database=db_name)


# Fake providers and in-memory backends
@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def completion_service():
    """CompletionService double returning a fixed answer."""
    service = AsyncMock()
    service.generate_response.return_value = "The answer from your documents."
    return service


@pytest.fixture
def embedder(embedding_service):
    return Embedder(embedding_service, model="fake-embed", timeout=5.0, max_concurrency=4)


@pytest.fixture
def vector_index():
    return InMemoryVectorIndex()


@pytest.fixture
def metadata_store():
    return InMemoryMetadataStore()


@pytest.fixture
def ingestion_pipeline(embedder, vector_index, metadata_store):
    return IngestionPipeline(embedder, vector_index, metadata_store, index_timeout=5.0)


@pytest.fixture
def retrieval_pipeline(embedder, vector_index, completion_service):
    return RetrievalPipeline(
        embedder,
        vector_index,
        completion_service,
        default_model="fake-chat",
        index_timeout=5.0,
        completion_timeout=5.0,
    )


@pytest.fixture
def document_manager(vector_index, metadata_store):
    return DocumentManager(vector_index, metadata_store)


@pytest.fixture
def chat_history(metadata_store):
    return ChatHistory(metadata_store)


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """A two-page PDF about solar panels and wind turbines."""
    return make_pdf_bytes(
        [
            "Solar panels convert sunlight into electricity.",
            "Wind turbines generate power from moving air.",
        ]
    )
