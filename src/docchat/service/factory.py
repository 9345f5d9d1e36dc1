"""Builds storage backends and pipelines from a config dict or the environment."""

import logging
import os
from dataclasses import dataclass

from docchat.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_COMPLETION_TIMEOUT,
    DEFAULT_EMBED_CONCURRENCY,
    DEFAULT_EMBED_TIMEOUT,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_INDEX_TIMEOUT,
    DEFAULT_MAX_CONTEXT_CHARS,
    UPSERT_BATCH_SIZE,
    get_completion_model,
    get_embedding_model,
    get_float_setting,
    get_int_setting,
)
from docchat.llm import get_embedding_service, get_llm_service
from docchat.service.documents import ChatHistory, DocumentManager
from docchat.service.embedder import Embedder
from docchat.service.ingestion import IngestionPipeline
from docchat.service.metadata_store import InMemoryMetadataStore, MetadataStore
from docchat.service.retrieval import RetrievalPipeline
from docchat.service.vector_index import InMemoryVectorIndex, VectorIndex

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "ravendb")


def _backend_name(config: dict, env_name: str) -> str:
    backend = config.get("backend") or os.getenv(env_name, "memory")
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(f"Unsupported backend: {backend}")
    return backend


def get_vector_index(config: dict | None = None) -> VectorIndex:
    """Create the vector index backend.

    Args:
        config: Optional configuration dictionary. Expected keys:
                - 'backend': "memory" or "ravendb" (default: VECTOR_BACKEND env)
                - 'store': an initialized RavenDB DocumentStore to share
    """
    config = config or {}
    backend = _backend_name(config, "VECTOR_BACKEND")
    if backend == "ravendb":
        # Imported lazily so the in-memory setup does not need a RavenDB client
        from docchat.service.database import RavenDBVectorIndex

        return RavenDBVectorIndex(store=config.get("store"))
    return InMemoryVectorIndex()


def get_metadata_store(config: dict | None = None) -> MetadataStore:
    """Create the metadata store backend.

    Args:
        config: Optional configuration dictionary. Expected keys:
                - 'backend': "memory" or "ravendb" (default: METADATA_BACKEND env)
                - 'store': an initialized RavenDB DocumentStore to share
    """
    config = config or {}
    backend = _backend_name(config, "METADATA_BACKEND")
    if backend == "ravendb":
        from docchat.service.database import RavenDBMetadataStore

        return RavenDBMetadataStore(store=config.get("store"))
    return InMemoryMetadataStore()


PERSISTENT_BACKEND = "ravendb"


def persistent_backend_config() -> dict:
    """Backend names for entry points whose data must outlive the process.

    Used by the CLI commands and the MCP server. Unset backends default to RavenDB.

    Raises:
        ValueError: If a backend is explicitly configured as "memory"
    """
    config = {}
    for key, env_name in (
        ("vector_backend", "VECTOR_BACKEND"),
        ("metadata_backend", "METADATA_BACKEND"),
    ):
        backend = os.getenv(env_name) or PERSISTENT_BACKEND
        if backend == "memory":
            raise ValueError(
                f"{env_name}=memory does not keep documents between runs; use {PERSISTENT_BACKEND}"
            )
        config[key] = backend
    return config


@dataclass
class Services:
    """Everything the HTTP, CLI and tool-server surfaces need."""

    ingestion: IngestionPipeline
    retrieval: RetrievalPipeline
    documents: DocumentManager
    history: ChatHistory


def build_services(config: dict | None = None) -> Services:
    """Wire providers, backends and pipelines together.

    A single Embedder is shared by ingestion and retrieval so both sides use
    the same embedding model.

    Args:
        config: Optional configuration dictionary. Recognized keys:
                - 'llm': config dict for get_llm_service
                - 'embedding': config dict for get_embedding_service
                - 'vector_index', 'metadata_store': prebuilt backends
                - 'vector_backend', 'metadata_backend': backend names
                - 'embedding_service', 'completion_service': prebuilt providers
                - 'store': a RavenDB DocumentStore shared by both RavenDB backends
    """
    config = config or {}

    completion_service = config.get("completion_service") or get_llm_service(config.get("llm"))
    embedding_config = config.get("embedding") or {}
    embedding_service = config.get("embedding_service") or get_embedding_service(embedding_config)
    embedding_model = embedding_config.get("model") or get_embedding_model(
        embedding_config.get("service")
    )
    default_model = (config.get("llm") or {}).get("model") or get_completion_model(
        (config.get("llm") or {}).get("service")
    )

    vector_index = config.get("vector_index")
    metadata_store = config.get("metadata_store")
    vector_backend = _backend_name({"backend": config.get("vector_backend")}, "VECTOR_BACKEND")
    metadata_backend = _backend_name({"backend": config.get("metadata_backend")}, "METADATA_BACKEND")

    # Both RavenDB backends share one DocumentStore
    store = config.get("store")
    if (
        store is None
        and vector_index is None
        and metadata_store is None
        and vector_backend == metadata_backend == "ravendb"
    ):
        from docchat.service.database import create_document_store

        store = create_document_store()

    vector_index = vector_index or get_vector_index({"backend": vector_backend, "store": store})
    metadata_store = metadata_store or get_metadata_store(
        {"backend": metadata_backend, "store": store}
    )

    embedder = Embedder(
        embedding_service,
        model=embedding_model,
        timeout=get_float_setting("EMBED_TIMEOUT", DEFAULT_EMBED_TIMEOUT),
        max_concurrency=get_int_setting("EMBED_CONCURRENCY", DEFAULT_EMBED_CONCURRENCY),
    )
    index_timeout = get_float_setting("INDEX_TIMEOUT", DEFAULT_INDEX_TIMEOUT)

    ingestion = IngestionPipeline(
        embedder,
        vector_index,
        metadata_store,
        chunk_size=get_int_setting("CHUNK_SIZE", DEFAULT_CHUNK_SIZE),
        batch_size=get_int_setting("UPSERT_BATCH_SIZE", UPSERT_BATCH_SIZE),
        index_timeout=index_timeout,
        fetch_timeout=get_float_setting("FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT),
    )
    retrieval = RetrievalPipeline(
        embedder,
        vector_index,
        completion_service,
        default_model=default_model,
        max_context_chars=get_int_setting("MAX_CONTEXT_CHARS", DEFAULT_MAX_CONTEXT_CHARS),
        index_timeout=index_timeout,
        completion_timeout=get_float_setting("COMPLETION_TIMEOUT", DEFAULT_COMPLETION_TIMEOUT),
    )

    logger.info(
        f"✅ Services ready (vector index: {type(vector_index).__name__}, "
        f"metadata: {type(metadata_store).__name__}, embedding model: {embedding_model})"
    )
    return Services(
        ingestion=ingestion,
        retrieval=retrieval,
        documents=DocumentManager(vector_index, metadata_store),
        history=ChatHistory(metadata_store),
    )
