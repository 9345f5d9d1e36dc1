"""RavenDB backends for the vector index and metadata store.

This package provides:
- Configuration management (RavenDBConfig)
- Document store creation, vector index and database lifecycle operations
- RavenDBVectorIndex: chunk records with vector search filtered by user
- RavenDBMetadataStore: document and chat-message rows

Usage:
    from docchat.service.database import (
        RavenDBMetadataStore,
        RavenDBVectorIndex,
        create_document_store,
    )

    store = create_document_store()
    index = RavenDBVectorIndex(store)
    metadata = RavenDBMetadataStore(store)
"""

from docchat.service.database.config import RavenDBConfig
from docchat.service.database.metadata_store import RavenDBMetadataStore
from docchat.service.database.operations import (
    create_database,
    create_document_store,
    database_exists,
    delete_database,
    ensure_index_exists,
)
from docchat.service.database.vector_index import RavenDBVectorIndex

__all__ = [
    # Config
    "RavenDBConfig",
    # Operations
    "create_document_store",
    "ensure_index_exists",
    "database_exists",
    "create_database",
    "delete_database",
    # Backends
    "RavenDBVectorIndex",
    "RavenDBMetadataStore",
]
