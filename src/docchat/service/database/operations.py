"""RavenDB store creation, the chunk vector index and database lifecycle."""

import logging

import requests
from ravendb import DocumentStore
from ravendb.documents.indexes.definitions import (
    FieldIndexing,
    FieldStorage,
    IndexDefinition,
    IndexFieldOptions,
)
from ravendb.documents.indexes.vector.options import VectorOptions
from ravendb.documents.operations.indexes import GetIndexNamesOperation, PutIndexesOperation
from ravendb.serverwide.operations.common import DeleteDatabaseOperation

from docchat.service.database.config import CHUNK_COLLECTION, VECTOR_INDEX_NAME, RavenDBConfig

logger = logging.getLogger(__name__)

ADMIN_REQUEST_TIMEOUT = 10

# Owner fields are indexed alongside the vector so searches can filter by user
CHUNK_INDEX_MAP = f"""from chunk in docs.{CHUNK_COLLECTION}
where chunk.embedding != null
select new {{
    user_id = chunk.user_id,
    document_id = chunk.document_id,
    chunk_index = chunk.chunk_index,
    embedding = CreateVector(chunk.embedding)
}}"""


def _resolve(url: str | None, database: str | None) -> tuple[str, str]:
    return url or RavenDBConfig.get_url(), database or RavenDBConfig.get_database_name()


def create_document_store(url: str | None = None, database: str | None = None) -> DocumentStore:
    """Create and initialize a DocumentStore.

    Args:
        url: RavenDB server URL (default: RAVENDB_URL)
        database: Database name (default: RAVENDB_DATABASE)
    """
    url, database = _resolve(url, database)
    store = DocumentStore([url], database)
    store.initialize()
    return store


def ensure_index_exists(store: DocumentStore, dimensions: int | None = None) -> bool:
    """Create the chunk vector index unless it is already deployed.

    Args:
        store: Initialized DocumentStore
        dimensions: Embedding size (default: EMBEDDING_DIMENSIONS env)

    Returns:
        bool: True if the index was created by this call
    """
    if VECTOR_INDEX_NAME in store.maintenance.send(GetIndexNamesOperation(0, 100)):
        return False

    dimensions = dimensions or RavenDBConfig.get_embedding_dimensions()

    definition = IndexDefinition()
    definition.name = VECTOR_INDEX_NAME
    definition.maps = {CHUNK_INDEX_MAP}
    definition.fields = {
        "embedding": IndexFieldOptions(
            storage=FieldStorage.YES,
            indexing=FieldIndexing.NO,
            vector=VectorOptions(dimensions=dimensions),
        )
    }

    store.maintenance.send(PutIndexesOperation(definition))
    logger.info(f"🗂️ Deployed index {VECTOR_INDEX_NAME} ({dimensions} dimensions)")
    return True


def database_exists(url: str | None = None, database: str | None = None) -> bool:
    """Ask the server whether the database is present.

    Unreachable servers count as "does not exist".
    """
    url, database = _resolve(url, database)
    try:
        response = requests.get(f"{url}/databases", timeout=ADMIN_REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"⚠️ Could not reach RavenDB at {url}: {e}")
        return False

    names = {entry.get("Name") for entry in response.json().get("Databases", [])}
    return database in names


def create_database(url: str | None = None, database: str | None = None) -> None:
    """Create a database through the admin endpoint.

    Raises:
        requests.HTTPError: If the server rejects the request
    """
    url, database = _resolve(url, database)
    response = requests.put(
        f"{url}/admin/databases",
        json={"DatabaseName": database, "Settings": {}, "Disabled": False},
        timeout=ADMIN_REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    logger.info(f"✅ Created database '{database}'")


def delete_database(url: str | None = None, database: str | None = None) -> None:
    """Hard-delete a database and everything in it. Used by test teardown."""
    url, database = _resolve(url, database)
    store = DocumentStore([url], database)
    try:
        store.initialize()
        store.maintenance.server.send(
            DeleteDatabaseOperation(database_name=database, hard_delete=True)
        )
    finally:
        store.close()
    logger.info(f"🗑️ Deleted database '{database}'")
