"""RavenDB implementation of the MetadataStore protocol."""

import logging

from ravendb import DocumentStore

from docchat.errors import MetadataStoreError
from docchat.service.database.config import DOCUMENT_COLLECTION, MESSAGE_COLLECTION
from docchat.service.database.models import ChatMessageEntity, DocumentEntity
from docchat.service.database.operations import create_document_store
from docchat.service.models import ChatMessage, Document

logger = logging.getLogger(__name__)


class RavenDBMetadataStore:
    """Document and chat-message rows stored in two RavenDB collections."""

    def __init__(
        self,
        store: DocumentStore | None = None,
        url: str | None = None,
        database: str | None = None,
    ) -> None:
        self.store = store if store is not None else create_document_store(url, database)

    @staticmethod
    def _document_key(document_id: str) -> str:
        return f"{DOCUMENT_COLLECTION}/{document_id}"

    @staticmethod
    def _message_key(message_id: str) -> str:
        return f"{MESSAGE_COLLECTION}/{message_id}"

    def _store_entity(self, entity, key: str, collection: str) -> None:
        with self.store.open_session() as session:
            session.store(entity, key)
            metadata = session.advanced.get_metadata_for(entity)
            metadata["@collection"] = collection
            session.save_changes()

    def add_document(self, document: Document) -> None:
        key = self._document_key(document.id)
        try:
            self._store_entity(DocumentEntity.from_document(key, document), key, DOCUMENT_COLLECTION)
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to store document metadata: {type(e).__name__}: {e}",
                stage="persist_metadata",
                document_id=document.id,
                user_id=document.user_id,
            ) from e

    def get_document(self, document_id: str, user_id: str) -> Document | None:
        try:
            with self.store.open_session() as session:
                data = session.load(self._document_key(document_id), dict)
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to load document metadata: {type(e).__name__}: {e}",
                document_id=document_id,
                user_id=user_id,
            ) from e
        if not data or data.get("user_id") != user_id:
            return None
        return Document.from_dict(data)

    def list_documents(self, user_id: str) -> list[Document]:
        try:
            with self.store.open_session() as session:
                rows = list(
                    session.query_collection(DOCUMENT_COLLECTION, object_type=dict).where_equals(
                        "user_id", user_id
                    )
                )
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to list documents: {type(e).__name__}: {e}", user_id=user_id
            ) from e
        documents = [Document.from_dict(row) for row in rows]
        return sorted(documents, key=lambda doc: doc.created_at, reverse=True)

    def delete_document(self, document_id: str, user_id: str) -> bool:
        key = self._document_key(document_id)
        try:
            with self.store.open_session() as session:
                data = session.load(key, dict)
                if not data or data.get("user_id") != user_id:
                    return False
                session.delete(key)
                session.save_changes()
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to delete document metadata: {type(e).__name__}: {e}",
                document_id=document_id,
                user_id=user_id,
            ) from e
        return True

    def add_message(self, message: ChatMessage) -> None:
        key = self._message_key(message.id)
        try:
            self._store_entity(
                ChatMessageEntity.from_message(key, message), key, MESSAGE_COLLECTION
            )
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to store chat message: {type(e).__name__}: {e}", user_id=message.user_id
            ) from e

    def list_messages(self, user_id: str, limit: int | None = None) -> list[ChatMessage]:
        try:
            with self.store.open_session() as session:
                rows = list(
                    session.query_collection(MESSAGE_COLLECTION, object_type=dict).where_equals(
                        "user_id", user_id
                    )
                )
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to list chat messages: {type(e).__name__}: {e}", user_id=user_id
            ) from e
        messages = sorted(
            (ChatMessage.from_dict(row) for row in rows), key=lambda msg: msg.created_at
        )
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    def clear_messages(self, user_id: str) -> int:
        try:
            with self.store.open_session() as session:
                rows = list(
                    session.query_collection(MESSAGE_COLLECTION, object_type=dict).where_equals(
                        "user_id", user_id
                    )
                )
                for row in rows:
                    session.delete(row["@metadata"]["@id"])
                session.save_changes()
        except Exception as e:
            raise MetadataStoreError(
                f"Failed to clear chat history: {type(e).__name__}: {e}", user_id=user_id
            ) from e
        logger.info(f"🧹 Cleared {len(rows)} chat messages for user {user_id}")
        return len(rows)
