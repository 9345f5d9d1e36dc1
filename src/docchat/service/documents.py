"""Document management and chat history on top of the storage backends."""

import logging
import uuid

from docchat.errors import DocumentNotFoundError, ValidationError
from docchat.service.metadata_store import MetadataStore
from docchat.service.models import Answer, ChatMessage, Document
from docchat.service.vector_index import VectorIndex

logger = logging.getLogger(__name__)


def _require_user(user_id: str) -> None:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationError("userId is required")


class DocumentManager:
    """Lists and deletes a user's documents."""

    def __init__(self, vector_index: VectorIndex, metadata_store: MetadataStore) -> None:
        self.vector_index = vector_index
        self.metadata_store = metadata_store

    def list_documents(self, user_id: str) -> list[Document]:
        _require_user(user_id)
        return self.metadata_store.list_documents(user_id)

    def get_document(self, document_id: str, user_id: str) -> Document:
        """Return the user's document.

        Raises:
            DocumentNotFoundError: If it does not exist or belongs to someone else
        """
        _require_user(user_id)
        document = self.metadata_store.get_document(document_id, user_id)
        if document is None:
            raise DocumentNotFoundError(
                f"Document {document_id} not found", document_id=document_id, user_id=user_id
            )
        return document

    def delete_document(self, document_id: str, user_id: str) -> int:
        """Delete a document's vectors, then its metadata row.

        If removing the vectors fails the row is left in place, so the
        document stays listed and the delete can be retried.

        Returns:
            int: Number of chunk records removed from the vector index

        Raises:
            DocumentNotFoundError: If it does not exist or belongs to someone else
            VectorIndexError: If the vectors could not be removed
            MetadataStoreError: If the row could not be removed
        """
        self.get_document(document_id, user_id)

        removed = self.vector_index.delete_document(document_id, user_id)
        logger.info(f"🗑️ Removed {removed} chunks for document {document_id} (user={user_id})")

        if not self.metadata_store.delete_document(document_id, user_id):
            raise DocumentNotFoundError(
                f"Document {document_id} not found", document_id=document_id, user_id=user_id
            )
        logger.info(f"✅ Deleted document {document_id} for user {user_id}")
        return removed


class ChatHistory:
    """Per-user conversation log stored in the metadata store."""

    def __init__(self, metadata_store: MetadataStore) -> None:
        self.metadata_store = metadata_store

    def record_exchange(self, user_id: str, question: str, answer: Answer) -> list[ChatMessage]:
        """Store a question and its answer as two consecutive messages."""
        _require_user(user_id)
        user_message = ChatMessage(
            id=uuid.uuid4().hex, user_id=user_id, role="user", content=question
        )
        assistant_message = ChatMessage(
            id=uuid.uuid4().hex,
            user_id=user_id,
            role="assistant",
            content=answer.text,
            sources=list(answer.sources),
        )
        for message in (user_message, assistant_message):
            self.metadata_store.add_message(message)
        return [user_message, assistant_message]

    def list_messages(self, user_id: str, limit: int | None = None) -> list[ChatMessage]:
        _require_user(user_id)
        return self.metadata_store.list_messages(user_id, limit)

    def prior_turns(self, user_id: str, limit: int | None = None) -> list[dict]:
        """Stored messages as role/content dicts for the retrieval prompt."""
        return [
            {"role": message.role, "content": message.content}
            for message in self.list_messages(user_id, limit)
        ]

    def clear(self, user_id: str) -> int:
        _require_user(user_id)
        return self.metadata_store.clear_messages(user_id)
