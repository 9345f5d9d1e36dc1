"""Metadata store contract and the in-process implementation.

The metadata store persists Document and ChatMessage records. Every read and
delete is scoped to the owning user.
"""

import threading
from typing import Protocol

from docchat.service.models import ChatMessage, Document


class MetadataStore(Protocol):
    """Relational-style persistence for documents and chat messages."""

    def add_document(self, document: Document) -> None:
        ...

    def get_document(self, document_id: str, user_id: str) -> Document | None:
        """Return the document if it exists and belongs to user_id."""
        ...

    def list_documents(self, user_id: str) -> list[Document]:
        """Return the user's documents, newest first."""
        ...

    def delete_document(self, document_id: str, user_id: str) -> bool:
        """Delete the user's document row. Returns False when nothing matched."""
        ...

    def add_message(self, message: ChatMessage) -> None:
        ...

    def list_messages(self, user_id: str, limit: int | None = None) -> list[ChatMessage]:
        """Return the user's messages oldest first; with limit, the most recent ones."""
        ...

    def clear_messages(self, user_id: str) -> int:
        """Delete all of the user's messages and return how many were removed."""
        ...


class InMemoryMetadataStore:
    """Dict-backed metadata store for local development and tests."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._messages: list[ChatMessage] = []
        self._lock = threading.Lock()

    def add_document(self, document: Document) -> None:
        with self._lock:
            self._documents[document.id] = document

    def get_document(self, document_id: str, user_id: str) -> Document | None:
        with self._lock:
            document = self._documents.get(document_id)
        if document is None or document.user_id != user_id:
            return None
        return document

    def list_documents(self, user_id: str) -> list[Document]:
        with self._lock:
            owned = [doc for doc in self._documents.values() if doc.user_id == user_id]
        return sorted(owned, key=lambda doc: doc.created_at, reverse=True)

    def delete_document(self, document_id: str, user_id: str) -> bool:
        with self._lock:
            document = self._documents.get(document_id)
            if document is None or document.user_id != user_id:
                return False
            del self._documents[document_id]
            return True

    def add_message(self, message: ChatMessage) -> None:
        with self._lock:
            self._messages.append(message)

    def list_messages(self, user_id: str, limit: int | None = None) -> list[ChatMessage]:
        with self._lock:
            owned = [msg for msg in self._messages if msg.user_id == user_id]
        # Insertion order breaks timestamp ties within one exchange
        owned = sorted(owned, key=lambda msg: msg.created_at)
        if limit is not None:
            owned = owned[-limit:] if limit > 0 else []
        return owned

    def clear_messages(self, user_id: str) -> int:
        with self._lock:
            kept = [msg for msg in self._messages if msg.user_id != user_id]
            removed = len(self._messages) - len(kept)
            self._messages = kept
        return removed
