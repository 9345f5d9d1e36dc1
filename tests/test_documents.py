"""Tests for document management and chat history."""

from unittest.mock import MagicMock

import pytest

from docchat.errors import DocumentNotFoundError, ValidationError, VectorIndexError
from docchat.service.documents import DocumentManager
from docchat.service.models import Answer, Document

from conftest import make_record


@pytest.fixture
def stored_document(vector_index, metadata_store):
    """One two-chunk document owned by alice."""
    metadata_store.add_document(Document(id="doc1", user_id="alice", name="a.pdf", chunk_count=2))
    vector_index.upsert(
        [make_record("doc1", "alice", 0, "first"), make_record("doc1", "alice", 1, "second")]
    )
    return "doc1"


class TestDocumentManager:
    """Tests for DocumentManager."""

    def test_list_documents(self, document_manager, stored_document):
        assert [d.id for d in document_manager.list_documents("alice")] == ["doc1"]
        assert document_manager.list_documents("bob") == []

    def test_list_requires_user(self, document_manager):
        with pytest.raises(ValidationError):
            document_manager.list_documents("")

    def test_get_document_of_other_user_not_found(self, document_manager, stored_document):
        with pytest.raises(DocumentNotFoundError):
            document_manager.get_document("doc1", "bob")

    def test_delete_removes_vectors_then_metadata(
        self, document_manager, stored_document, vector_index, metadata_store
    ):
        removed = document_manager.delete_document("doc1", "alice")

        assert removed == 2
        assert vector_index.count("alice") == 0
        assert metadata_store.get_document("doc1", "alice") is None

    def test_delete_foreign_document_not_found(
        self, document_manager, stored_document, vector_index
    ):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            document_manager.delete_document("doc1", "bob")

        assert exc_info.value.category == "not_found"
        assert vector_index.count("alice") == 2

    def test_delete_missing_document_not_found(self, document_manager):
        with pytest.raises(DocumentNotFoundError):
            document_manager.delete_document("nope", "alice")

    def test_vector_failure_keeps_metadata(self, metadata_store, stored_document):
        index = MagicMock()
        index.delete_document.side_effect = VectorIndexError("index down")
        manager = DocumentManager(index, metadata_store)

        with pytest.raises(VectorIndexError):
            manager.delete_document("doc1", "alice")

        assert metadata_store.get_document("doc1", "alice") is not None

    def test_delete_order(self, stored_document, metadata_store, vector_index):
        calls = []
        index = MagicMock()
        index.delete_document.side_effect = lambda *args: calls.append("vectors") or 2
        store = MagicMock(wraps=metadata_store)
        store.delete_document.side_effect = lambda *args: calls.append("metadata") or True
        manager = DocumentManager(index, store)

        manager.delete_document("doc1", "alice")

        assert calls == ["vectors", "metadata"]


class TestChatHistory:
    """Tests for ChatHistory."""

    def test_record_exchange_stores_both_turns(self, chat_history):
        answer = Answer(text="It converts sunlight.", sources=["Document-abc12345"])

        chat_history.record_exchange("alice", "How do solar panels work?", answer)

        messages = chat_history.list_messages("alice")
        assert [(m.role, m.content) for m in messages] == [
            ("user", "How do solar panels work?"),
            ("assistant", "It converts sunlight."),
        ]
        assert messages[1].sources == ["Document-abc12345"]

    def test_failed_answer_recorded_with_its_copy(self, chat_history):
        answer = Answer(text="Sorry, try again.", status=Answer.FAILED)

        chat_history.record_exchange("alice", "q", answer)

        assert chat_history.list_messages("alice")[-1].content == "Sorry, try again."

    def test_prior_turns_and_limit(self, chat_history):
        for i in range(3):
            chat_history.record_exchange("alice", f"q{i}", Answer(text=f"a{i}"))

        turns = chat_history.prior_turns("alice", limit=2)

        assert turns == [{"role": "user", "content": "q2"}, {"role": "assistant", "content": "a2"}]

    def test_clear(self, chat_history):
        chat_history.record_exchange("alice", "q", Answer(text="a"))
        chat_history.record_exchange("bob", "q", Answer(text="a"))

        assert chat_history.clear("alice") == 2
        assert chat_history.list_messages("alice") == []
        assert len(chat_history.list_messages("bob")) == 2

    def test_requires_user(self, chat_history):
        with pytest.raises(ValidationError):
            chat_history.record_exchange("", "q", Answer(text="a"))
