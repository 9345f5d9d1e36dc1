"""Tests for the RavenDB backends."""

import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from docchat.errors import MetadataStoreError, VectorIndexError
from docchat.service.database import (
    RavenDBMetadataStore,
    RavenDBVectorIndex,
    create_database,
    create_document_store,
    database_exists,
    ensure_index_exists,
)
from docchat.service.database.config import (
    CHUNK_COLLECTION,
    DOCUMENT_COLLECTION,
    VECTOR_INDEX_NAME,
)
from docchat.service.database.models import ChunkEntity
from docchat.service.models import ChatMessage, Document, SearchFilter

from conftest import fake_vector, make_record


def _mock_store():
    """A DocumentStore double whose sessions all share one session mock."""
    store = MagicMock()
    session = MagicMock()
    store.open_session.return_value.__enter__.return_value = session
    return store, session


def _chunk_row(chunk_id, user_id, document_id="doc1", score=None, text="chunk text"):
    metadata = {"@id": chunk_id}
    if score is not None:
        metadata["@index-score"] = score
    return {
        "document_id": document_id,
        "user_id": user_id,
        "chunk_index": 0,
        "text": text,
        "embedding": fake_vector(text),
        "document_name": "doc.pdf",
        "@metadata": metadata,
    }


class TestCreateDocumentStore:
    """Tests for create_document_store function."""

    @patch("docchat.service.database.operations.DocumentStore")
    def test_creates_document_store_with_defaults(self, mock_document_store_class):
        """Test that create_document_store uses the environment configuration."""
        with patch.dict(
            os.environ, {"RAVENDB_URL": "http://test:8080", "RAVENDB_DATABASE": "testdb"}
        ):
            store = create_document_store()

        mock_document_store_class.assert_called_once_with(["http://test:8080"], "testdb")
        store.initialize.assert_called_once()

    @patch("docchat.service.database.operations.DocumentStore")
    def test_creates_document_store_with_custom_params(self, mock_document_store_class):
        create_document_store(url="http://custom:9090", database="customdb")
        mock_document_store_class.assert_called_once_with(["http://custom:9090"], "customdb")


class TestEnsureIndexExists:
    """Tests for ensure_index_exists function."""

    def test_skips_existing_index(self):
        store = MagicMock()
        store.maintenance.send.return_value = [VECTOR_INDEX_NAME]

        assert ensure_index_exists(store) is False
        assert store.maintenance.send.call_count == 1

    def test_creates_missing_index(self):
        store = MagicMock()
        store.maintenance.send.return_value = []

        assert ensure_index_exists(store, dimensions=64) is True
        assert store.maintenance.send.call_count == 2


class TestCreateDatabase:
    """Tests for create_database function."""

    @patch("docchat.service.database.operations.requests.put")
    def test_sends_admin_request(self, mock_put):
        create_database(url="http://test:8080", database="newdb")

        mock_put.assert_called_once_with(
            "http://test:8080/admin/databases",
            json={"DatabaseName": "newdb", "Settings": {}, "Disabled": False},
            timeout=10,
        )


class TestDatabaseExists:
    """Tests for database_exists function."""

    @patch("docchat.service.database.operations.requests.get")
    def test_finds_database_by_name(self, mock_get):
        mock_get.return_value.json.return_value = {
            "Databases": [{"Name": "other"}, {"Name": "docchat"}]
        }

        assert database_exists(url="http://test:8080", database="docchat") is True
        mock_get.assert_called_once_with("http://test:8080/databases", timeout=10)

    @patch("docchat.service.database.operations.requests.get")
    def test_missing_database(self, mock_get):
        mock_get.return_value.json.return_value = {"Databases": [{"Name": "other"}]}

        assert database_exists(url="http://test:8080", database="docchat") is False

    @patch("docchat.service.database.operations.requests.get")
    def test_unreachable_server(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("refused")

        assert database_exists(url="http://test:8080", database="docchat") is False


class TestRavenDBVectorIndex:
    """Tests for RavenDBVectorIndex with a mocked DocumentStore."""

    @patch("docchat.service.database.vector_index.ensure_index_exists")
    def test_upsert_stores_entities_by_chunk_id(self, mock_ensure):
        store, session = _mock_store()
        index = RavenDBVectorIndex(store)
        records = [make_record("doc1", "alice", i, f"text {i}") for i in range(2)]

        assert index.upsert(records) == 2

        stored = session.store.call_args_list
        assert [c.args[1] for c in stored] == ["doc1-0", "doc1-1"]
        assert isinstance(stored[0].args[0], ChunkEntity)
        assert stored[0].args[0].user_id == "alice"
        session.save_changes.assert_called_once()
        mock_ensure.assert_called_once_with(store)

    @patch("docchat.service.database.vector_index.ensure_index_exists")
    def test_index_checked_once(self, mock_ensure):
        store, _ = _mock_store()
        index = RavenDBVectorIndex(store)

        index.upsert([make_record("d", "alice", 0, "a")])
        index.upsert([make_record("d", "alice", 1, "b")])

        mock_ensure.assert_called_once()

    @patch("docchat.service.database.vector_index.ensure_index_exists")
    def test_upsert_failure_raises_index_error(self, mock_ensure):
        store, session = _mock_store()
        session.save_changes.side_effect = RuntimeError("connection refused")

        with pytest.raises(VectorIndexError, match="connection refused"):
            RavenDBVectorIndex(store).upsert([make_record("d", "alice", 0, "a")])

    def test_search_filters_by_user(self):
        store, session = _mock_store()
        query = session.query_collection.return_value.where_equals.return_value
        chained = query.and_also.return_value.vector_search.return_value.order_by_score.return_value
        chained.take.return_value = [_chunk_row("doc1-0", "alice", score=0.8)]

        matches = RavenDBVectorIndex(store).similarity_search(
            fake_vector("chunk text"), 3, SearchFilter(user_id="alice")
        )

        session.query_collection.assert_called_once_with(CHUNK_COLLECTION, object_type=dict)
        session.query_collection.return_value.where_equals.assert_called_once_with(
            "user_id", "alice"
        )
        chained.take.assert_called_once_with(3)
        assert [m.chunk_id for m in matches] == ["doc1-0"]
        assert matches[0].score == 0.8

    def test_search_drops_rows_outside_filter(self):
        store, session = _mock_store()
        query = session.query_collection.return_value.where_equals.return_value
        chained = query.and_also.return_value.vector_search.return_value.order_by_score.return_value
        chained.take.return_value = [
            _chunk_row("doc1-0", "alice", score=0.5),
            _chunk_row("doc9-0", "bob", document_id="doc9", score=0.9),
        ]

        matches = RavenDBVectorIndex(store).similarity_search(
            fake_vector("x"), 5, SearchFilter(user_id="alice")
        )

        assert all(m.user_id == "alice" for m in matches)
        assert len(matches) == 1

    def test_search_falls_back_to_cosine_score(self):
        store, session = _mock_store()
        query = session.query_collection.return_value.where_equals.return_value
        chained = query.and_also.return_value.vector_search.return_value.order_by_score.return_value
        chained.take.return_value = [_chunk_row("doc1-0", "alice", text="solar power")]

        matches = RavenDBVectorIndex(store).similarity_search(
            fake_vector("solar power"), 5, SearchFilter(user_id="alice")
        )

        assert matches[0].score == pytest.approx(1.0)

    def test_search_failure_raises_index_error(self):
        store, session = _mock_store()
        session.query_collection.side_effect = RuntimeError("timeout")

        with pytest.raises(VectorIndexError):
            RavenDBVectorIndex(store).similarity_search([0.1], 5, SearchFilter(user_id="alice"))

    def test_delete_document(self):
        store, session = _mock_store()
        rows = [_chunk_row("doc1-0", "alice"), _chunk_row("doc1-1", "alice")]
        query = session.query_collection.return_value.where_equals.return_value
        query.and_also.return_value.where_equals.return_value = rows

        removed = RavenDBVectorIndex(store).delete_document("doc1", "alice")

        assert removed == 2
        session.delete.assert_any_call("doc1-0")
        session.delete.assert_any_call("doc1-1")
        session.save_changes.assert_called_once()

    def test_count_for_user(self):
        store, session = _mock_store()
        session.advanced.raw_query.return_value.add_parameter.return_value = [{}, {}]

        assert RavenDBVectorIndex(store).count("alice") == 2
        session.advanced.raw_query.return_value.add_parameter.assert_called_once_with(
            "user_id", "alice"
        )


class TestRavenDBMetadataStore:
    """Tests for RavenDBMetadataStore with a mocked DocumentStore."""

    def test_add_document_uses_prefixed_key(self):
        store, session = _mock_store()
        document = Document(id="doc1", user_id="alice", name="a.pdf", chunk_count=3)

        RavenDBMetadataStore(store).add_document(document)

        entity, key = session.store.call_args.args
        assert key == f"{DOCUMENT_COLLECTION}/doc1"
        assert entity.chunk_count == 3
        session.save_changes.assert_called_once()

    def test_get_document_checks_owner(self):
        store, session = _mock_store()
        session.load.return_value = Document(id="doc1", user_id="alice", name="a.pdf").to_dict()
        metadata = RavenDBMetadataStore(store)

        assert metadata.get_document("doc1", "alice").name == "a.pdf"
        assert metadata.get_document("doc1", "bob") is None

    def test_delete_document_of_other_user(self):
        store, session = _mock_store()
        session.load.return_value = {"id": "doc1", "user_id": "alice"}

        assert RavenDBMetadataStore(store).delete_document("doc1", "bob") is False
        session.delete.assert_not_called()

    def test_list_messages_sorted_and_limited(self):
        store, session = _mock_store()
        session.query_collection.return_value.where_equals.return_value = [
            ChatMessage(id="m2", user_id="alice", role="assistant", content="b",
                        created_at="2025-01-02T00:00:00+00:00").to_dict(),
            ChatMessage(id="m1", user_id="alice", role="user", content="a",
                        created_at="2025-01-01T00:00:00+00:00").to_dict(),
        ]

        messages = RavenDBMetadataStore(store).list_messages("alice", limit=1)

        assert [m.id for m in messages] == ["m2"]

    def test_store_failure_raises_metadata_error(self):
        store, session = _mock_store()
        session.save_changes.side_effect = RuntimeError("disk full")

        with pytest.raises(MetadataStoreError):
            RavenDBMetadataStore(store).add_document(
                Document(id="doc1", user_id="alice", name="a.pdf")
            )


@pytest.mark.integration
@pytest.mark.requires_ravendb
class TestRavenDBIntegration:
    """Integration tests against a running RavenDB server."""

    def test_document_round_trip(self, ravendb_store):
        metadata = RavenDBMetadataStore(ravendb_store)
        metadata.add_document(Document(id="doc1", user_id="alice", name="a.pdf", chunk_count=1))

        assert metadata.get_document("doc1", "alice").name == "a.pdf"
        assert metadata.delete_document("doc1", "alice") is True

    def test_upsert_and_count(self, ravendb_store):
        index = RavenDBVectorIndex(ravendb_store)
        index.upsert([make_record("doc1", "alice", i, f"text {i}") for i in range(3)])

        assert index.count("alice") == 3
        assert index.delete_document("doc1", "alice") == 3
