"""Domain models shared by the ingestion and retrieval pipelines."""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def make_chunk_id(document_id: str, chunk_index: int) -> str:
    """Derive the deterministic vector id for a chunk.

    Re-ingesting the same document id yields the same chunk ids, so a retried
    upsert overwrites instead of duplicating.
    """
    return f"{document_id}-{chunk_index}"


@dataclass
class Document:
    """Metadata for one ingested PDF.

    Attributes:
        id: Unique document identifier
        user_id: Owning user
        name: Display name
        source_url: URL or blob reference of the original file
        chunk_count: Number of chunk records indexed for this document
        created_at: ISO-8601 creation timestamp
    """

    id: str
    user_id: str
    name: str
    source_url: str = ""
    chunk_count: int = 0
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Document":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            name=data.get("name", ""),
            source_url=data.get("source_url", ""),
            chunk_count=int(data.get("chunk_count", 0)),
            created_at=data.get("created_at") or utc_now(),
        )


@dataclass
class ChunkRecord:
    """A contiguous slice of a document's text together with its embedding.

    The owning user id is denormalized onto every chunk so that similarity
    search can filter on it.
    """

    id: str
    document_id: str
    user_id: str
    chunk_index: int
    text: str
    embedding: list[float]
    document_name: str = ""
    source_url: str = ""
    created_at: str = field(default_factory=utc_now)

    def metadata(self) -> dict[str, Any]:
        """Return the filterable metadata stored next to the vector."""
        return {
            "document_id": self.document_id,
            "user_id": self.user_id,
            "chunk_index": self.chunk_index,
            "document_name": self.document_name,
            "source_url": self.source_url,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class SearchFilter:
    """Restricts a similarity search to one user's chunks.

    The user id is mandatory: a filter cannot be built without one, and the
    vector index contract cannot be called without a filter.
    """

    user_id: str
    document_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.user_id, str) or not self.user_id.strip():
            raise ValueError("SearchFilter requires a non-empty user_id")

    def matches(self, user_id: str, document_id: str) -> bool:
        """Check whether a record with the given ownership passes the filter."""
        if user_id != self.user_id:
            return False
        return self.document_id is None or document_id == self.document_id


@dataclass
class QueryMatch:
    """One similarity search hit. Ephemeral, never persisted."""

    chunk_id: str
    document_id: str
    user_id: str
    chunk_index: int
    text: str
    score: float
    document_name: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ChatMessage:
    """One conversation turn, kept for history display and follow-up context."""

    id: str
    user_id: str
    role: str
    content: str
    sources: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            role=data.get("role", "user"),
            content=data.get("content", ""),
            sources=list(data.get("sources") or []),
            created_at=data.get("created_at") or utc_now(),
        )


@dataclass
class IngestResult:
    """Outcome of a successful ingestion."""

    document_id: str
    chunk_count: int
    document: Document


@dataclass
class Answer:
    """Outcome of a retrieval-augmented question.

    Attributes:
        text: Completion text, or the fixed copy for the no-documents and
            failure outcomes
        sources: De-duplicated citation labels in rank order
        matches: The matches the context was built from
        status: "answered", "no_documents" or "failed"
    """

    ANSWERED = "answered"
    NO_DOCUMENTS = "no_documents"
    FAILED = "failed"

    text: str
    sources: list[str] = field(default_factory=list)
    matches: list[QueryMatch] = field(default_factory=list)
    status: str = ANSWERED
