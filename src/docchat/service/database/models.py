"""Entity classes persisted in RavenDB.

Note: eq=False ensures each instance is unique and hashable by identity,
which is required for RavenDB's session entity tracking.
"""

from dataclasses import dataclass, field

from docchat.service.models import ChatMessage, ChunkRecord, Document


@dataclass(eq=False)
class ChunkEntity:
    """A document chunk with embedding for vector search.

    Attributes:
        Id: RavenDB document ID, the deterministic chunk id
        document_id: Owning document
        user_id: Owning user, used as the mandatory search filter
        chunk_index: Index of this chunk in the document
        text: The text content of the chunk
        embedding: Vector embedding of the text
        document_name: Display name of the source document
        source_url: Location of the original PDF
        created_at: ISO-8601 ingestion timestamp
    """

    Id: str | None = None
    document_id: str = ""
    user_id: str = ""
    chunk_index: int = 0
    text: str = ""
    embedding: list[float] = field(default_factory=list)
    document_name: str = ""
    source_url: str = ""
    created_at: str = ""

    def __hash__(self) -> int:
        """Hash by object identity for RavenDB session tracking."""
        return id(self)

    @classmethod
    def from_record(cls, record: ChunkRecord) -> "ChunkEntity":
        return cls(
            Id=record.id,
            document_id=record.document_id,
            user_id=record.user_id,
            chunk_index=record.chunk_index,
            text=record.text,
            embedding=list(record.embedding),
            document_name=record.document_name,
            source_url=record.source_url,
            created_at=record.created_at,
        )


@dataclass(eq=False)
class DocumentEntity:
    """Document metadata row."""

    Id: str | None = None
    id: str = ""
    user_id: str = ""
    name: str = ""
    source_url: str = ""
    chunk_count: int = 0
    created_at: str = ""

    def __hash__(self) -> int:
        return id(self)

    @classmethod
    def from_document(cls, key: str, document: Document) -> "DocumentEntity":
        return cls(Id=key, **document.to_dict())


@dataclass(eq=False)
class ChatMessageEntity:
    """Chat history row."""

    Id: str | None = None
    id: str = ""
    user_id: str = ""
    role: str = ""
    content: str = ""
    sources: list[str] = field(default_factory=list)
    created_at: str = ""

    def __hash__(self) -> int:
        return id(self)

    @classmethod
    def from_message(cls, key: str, message: ChatMessage) -> "ChatMessageEntity":
        return cls(Id=key, **message.to_dict())
