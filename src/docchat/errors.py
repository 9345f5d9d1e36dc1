"""Exception hierarchy for the ingestion and retrieval pipelines.

Every error carries a stable ``category`` string that the HTTP and CLI layers
surface to users instead of raw backend messages.
"""


class DocChatError(Exception):
    """Base class for all DocChat errors.

    Attributes:
        category: Stable, user-facing error category
        stage: Pipeline stage that failed, if known
        document_id: Document being processed, if known
        user_id: Owning user, if known
    """

    category = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        document_id: str | None = None,
        user_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.document_id = document_id
        self.user_id = user_id

    def to_dict(self) -> dict[str, str]:
        """Serialize the error for an API response."""
        return {"error": self.category, "message": self.message}


class ValidationError(DocChatError):
    """Missing or malformed request input. Raised before any side effect."""

    category = "invalid_request"


class ExtractionError(DocChatError):
    """The PDF could not be fetched or parsed, or contained no text."""

    category = "extraction_failed"


class EmbeddingError(DocChatError):
    """The embedding service failed or timed out."""

    category = "embedding_failed"


class VectorIndexError(DocChatError):
    """The vector index rejected an upsert, search or delete."""

    category = "index_failed"


class MetadataStoreError(DocChatError):
    """Document or chat-message metadata could not be read or written."""

    category = "metadata_failed"


class CompletionError(DocChatError):
    """The completion service failed, timed out or returned no text."""

    category = "completion_failed"


class DocumentNotFoundError(DocChatError):
    """The document does not exist or is not owned by the requesting user."""

    category = "not_found"
