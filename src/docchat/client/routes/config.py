"""Shared configuration for route modules."""

from dataclasses import dataclass, field
from pathlib import Path

from docchat.service.documents import ChatHistory, DocumentManager
from docchat.service.ingestion import IngestionPipeline
from docchat.service.retrieval import RetrievalPipeline


@dataclass
class RouteConfig:
    """Configuration container for Flask route dependencies.

    The pipelines are injected once at startup and read by every request.
    """

    ingestion: IngestionPipeline | None = None
    retrieval: RetrievalPipeline | None = None
    documents: DocumentManager | None = None
    history: ChatHistory | None = None
    upload_folder: Path | None = None
    allowed_extensions: set[str] = field(default_factory=lambda: {"pdf"})


# Single shared config instance
_config = RouteConfig()


def get_config() -> RouteConfig:
    """Get the shared route configuration.

    Returns:
        RouteConfig instance with current settings
    """
    return _config


def init_config(
    ingestion: IngestionPipeline | None = None,
    retrieval: RetrievalPipeline | None = None,
    documents: DocumentManager | None = None,
    history: ChatHistory | None = None,
    upload_folder: Path | None = None,
) -> None:
    """Initialize the shared route configuration.

    Arguments left as None keep their current value.
    """
    if ingestion is not None:
        _config.ingestion = ingestion
    if retrieval is not None:
        _config.retrieval = retrieval
    if documents is not None:
        _config.documents = documents
    if history is not None:
        _config.history = history
    if upload_folder is not None:
        _config.upload_folder = upload_folder
