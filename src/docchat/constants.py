"""Application-wide constants and defaults for DocChat.

This module provides a single source of truth for configuration defaults,
magic numbers, user-facing copy and other constants used throughout the
application.
"""

import os

# =============================================================================
# File Upload Limits
# =============================================================================
MAX_UPLOAD_SIZE_BYTES = 50 * 1024 * 1024  # 50MB

# =============================================================================
# Ingestion Settings
# =============================================================================
DEFAULT_CHUNK_SIZE = 1000  # Characters per chunk
UPSERT_BATCH_SIZE = 100  # Chunk records per vector index upsert
DEFAULT_EMBED_CONCURRENCY = 8  # Parallel embedding calls per document

# =============================================================================
# Retrieval Settings
# =============================================================================
DEFAULT_TOP_K = 5  # Default number of results for vector search
MAX_TOP_K = 20
DEFAULT_MAX_CONTEXT_CHARS = 12000
MAX_HISTORY_MESSAGES = 10  # Prior turns included in the prompt
SOURCE_LABEL_LENGTH = 8  # Characters of the document id used in citations

# =============================================================================
# Timeouts (seconds)
# =============================================================================
DEFAULT_EMBED_TIMEOUT = 30.0
DEFAULT_INDEX_TIMEOUT = 30.0
DEFAULT_COMPLETION_TIMEOUT = 60.0
DEFAULT_FETCH_TIMEOUT = 30.0

# =============================================================================
# Display Settings
# =============================================================================
CONTENT_PREVIEW_LENGTH = 200  # Characters to show in content previews

# =============================================================================
# User-facing copy
# =============================================================================
NO_DOCUMENTS_ANSWER = (
    "I couldn't find any relevant information in your documents. "
    "Try uploading a document that covers this topic or rephrasing your question."
)
GENERATION_FAILED_ANSWER = "Sorry, I couldn't generate a response. Please try again."

# =============================================================================
# Default URLs and Hosts
# =============================================================================
DEFAULT_OLLAMA_HOST = "http://localhost:11434"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_RAVENDB_URL = "http://localhost:8080"
DEFAULT_RAVENDB_DATABASE = "docchat"

# =============================================================================
# Model Defaults
# =============================================================================
COMPLETION_DEFAULTS = {
    "ollama": "llama3",
    "gemini": "gemini-2.5-flash",
    "openrouter": "deepseek/deepseek-r1:free",
}

EMBEDDING_DEFAULTS = {
    "ollama": "nomic-embed-text",
    "gemini": "text-embedding-004",
}

# Default embedding dimensions (for RavenDB vector index)
DEFAULT_EMBEDDING_DIMENSIONS = 768


def get_embedding_model(service: str | None = None) -> str:
    """Get the default embedding model for a given embedding service.

    Checks the EMBEDDING_MODEL environment variable first, then falls back
    to service-specific defaults.

    Args:
        service: The embedding service name ("ollama" or "gemini").
                If None, uses EMBEDDING_SERVICE env var or defaults to "ollama".

    Returns:
        str: The embedding model name to use.
    """
    # Environment variable takes precedence
    env_model = os.getenv("EMBEDDING_MODEL")
    if env_model:
        return env_model

    if service is None:
        service = os.getenv("EMBEDDING_SERVICE", "ollama")

    return EMBEDDING_DEFAULTS.get(service, EMBEDDING_DEFAULTS["ollama"])


def get_completion_model(service: str | None = None) -> str:
    """Get the default completion model for a given LLM service.

    Args:
        service: The LLM service name. If None, uses LLM_SERVICE env var.

    Returns:
        str: The model identifier used when a request does not name one.
    """
    env_model = os.getenv("LLM_MODEL")
    if env_model:
        return env_model

    if service is None:
        service = os.getenv("LLM_SERVICE", "ollama")

    return COMPLETION_DEFAULTS.get(service, COMPLETION_DEFAULTS["ollama"])


def get_int_setting(name: str, default: int) -> int:
    """Read a positive integer setting from the environment.

    Raises:
        ValueError: If the variable is set but is not a positive integer.
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = int(raw)
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {raw!r}")
    return value


def get_float_setting(name: str, default: float) -> float:
    """Read a positive float setting (e.g. a timeout) from the environment."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value
