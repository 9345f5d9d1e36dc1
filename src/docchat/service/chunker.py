"""Fixed-size character chunking for extracted document text."""

import math

from docchat.constants import DEFAULT_CHUNK_SIZE


def chunk_text(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[str]:
    """Split text into non-overlapping windows of ``chunk_size`` characters.

    Every window except possibly the last has exactly ``chunk_size``
    characters, and joining the windows reproduces the input.

    Args:
        text: The text to chunk
        chunk_size: Characters per chunk (default: 1000)

    Returns:
        list[str]: Ordered chunks; empty for empty text

    Raises:
        ValueError: If chunk_size is not positive
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    return [text[start : start + chunk_size] for start in range(0, len(text), chunk_size)]


def count_chunks(text: str, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """Number of chunks ``chunk_text`` would produce for this text."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return math.ceil(len(text) / chunk_size)
