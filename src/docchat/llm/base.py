"""Protocols for completion and embedding providers."""

from typing import Protocol


class CompletionService(Protocol):
    """Protocol defining the interface for chat-completion providers.

    This protocol ensures type safety and allows for multiple LLM provider
    implementations while maintaining a consistent interface.
    """

    async def generate_response(self, messages: list[dict], model: str | None = None) -> str:
        """Generate a response from the LLM based on the provided messages.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
                     Example: [{"role": "user", "content": "Hello"}]
            model: Optional model identifier overriding the service default.

        Returns:
            str: The generated response content from the LLM.
        """
        ...


class EmbeddingService(Protocol):
    """Protocol for providers that turn text into embedding vectors."""

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses a default for the service.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        ...


def preview_messages(logger, messages: list[dict]) -> None:
    """Log a short preview of each outgoing message at DEBUG level."""
    logger.debug(f"Messages: {len(messages)} messages")
    for i, msg in enumerate(messages):
        role = msg.get("role", "unknown")
        content_preview = msg.get("content", "")[:100]
        logger.debug(f"  Message {i + 1} ({role}): {content_preview}...")
