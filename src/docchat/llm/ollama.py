"""Ollama LLM service implementation."""

import asyncio
import logging

import ollama

from docchat.constants import get_embedding_model
from docchat.llm.base import preview_messages

logger = logging.getLogger(__name__)


class OllamaService:
    """Ollama LLM service implementation.

    This service uses the Ollama API to generate responses and embeddings from
    local models. It implements both CompletionService and EmbeddingService.
    """

    def __init__(self, host: str, model: str, timeout: float | None = None) -> None:
        """Initialize the Ollama service.

        Args:
            host: The Ollama server host URL (e.g., "http://localhost:11434")
            model: The default chat model name (e.g., "llama3")
            timeout: Optional HTTP timeout in seconds for every request
        """
        self.host = host
        self.model = model
        logger.info(f"🤖 Initializing OllamaService: host={host}, model={model}")
        # Configure the Ollama client with the specified host
        self.client = ollama.Client(host=host, timeout=timeout)

    async def generate_response(self, messages: list[dict], model: str | None = None) -> str:
        """Generate a response using Ollama.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            model: Optional model name overriding the service default.

        Returns:
            str: The generated response content from the model.
        """
        chat_model = model or self.model
        logger.info(f"🗣️  Generating response with {chat_model}")
        preview_messages(logger, messages)

        try:
            # The ollama client is synchronous; keep it off the event loop
            response = await asyncio.to_thread(
                self.client.chat, model=chat_model, messages=messages
            )
            content = response.message.content or ""
            logger.info(f"✅ Response generated: {len(content)} characters")
            return content
        except Exception as e:
            logger.error(f"❌ Ollama API error: {e}", exc_info=True)
            raise

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Generate embeddings for a list of texts using Ollama.

        Args:
            texts: List of text strings to embed
            model: Optional embedding model name. If None, uses EMBEDDING_MODEL env var
                   or service-specific default.

        Returns:
            list[list[float]]: List of embedding vectors
        """
        embedding_model = model or get_embedding_model("ollama")
        embeddings = []

        for text in texts:
            response = self.client.embed(model=embedding_model, input=text)
            embeddings.append(response["embeddings"][0])

        logger.debug(f"Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
