"""Google Gemini LLM service implementation."""

import asyncio
import logging

from google import genai

from docchat.constants import get_embedding_model
from docchat.llm.base import preview_messages

logger = logging.getLogger(__name__)


class GeminiService:
    """Google Gemini LLM service implementation.

    This service uses the Google Gemini API to generate responses and
    embeddings. The API key is automatically retrieved from the GEMINI_API_KEY
    environment variable.
    """

    def __init__(self, model: str) -> None:
        """Initialize the Gemini service.

        Args:
            model: The default model name to use (e.g., "gemini-2.5-flash")
        """
        self.model = model
        logger.info(f"🤖 Initializing GeminiService: model={model}")
        # The client gets the API key from the GEMINI_API_KEY environment variable
        self.client = genai.Client()

    async def generate_response(self, messages: list[dict], model: str | None = None) -> str:
        """Generate a response using Gemini.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
                     System messages become the system instruction; the remaining
                     messages are concatenated into a single prompt.
            model: Optional model name overriding the service default.

        Returns:
            str: The generated response content from the model.
        """
        chat_model = model or self.model
        logger.info(f"🗣️  Generating response with {chat_model}")
        preview_messages(logger, messages)

        try:
            system_parts = [m.get("content", "") for m in messages if m.get("role") == "system"]
            contents = "\n".join(
                [msg.get("content", "") for msg in messages if msg.get("role") != "system"]
            )

            generate_kwargs = {"model": chat_model, "contents": contents}
            if system_parts:
                generate_kwargs["config"] = genai.types.GenerateContentConfig(
                    system_instruction="\n".join(system_parts),
                )

            response = await asyncio.to_thread(
                self.client.models.generate_content, **generate_kwargs
            )

            content = response.text or ""
            logger.info(f"✅ Response generated: {len(content)} characters")
            return content
        except Exception as e:
            logger.error(f"❌ Gemini API error: {e}", exc_info=True)
            raise

    def generate_embeddings(self, texts: list[str], model: str | None = None) -> list[list[float]]:
        """Embed a batch of texts with a single embed_content request.

        Raises:
            ValueError: If the API returns a different number of vectors than texts
        """
        embedding_model = model or get_embedding_model("gemini")
        if not texts:
            return []

        try:
            response = self.client.models.embed_content(model=embedding_model, contents=texts)
        except Exception as e:
            logger.error(f"❌ Gemini embedding error: {e}", exc_info=True)
            raise

        embeddings = [list(embedding.values) for embedding in response.embeddings]
        if len(embeddings) != len(texts):
            raise ValueError(f"Gemini returned {len(embeddings)} embeddings for {len(texts)} texts")

        logger.debug(f"Generated {len(embeddings)} embeddings with {embedding_model}")
        return embeddings
