"""OpenRouter chat-completion service over its OpenAI-compatible HTTP API."""

import asyncio
import logging
import os
from typing import Any

import requests

from docchat.constants import DEFAULT_COMPLETION_TIMEOUT, DEFAULT_OPENROUTER_BASE_URL
from docchat.llm.base import preview_messages

logger = logging.getLogger(__name__)


class OpenRouterService:
    """OpenRouter completion service.

    Sends one chat-completion request per call. OpenRouter has no embedding
    endpoint, so this service only implements CompletionService.
    """

    def __init__(
        self,
        model: str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_COMPLETION_TIMEOUT,
        temperature: float = 0.1,
        max_tokens: int = 1000,
    ) -> None:
        """Initialize the OpenRouter service.

        Args:
            model: Default model identifier (e.g., "deepseek/deepseek-r1:free")
            api_key: API key (default: OPENROUTER_API_KEY env var)
            base_url: API base URL (default: OPENROUTER_BASE_URL env var or the public API)
            timeout: HTTP timeout in seconds
            temperature: Sampling temperature
            max_tokens: Maximum tokens in the completion
        """
        self.model = model
        self.api_key = api_key if api_key is not None else os.getenv("OPENROUTER_API_KEY", "")
        self.base_url = (
            base_url or os.getenv("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL)
        ).rstrip("/")
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        logger.info(f"🤖 Initializing OpenRouterService: model={model}")

        if not self.api_key:
            logger.warning("⚠️ OPENROUTER_API_KEY is not set; requests will be rejected")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, messages: list[dict], model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    @staticmethod
    def _extract_content(data: dict[str, Any]) -> str:
        """Pull the assistant text out of a chat-completion response body.

        Raises:
            ValueError: If the response carries no choices
        """
        choices = data.get("choices") or []
        if not choices:
            raise ValueError(
                "OpenRouter response does not contain any choices. "
                f"Response keys: {list(data.keys())}"
            )
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    def _post_chat(self, messages: list[dict], model: str) -> str:
        response = requests.post(
            f"{self.base_url}/chat/completions",
            headers=self._headers(),
            json=self._build_payload(messages, model),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return self._extract_content(response.json())

    async def generate_response(self, messages: list[dict], model: str | None = None) -> str:
        """Generate a response using OpenRouter.

        Args:
            messages: List of message dictionaries with 'role' and 'content' keys.
            model: Optional model identifier overriding the service default.

        Returns:
            str: The generated response content from the model.
        """
        chat_model = model or self.model
        logger.info(f"🗣️  Generating response with {chat_model}")
        preview_messages(logger, messages)

        try:
            content = await asyncio.to_thread(self._post_chat, messages, chat_model)
            logger.info(f"✅ Response generated: {len(content)} characters")
            return content
        except Exception as e:
            logger.error(f"❌ OpenRouter API error: {e}", exc_info=True)
            raise
