"""Factory functions for creating completion and embedding service instances."""

import logging
import os

from docchat.constants import (
    DEFAULT_COMPLETION_TIMEOUT,
    DEFAULT_OLLAMA_HOST,
    get_completion_model,
    get_float_setting,
)
from docchat.llm.base import CompletionService, EmbeddingService
from docchat.llm.gemini import GeminiService
from docchat.llm.ollama import OllamaService
from docchat.llm.openrouter import OpenRouterService

logger = logging.getLogger(__name__)

EMBEDDING_CAPABLE_SERVICES = ("ollama", "gemini")


def get_llm_service(config: dict | None = None) -> CompletionService:
    """Factory function to create a completion service instance.

    Args:
        config: Optional configuration dictionary. If None, uses environment variables.
                Expected keys:
                - 'service': Service type (default: from LLM_SERVICE env, or "ollama")
                - 'host': Ollama host URL (default: from OLLAMA_HOST env)
                - 'model': Default model name (default: from LLM_MODEL env or per service)
                - 'timeout': Request timeout in seconds (default: COMPLETION_TIMEOUT env)

    Returns:
        CompletionService: An instance implementing the CompletionService protocol.
    """
    if config is None:
        config = {}

    # Read service type from config, then env, then default to ollama
    service_type = config.get("service", os.getenv("LLM_SERVICE", "ollama"))
    model = config.get("model") or get_completion_model(service_type)
    timeout = config.get(
        "timeout", get_float_setting("COMPLETION_TIMEOUT", DEFAULT_COMPLETION_TIMEOUT)
    )

    if service_type == "ollama":
        host = config.get("host", os.getenv("OLLAMA_HOST", DEFAULT_OLLAMA_HOST))
        return OllamaService(host=host, model=model, timeout=timeout)

    if service_type == "gemini":
        return GeminiService(model=model)

    if service_type == "openrouter":
        return OpenRouterService(
            model=model,
            api_key=config.get("api_key"),
            base_url=config.get("base_url"),
            timeout=timeout,
        )

    raise ValueError(f"Unsupported service type: {service_type}")


def get_embedding_service(config: dict | None = None) -> EmbeddingService:
    """Factory function to create an embedding service instance.

    Args:
        config: Optional configuration dictionary. If None, uses environment variables.
                Expected keys:
                - 'service': Service type (default: from EMBEDDING_SERVICE env, else
                  LLM_SERVICE when it can embed, else "ollama")
                - 'host': Ollama host URL (default: from OLLAMA_HOST env)

    Returns:
        EmbeddingService: An instance implementing the EmbeddingService protocol.
    """
    if config is None:
        config = {}

    llm_service = os.getenv("LLM_SERVICE", "ollama")
    fallback = llm_service if llm_service in EMBEDDING_CAPABLE_SERVICES else "ollama"
    service_type = config.get("service", os.getenv("EMBEDDING_SERVICE", fallback))

    if service_type == "ollama":
        host = config.get("host", os.getenv("OLLAMA_HOST", DEFAULT_OLLAMA_HOST))
        return OllamaService(host=host, model=get_completion_model("ollama"))

    if service_type == "gemini":
        return GeminiService(model=get_completion_model("gemini"))

    raise ValueError(f"Unsupported embedding service type: {service_type}")
