"""LLM service abstraction layer for docchat.

This package provides a unified interface for multiple providers:
- OllamaService: Local models via Ollama (completion and embeddings)
- GeminiService: Google Gemini API (completion and embeddings)
- OpenRouterService: Hosted models via OpenRouter (completion only)

Usage:
    from docchat.llm import get_embedding_service, get_llm_service

    # Create services from environment config
    completion = get_llm_service()
    embeddings = get_embedding_service()

    # Or with explicit config
    completion = get_llm_service({"service": "openrouter", "model": "deepseek/deepseek-r1:free"})
"""

from docchat.llm.base import CompletionService, EmbeddingService
from docchat.llm.factory import get_embedding_service, get_llm_service
from docchat.llm.gemini import GeminiService
from docchat.llm.ollama import OllamaService
from docchat.llm.openrouter import OpenRouterService

__all__ = [
    "CompletionService",
    "EmbeddingService",
    "OllamaService",
    "GeminiService",
    "OpenRouterService",
    "get_llm_service",
    "get_embedding_service",
]
