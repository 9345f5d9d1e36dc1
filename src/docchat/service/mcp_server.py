"""FastMCP server exposing user-scoped document search and question answering."""

import logging
import os
from typing import Any

from dotenv import load_dotenv
from fastmcp import FastMCP

from docchat.constants import DEFAULT_TOP_K
from docchat.service.factory import Services, build_services, persistent_backend_config

# Configure logging
log_level = os.getenv("LOG_LEVEL", "DEBUG")
logging.basicConfig(
    level=getattr(logging, log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()
logger.debug("Environment variables loaded for MCP server")

# Create FastMCP instance
mcp = FastMCP("DocChat Document Retrieval")

_services: Services | None = None


def get_services() -> Services:
    """Build the pipelines on persistent backends on first use and reuse them."""
    global _services
    if _services is None:
        _services = build_services(persistent_backend_config())
    return _services


async def search_user_documents_impl(
    query: str, user_id: str, top_k: int = DEFAULT_TOP_K
) -> list[dict[str, Any]]:
    matches = await get_services().retrieval.search(query, user_id, top_k)
    logger.info(f"✅ MCP Tool: Returning {len(matches)} matches for user {user_id}")
    return [match.to_dict() for match in matches]


async def ask_user_documents_impl(
    question: str, user_id: str, top_k: int = DEFAULT_TOP_K, model: str | None = None
) -> dict[str, Any]:
    answer = await get_services().retrieval.answer(question, user_id, top_k=top_k, model=model)
    return {"answer": answer.text, "sources": answer.sources, "status": answer.status}


def list_user_documents_impl(user_id: str) -> list[dict[str, Any]]:
    documents = get_services().documents.list_documents(user_id)
    logger.info(f"📂 MCP Tool: Found {len(documents)} documents for user {user_id}")
    return [document.to_dict() for document in documents]


@mcp.tool()
async def search_user_documents(
    query: str, user_id: str, top_k: int = DEFAULT_TOP_K
) -> list[dict[str, Any]]:
    """
    Searches one user's uploaded documents for text chunks that are
    semantically similar to the query. Only that user's documents are searched.

    Args:
        query: The search query text
        user_id: The user whose documents are searched
        top_k: Number of top results to return (default: 5, max: 20)
    """
    logger.debug(f"MCP Tool: search query='{query[:100]}', user={user_id}, top_k={top_k}")
    try:
        return await search_user_documents_impl(query, user_id, top_k)
    except Exception as e:
        error_msg = f"Search failed: {type(e).__name__}: {e}"
        logger.error(f"❌ MCP Tool: {error_msg}", exc_info=True)
        raise ValueError(error_msg) from e


@mcp.tool()
async def ask_user_documents(
    question: str, user_id: str, top_k: int = DEFAULT_TOP_K, model: str | None = None
) -> dict[str, Any]:
    """
    Answers a question using only the given user's documents. The answer
    cites its sources as Document-<id> labels.

    Args:
        question: The question to answer
        user_id: The user whose documents are used
        top_k: Number of chunks to use as context (default: 5)
        model: Optional completion model id
    """
    try:
        return await ask_user_documents_impl(question, user_id, top_k, model)
    except Exception as e:
        error_msg = f"Question failed: {type(e).__name__}: {e}"
        logger.error(f"❌ MCP Tool: {error_msg}", exc_info=True)
        raise ValueError(error_msg) from e


@mcp.tool()
async def list_user_documents(user_id: str) -> list[dict[str, Any]]:
    """
    Lists the documents a user has uploaded, newest first.

    Args:
        user_id: The user whose documents are listed
    """
    try:
        return list_user_documents_impl(user_id)
    except Exception as e:
        error_msg = f"Listing failed: {type(e).__name__}: {e}"
        logger.error(f"❌ MCP Tool: {error_msg}", exc_info=True)
        raise ValueError(error_msg) from e


def main() -> None:
    """Entry point for the MCP server command-line interface."""
    host = os.getenv("MCP_HOST", "0.0.0.0")
    port = int(os.getenv("MCP_PORT", "8001"))
    try:
        get_services()
    except ValueError as e:
        logger.error(f"❌ Cannot start MCP server: {e}")
        raise SystemExit(1) from e
    logger.info(f"🚀 Starting DocChat MCP Server on {host}:{port}...")
    mcp.run(transport="sse", host=host, port=port)


if __name__ == "__main__":
    main()
