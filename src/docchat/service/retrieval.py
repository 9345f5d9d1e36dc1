"""Retrieval pipeline: question to grounded answer over one user's documents."""

import asyncio
import logging

from docchat.constants import (
    DEFAULT_COMPLETION_TIMEOUT,
    DEFAULT_INDEX_TIMEOUT,
    DEFAULT_MAX_CONTEXT_CHARS,
    DEFAULT_TOP_K,
    GENERATION_FAILED_ANSWER,
    MAX_HISTORY_MESSAGES,
    MAX_TOP_K,
    NO_DOCUMENTS_ANSWER,
    SOURCE_LABEL_LENGTH,
)
from docchat.errors import CompletionError, ValidationError, VectorIndexError
from docchat.llm.base import CompletionService
from docchat.service.embedder import Embedder
from docchat.service.models import Answer, QueryMatch, SearchFilter
from docchat.service.vector_index import VectorIndex

logger = logging.getLogger(__name__)

GROUNDING_INSTRUCTION = (
    "You are a helpful assistant that answers questions about the user's documents. "
    "Answer using only the information in the provided context. "
    "If the context does not contain the answer, say that the documents do not cover it. "
    "Do not make up facts, numbers or citations."
)

ROLE_LABELS = {"user": "User", "assistant": "Assistant"}


def build_context(
    matches: list[QueryMatch], max_chars: int = DEFAULT_MAX_CONTEXT_CHARS
) -> tuple[str, list[QueryMatch]]:
    """Join match texts in rank order, staying within max_chars.

    Matches that would overflow the budget are dropped; the top match is
    always kept, truncated if it alone is too long.

    Returns:
        tuple: The context string and the matches it contains, in rank order
    """
    separator = "\n\n"
    parts: list[str] = []
    kept: list[QueryMatch] = []
    used = 0
    for match in matches:
        extra = len(match.text) + (len(separator) if parts else 0)
        if not parts and extra > max_chars:
            parts.append(match.text[:max_chars])
            kept.append(match)
            break
        if used + extra > max_chars:
            continue
        parts.append(match.text)
        kept.append(match)
        used += extra
    if len(kept) < len(matches):
        logger.debug(f"Context budget kept {len(kept)} of {len(matches)} matches")
    return separator.join(parts), kept


def build_sources(matches: list[QueryMatch]) -> list[str]:
    """Citation labels for the matched documents, de-duplicated in rank order."""
    sources: list[str] = []
    for match in matches:
        label = f"Document-{match.document_id[:SOURCE_LABEL_LENGTH]}"
        if label not in sources:
            sources.append(label)
    return sources


def validate_prior_messages(prior_messages) -> None:
    """Reject a history that is not a list of {"role": str, "content": str} dicts.

    Raises:
        ValidationError: On the first malformed item
    """
    if prior_messages is None:
        return
    if not isinstance(prior_messages, list):
        raise ValidationError("priorMessages must be a list", stage="validate")
    for position, message in enumerate(prior_messages):
        if not isinstance(message, dict):
            raise ValidationError(f"priorMessages[{position}] must be an object", stage="validate")
        if not isinstance(message.get("role"), str) or not isinstance(message.get("content"), str):
            raise ValidationError(
                f"priorMessages[{position}] needs string 'role' and 'content'", stage="validate"
            )


def format_transcript(prior_messages: list[dict] | None) -> str:
    """Render prior turns as role-labelled lines.

    Only user and assistant turns with content are kept, and only the most
    recent MAX_HISTORY_MESSAGES of them.
    """
    if not prior_messages:
        return ""
    turns = [
        message
        for message in prior_messages
        if message.get("role") in ROLE_LABELS and (message.get("content") or "").strip()
    ]
    turns = turns[-MAX_HISTORY_MESSAGES:]
    return "\n".join(
        f"{ROLE_LABELS[message['role']]}: {message['content'].strip()}" for message in turns
    )


def build_prompt(question: str, context: str, transcript: str = "") -> list[dict]:
    """Assemble the chat messages sent to the completion service."""
    sections = []
    if transcript:
        sections.append(f"Conversation so far:\n{transcript}")
    sections.append(f"Context:\n{context}")
    sections.append(f"Question: {question}")
    return [
        {"role": "system", "content": GROUNDING_INSTRUCTION},
        {"role": "user", "content": "\n\n".join(sections)},
    ]


class RetrievalPipeline:
    """Answers questions using only the asking user's indexed chunks."""

    def __init__(
        self,
        embedder: Embedder,
        vector_index: VectorIndex,
        completion_service: CompletionService,
        default_model: str | None = None,
        top_k: int = DEFAULT_TOP_K,
        max_context_chars: int = DEFAULT_MAX_CONTEXT_CHARS,
        index_timeout: float = DEFAULT_INDEX_TIMEOUT,
        completion_timeout: float = DEFAULT_COMPLETION_TIMEOUT,
    ) -> None:
        self.embedder = embedder
        self.vector_index = vector_index
        self.completion_service = completion_service
        self.default_model = default_model
        self.top_k = top_k
        self.max_context_chars = max_context_chars
        self.index_timeout = index_timeout
        self.completion_timeout = completion_timeout

    def _validate(self, question: str, user_id: str, top_k: int | None) -> int:
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("question is required", stage="validate")
        if not isinstance(user_id, str) or not user_id.strip():
            raise ValidationError("userId is required", stage="validate")
        if top_k is None:
            return self.top_k
        if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k <= 0:
            raise ValidationError("topK must be a positive integer", stage="validate", user_id=user_id)
        return min(top_k, MAX_TOP_K)

    async def _retrieve(self, question: str, user_id: str, top_k: int) -> list[QueryMatch]:
        query_vector = await self.embedder.embed(question)
        search_filter = SearchFilter(user_id=user_id)
        try:
            async with asyncio.timeout(self.index_timeout):
                return await asyncio.to_thread(
                    self.vector_index.similarity_search, query_vector, top_k, search_filter
                )
        except VectorIndexError:
            raise
        except TimeoutError as e:
            raise VectorIndexError(
                f"Similarity search timed out after {self.index_timeout}s",
                stage="search",
                user_id=user_id,
            ) from e
        except Exception as e:
            raise VectorIndexError(
                f"Similarity search failed: {type(e).__name__}: {e}",
                stage="search",
                user_id=user_id,
            ) from e

    async def search(
        self, question: str, user_id: str, top_k: int | None = None
    ) -> list[QueryMatch]:
        """Return the user's chunks most similar to the question.

        Raises:
            ValidationError: If the question or user id is blank, or top_k is invalid
            EmbeddingError: If the question cannot be embedded
            VectorIndexError: If the search fails or times out
        """
        top_k = self._validate(question, user_id, top_k)
        matches = await self._retrieve(question, user_id, top_k)
        logger.info(f"🔍 Found {len(matches)} matches for user {user_id}")
        return matches

    async def answer(
        self,
        question: str,
        user_id: str,
        top_k: int | None = None,
        model: str | None = None,
        prior_messages: list[dict] | None = None,
    ) -> Answer:
        """Answer a question from the user's documents.

        Validation errors are raised. Every later failure is logged and
        reported as an Answer with status "failed".

        Args:
            question: The user's question
            user_id: The asking user; only their chunks are searched
            top_k: Number of chunks to retrieve (capped at MAX_TOP_K)
            model: Completion model id; falls back to the configured default
            prior_messages: Earlier turns as {"role", "content"} dicts

        Returns:
            Answer: The answer text, citation labels, matches and status
        """
        top_k = self._validate(question, user_id, top_k)
        validate_prior_messages(prior_messages)
        stage = "embed"
        try:
            matches = await self._retrieve(question, user_id, top_k)
            if not matches:
                logger.info(f"📭 No matching chunks for user {user_id}")
                return Answer(text=NO_DOCUMENTS_ANSWER, status=Answer.NO_DOCUMENTS)

            stage = "complete"
            context, matches = build_context(matches, self.max_context_chars)
            sources = build_sources(matches)
            messages = build_prompt(question, context, format_transcript(prior_messages))
            text = await self._complete(messages, model or self.default_model)
        except Exception as e:
            logger.error(
                f"❌ Answer failed at stage '{getattr(e, 'stage', None) or stage}' "
                f"for user {user_id}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return Answer(text=GENERATION_FAILED_ANSWER, status=Answer.FAILED)

        logger.info(f"✅ Answered question for user {user_id} from {len(sources)} source(s)")
        return Answer(text=text, sources=sources, matches=matches, status=Answer.ANSWERED)

    async def _complete(self, messages: list[dict], model: str | None) -> str:
        try:
            async with asyncio.timeout(self.completion_timeout):
                text = await self.completion_service.generate_response(messages, model=model)
        except TimeoutError as e:
            raise CompletionError(
                f"Completion timed out after {self.completion_timeout}s", stage="complete"
            ) from e
        except Exception as e:
            raise CompletionError(
                f"Completion service error: {type(e).__name__}: {e}", stage="complete"
            ) from e
        if not text or not text.strip():
            raise CompletionError("Completion service returned no text", stage="complete")
        return text
