"""Answer pipeline — embed question, retrieve passages, stream a grounded answer.

Usage::

    from pdf_chatbot.retrieval.pipeline import AnswerPipeline

    pipeline = AnswerPipeline(embeddings, store, llm)
    async for event in pipeline.stream("What is the refund policy?"):
        if event.type == "token":
            print(event.text, end="")
        elif event.type == "error":
            print("\\n[answer truncated]", event.reason)

The stream always ends with exactly one terminal event (``done`` or
``error``), so callers can tell a complete answer from a failed one.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from pdf_chatbot.config import settings
from pdf_chatbot.errors import (
    CompletionError,
    EmbeddingError,
    PdfChatbotError,
    ValidationError,
    VectorStoreError,
)
from pdf_chatbot.retrieval.models import AnswerEvent, RetrievalMatch
from pdf_chatbot.retrieval.prompts import build_context, build_rag_prompt

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings
    from langchain_core.language_models import BaseChatModel

    from pdf_chatbot.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


def _finish_reason(chunk) -> str | None:  # noqa: ANN001
    metadata = getattr(chunk, "response_metadata", None) or {}
    return metadata.get("finish_reason")


class AnswerPipeline:
    """Question answering over the vectors written by ingestion.

    Parameters
    ----------
    embeddings:
        Must be the same embedding function used at ingestion time.
    store:
        Vector store holding the document chunks.
    llm:
        Chat model used for the streamed completion.
    namespace:
        Partition to query.
    top_k:
        Number of passages placed in the prompt.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        store: VectorStoreBase,
        llm: BaseChatModel,
        *,
        namespace: str = settings.namespace,
        top_k: int = settings.top_k,
    ) -> None:
        self._embeddings = embeddings
        self._store = store
        self._llm = llm
        self.namespace = namespace
        self.top_k = top_k

    # -- public API -----------------------------------------------------------

    async def retrieve(self, question: str) -> list[RetrievalMatch]:
        """Return the *top_k* stored passages closest to *question*."""
        try:
            vector = await self._embeddings.aembed_query(question)
        except Exception as exc:
            raise EmbeddingError(f"Question embedding failed: {exc}") from exc

        try:
            matches = await asyncio.to_thread(
                self._store.query,
                self.namespace,
                vector,
                top_k=self.top_k,
                include_metadata=True,
            )
        except Exception as exc:
            raise VectorStoreError(f"Vector query failed: {exc}") from exc

        logger.info("Retrieved %d matches from namespace %r", len(matches), self.namespace)
        return matches

    def stream(self, question: str | None) -> AsyncIterator[AnswerEvent]:
        """Validate *question* and return its answer event stream.

        Raises
        ------
        ValidationError
            Immediately, when *question* is missing or blank.
        """
        if not question or not question.strip():
            raise ValidationError("Question query parameter is required.")
        return self._generate(question)

    async def answer(self, question: str) -> tuple[str, AnswerEvent]:
        """Collect the whole answer; returns ``(text, terminal_event)``."""
        parts: list[str] = []
        terminal = AnswerEvent.error("stream ended without a terminal event")
        async for event in self.stream(question):
            if event.type == "token":
                parts.append(event.text)
            else:
                terminal = event
        return "".join(parts), terminal

    # -- internals ------------------------------------------------------------

    async def _generate(self, question: str) -> AsyncIterator[AnswerEvent]:
        finish_reason: str | None = None
        try:
            matches = await self.retrieve(question)
            messages = build_rag_prompt(question, build_context(matches))

            try:
                async for chunk in self._llm.astream(messages):
                    content = chunk.content if isinstance(chunk.content, str) else ""
                    if content:
                        yield AnswerEvent.token(content)
                    finish_reason = _finish_reason(chunk)
                    if finish_reason:
                        break
            except Exception as exc:
                raise CompletionError(f"Completion stream failed: {exc}") from exc
        except PdfChatbotError as exc:
            logger.exception("Answer stream failed")
            yield AnswerEvent.error(exc.message)
            return

        yield AnswerEvent.done(finish_reason)
