"""Ingestion pipeline — extract, chunk, embed, upsert.

Usage::

    from pdf_chatbot.ingestion.pipeline import IngestionPipeline

    pipeline = IngestionPipeline(extractor, embeddings, store)
    summary = await pipeline.ingest(pdf_bytes, filename="report.pdf")
    print(summary.chunks, summary.logs)

Every step is appended to a human-readable log trail returned to the
caller. On failure the trail is attached to the raised
:class:`~pdf_chatbot.errors.PdfChatbotError` as ``exc.logs``.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from pdf_chatbot.config import settings
from pdf_chatbot.errors import EmbeddingError, PdfChatbotError, VectorStoreError
from pdf_chatbot.ingestion.chunker import chunk_text
from pdf_chatbot.retrieval.models import VectorRecord

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

    from pdf_chatbot.ingestion.loader import PdfTextExtractor
    from pdf_chatbot.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

CHUNK_ID_PREFIX = "chunk-"


class IngestionSummary(BaseModel):
    """Outcome of one successful ingestion run."""

    chunks: int = Field(description="Chunks produced, blank ones included")
    upserted: int = Field(default=0, description="Vectors written to the store")
    logs: list[str] = Field(default_factory=list)


class _Trail:
    """Collects the per-request log trail and mirrors it to ``logging``."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)
        logger.info(line)


def _with_trail(exc: Exception, log: _Trail) -> PdfChatbotError:
    """Attach the log trail to *exc*, wrapping unexpected exceptions."""
    if isinstance(exc, PdfChatbotError):
        log(f"Error: {exc.message}")
        exc.logs = log.lines + exc.logs
        return exc
    logger.exception("Unexpected ingestion failure")
    log(f"Error: {exc}")
    return PdfChatbotError(str(exc) or type(exc).__name__, logs=log.lines)


def document_digest(text: str) -> str:
    """Short, stable fingerprint of a document's text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


class IngestionPipeline:
    """Drive extraction → chunking → embedding → one batch upsert.

    Parameters
    ----------
    extractor:
        Turns raw bytes into text (see :class:`PdfTextExtractor`).
    embeddings:
        LangChain embedding function; must match the one used for questions.
    store:
        Target vector store.
    namespace:
        Partition the vectors are written to.
    max_length:
        Default chunk size in characters.
    embedding_batch_size:
        Chunks per embedding request. ``1`` issues one request per chunk.
    id_strategy:
        ``"sequential"`` ids are ``chunk-<i>`` and overwrite each other when
        another document is ingested; ``"content"`` ids are prefixed with a
        digest of the document text so distinct documents coexist.
    expected_dimensions:
        Reject vectors of any other length. ``0`` or ``None`` disables.
    """

    def __init__(
        self,
        extractor: PdfTextExtractor,
        embeddings: Embeddings,
        store: VectorStoreBase,
        *,
        namespace: str = settings.namespace,
        max_length: int = settings.chunk_max_length,
        embedding_batch_size: int = settings.embedding_batch_size,
        id_strategy: str = settings.chunk_id_strategy,
        expected_dimensions: int | None = settings.embedding_dimensions,
    ) -> None:
        if embedding_batch_size < 1:
            raise ValueError(f"embedding_batch_size must be >= 1, got {embedding_batch_size}")
        if id_strategy not in ("sequential", "content"):
            raise ValueError(f"Unsupported id_strategy: {id_strategy!r}")
        self._extractor = extractor
        self._embeddings = embeddings
        self._store = store
        self.namespace = namespace
        self.max_length = max_length
        self.embedding_batch_size = embedding_batch_size
        self.id_strategy = id_strategy
        self.expected_dimensions = expected_dimensions or None

    # -- public API -----------------------------------------------------------

    async def ingest(
        self,
        data: bytes,
        *,
        filename: str | None = None,
        max_length: int | None = None,
    ) -> IngestionSummary:
        """Extract text from PDF *data* and index it."""
        log = _Trail()
        if filename:
            log(f"File uploaded: {filename}")
        log("Extracting text from PDF...")
        try:
            text = await asyncio.to_thread(self._extractor.extract, data, source=filename)
        except PdfChatbotError as exc:
            raise _with_trail(exc, log)
        except Exception as exc:
            raise _with_trail(exc, log) from exc
        log("Text extraction complete.")
        return await self._index(text, max_length=max_length, log=log)

    async def ingest_text(self, text: str, *, max_length: int | None = None) -> IngestionSummary:
        """Index already-extracted *text*."""
        return await self._index(text, max_length=max_length, log=_Trail())

    # -- internals ------------------------------------------------------------

    async def _index(self, text: str, *, max_length: int | None, log: _Trail) -> IngestionSummary:
        size = self.max_length if max_length is None else max_length
        if size < 1:
            raise ValueError(f"max_length must be >= 1, got {size}")
        try:
            log("Splitting text into chunks...")
            chunks = chunk_text(text, size)
            log(f"Document split into {len(chunks)} chunks.")

            records = await self._embed_chunks(text, chunks, log)

            if records:
                log(f"Upserting {len(records)} vectors into namespace '{self.namespace}'...")
                try:
                    await asyncio.to_thread(self._store.upsert, self.namespace, records)
                except Exception as exc:
                    raise VectorStoreError(f"Vector upsert failed: {exc}") from exc
                log(f"Upserted {len(records)} vectors.")
            else:
                log("No vectors to upsert (possibly empty PDF).")
        except PdfChatbotError as exc:
            raise _with_trail(exc, log)
        except Exception as exc:
            raise _with_trail(exc, log) from exc

        log("PDF processed successfully.")
        return IngestionSummary(chunks=len(chunks), upserted=len(records), logs=log.lines)

    def _chunk_id(self, index: int, digest: str) -> str:
        if self.id_strategy == "content":
            return f"{digest}-{index}"
        return f"{CHUNK_ID_PREFIX}{index}"

    async def _embed_chunks(self, text: str, chunks: list[str], log: _Trail) -> list[VectorRecord]:
        # Blank chunks keep their position so ids reflect chunker order.
        indexed = [(i, chunk) for i, chunk in enumerate(chunks) if chunk.strip()]
        skipped = len(chunks) - len(indexed)
        if skipped:
            log(f"Skipping {skipped} blank chunks.")
        if not indexed:
            return []

        log(f"Generating embeddings for {len(indexed)} chunks...")
        digest = document_digest(text) if self.id_strategy == "content" else ""
        records: list[VectorRecord] = []
        for start in range(0, len(indexed), self.embedding_batch_size):
            batch = indexed[start : start + self.embedding_batch_size]
            try:
                vectors = await self._embeddings.aembed_documents([chunk for _, chunk in batch])
            except Exception as exc:
                raise EmbeddingError(f"Embedding request failed: {exc}") from exc
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    f"Embedding service returned {len(vectors)} vectors for {len(batch)} chunks"
                )
            for (i, chunk), vector in zip(batch, vectors):
                self._check_dimensions(vector)
                records.append(
                    VectorRecord(id=self._chunk_id(i, digest), values=vector, metadata={"text": chunk})
                )
            logger.debug("embedded %d / %d", len(records), len(indexed))
        return records

    def _check_dimensions(self, vector: list[float]) -> None:
        if self.expected_dimensions and len(vector) != self.expected_dimensions:
            raise EmbeddingError(
                f"Expected {self.expected_dimensions}-dimensional embedding, got {len(vector)}"
            )
