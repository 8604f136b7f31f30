"""FastAPI dependency providers.

Collaborators are built once per process on first use and injected into
the route handlers. Tests replace them through
``app.dependency_overrides``.
"""

from __future__ import annotations

from functools import lru_cache

from langchain_core.embeddings import Embeddings

from pdf_chatbot.config import settings
from pdf_chatbot.ingestion.embedder import get_embedding_function
from pdf_chatbot.ingestion.loader import PdfTextExtractor
from pdf_chatbot.ingestion.pipeline import IngestionPipeline
from pdf_chatbot.retrieval.base import VectorStoreBase
from pdf_chatbot.retrieval.llm import get_llm
from pdf_chatbot.retrieval.pipeline import AnswerPipeline


@lru_cache
def get_embeddings() -> Embeddings:
    return get_embedding_function()


@lru_cache
def get_vector_store() -> VectorStoreBase:
    from pdf_chatbot.retrieval.chroma_store import ChromaVectorStore

    return ChromaVectorStore()


@lru_cache
def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline(PdfTextExtractor(), get_embeddings(), get_vector_store())


@lru_cache
def get_answer_pipeline() -> AnswerPipeline:
    return AnswerPipeline(
        get_embeddings(),
        get_vector_store(),
        get_llm(),
        namespace=settings.namespace,
        top_k=settings.top_k,
    )
