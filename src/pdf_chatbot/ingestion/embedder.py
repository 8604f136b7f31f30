"""Embedding function factory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pdf_chatbot.config import settings

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


def get_embedding_function(
    provider: str = settings.embedding_provider,
    model_name: str = settings.embedding_model,
) -> Embeddings:
    """Return the configured embedding function.

    Ingestion and question answering must use the same function: vectors
    from different models are not comparable.

    ``provider="openai"`` (default) calls the OpenAI embeddings API;
    ``provider="huggingface"`` runs a local sentence-transformer model.
    """
    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        kwargs: dict = {"model": model_name}
        if settings.openai_api_key:
            kwargs["api_key"] = settings.openai_api_key
        if settings.openai_base_url:
            kwargs["base_url"] = settings.openai_base_url
        return OpenAIEmbeddings(**kwargs)

    if provider == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info("Using local sentence-transformer embeddings: %s", model_name)
        return HuggingFaceEmbeddings(model_name=model_name)

    raise ValueError(f"Unsupported embedding provider: {provider!r}")
