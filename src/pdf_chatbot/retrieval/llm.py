"""LLM initialisation — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** — set ``OPENAI_BASE_URL`` to any server
   exposing ``/v1/chat/completions`` (vLLM, a proxy, …). ``ChatOpenAI``
   works unchanged.
"""

from __future__ import annotations

import logging

from langchain_openai import ChatOpenAI

from pdf_chatbot.config import settings

logger = logging.getLogger(__name__)


def get_llm(
    model_name: str = settings.llm_model_name,
    temperature: float = settings.llm_temperature,
) -> ChatOpenAI:
    """Return the configured chat model, set up for token streaming.

    A dummy API key (``"EMPTY"``) is used against a custom endpoint when
    none is configured, since self-hosted servers usually skip auth.
    """
    kwargs: dict = {
        "model": model_name,
        "temperature": temperature,
        "streaming": True,
    }

    if settings.openai_base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", settings.openai_base_url)
        kwargs["base_url"] = settings.openai_base_url
        # LangChain requires a non-empty value.
        kwargs["api_key"] = settings.openai_api_key or "EMPTY"
    elif settings.openai_api_key:
        kwargs["api_key"] = settings.openai_api_key

    return ChatOpenAI(**kwargs)
