"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_base_url: str = Field(
        default="",
        description=(
            "Base URL for an OpenAI-compatible API. Leave empty to use the "
            "OpenAI cloud."
        ),
    )
    llm_model_name: str = Field(default="gpt-3.5-turbo", description="Chat model identifier")
    llm_temperature: float = 0.0

    # Embedding
    embedding_provider: Literal["openai", "huggingface"] = "openai"
    embedding_model: str = "text-embedding-ada-002"
    embedding_dimensions: int = Field(
        default=1536,
        description="Expected vector length; 0 disables the check.",
    )
    embedding_batch_size: int = Field(
        default=1,
        ge=1,
        description="Chunks per embedding request. 1 means one request per chunk.",
    )

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_distance_metric: Literal["cosine", "l2", "ip"] = "cosine"
    namespace: str = "pdf-chatbot"
    top_k: int = 5

    # Ingestion
    chunk_max_length: int = Field(default=1000, ge=1)
    chunk_id_strategy: Literal["sequential", "content"] = "sequential"
    max_upload_bytes: int = 50 * 1024 * 1024

    # Serving
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


# Singleton — import `settings` wherever needed.
settings = Settings()
