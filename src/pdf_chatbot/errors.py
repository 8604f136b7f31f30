"""Error taxonomy shared by the ingestion, retrieval and serving layers.

Every error carries an HTTP ``status_code`` so the serving layer can
render it without a lookup table, plus the ingestion log trail collected
up to the point of failure (``logs``).
"""

from __future__ import annotations


class PdfChatbotError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, *, logs: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.logs: list[str] = list(logs or [])


class NoFileError(PdfChatbotError):
    """The upload request carried no file."""

    status_code = 400


class UploadTooLargeError(PdfChatbotError):
    """The uploaded file exceeds the configured size limit."""

    status_code = 413


class ValidationError(PdfChatbotError):
    """A request parameter is missing or malformed (e.g. blank question)."""

    status_code = 400


class ExtractionError(PdfChatbotError):
    """The payload is not a readable PDF."""

    status_code = 422


class EmbeddingError(PdfChatbotError):
    """The embedding service failed or returned an unusable vector."""

    status_code = 502


class VectorStoreError(PdfChatbotError):
    """Upsert or query against the vector store failed."""

    status_code = 502


class CompletionError(PdfChatbotError):
    """The completion service failed while streaming."""

    status_code = 502
