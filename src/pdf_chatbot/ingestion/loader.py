"""PDF text extraction — thin wrapper around LangChain's PyPDF parser."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from langchain_community.document_loaders.parsers import PyPDFParser
from langchain_core.documents.base import Blob

from pdf_chatbot.errors import ExtractionError

if TYPE_CHECKING:
    from langchain_core.documents import Document

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"


class PdfTextExtractor:
    """Turn raw PDF bytes into plain text.

    The bytes are parsed in memory, so nothing is written to disk and
    there is no upload file to clean up afterwards.
    """

    def __init__(self, parser: PyPDFParser | None = None) -> None:
        self._parser = parser or PyPDFParser()

    def load_pages(self, data: bytes, *, source: str | None = None) -> list[Document]:
        """Parse *data* into one LangChain ``Document`` per page."""
        if not data:
            raise ExtractionError("Uploaded file is empty")
        # PDF readers accept leading junk before the header within the first KiB.
        if PDF_MAGIC not in data[:1024]:
            raise ExtractionError("Uploaded file is not a PDF document")

        blob = Blob.from_data(data, mime_type="application/pdf", path=source)
        try:
            return list(self._parser.lazy_parse(blob))
        except Exception as exc:
            logger.warning("PDF parsing failed for %s", source or "<upload>", exc_info=True)
            raise ExtractionError(f"Could not read PDF: {exc}") from exc

    def extract(self, data: bytes, *, source: str | None = None) -> str:
        """Return the document text, pages separated by a newline.

        A well-formed PDF without a text layer yields an empty string.
        """
        pages = self.load_pages(data, source=source)
        return "\n".join(page.page_content for page in pages)
