"""
Retrieval — vector search, prompt assembly, and streamed answering.

The vector store sits behind a clean interface so the answer pipeline
never needs to know which database backs retrieval.

Public surface
--------------
- :class:`AnswerPipeline` — embed question, retrieve, stream the answer.
- :class:`VectorStoreBase` — abstract backend (subclass for Pinecone, etc.).
- :class:`ChromaVectorStore` — default Chroma backend.
- :class:`VectorRecord`, :class:`RetrievalMatch`, :class:`AnswerEvent` — data models.
"""

from pdf_chatbot.retrieval.base import VectorStoreBase
from pdf_chatbot.retrieval.models import AnswerEvent, RetrievalMatch, VectorRecord
from pdf_chatbot.retrieval.pipeline import AnswerPipeline

__all__ = [
    "AnswerEvent",
    "AnswerPipeline",
    "ChromaVectorStore",
    "RetrievalMatch",
    "VectorRecord",
    "VectorStoreBase",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import ChromaVectorStore to avoid pulling in chromadb at import time."""
    if name == "ChromaVectorStore":
        from pdf_chatbot.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
