"""Abstract base class for vector-store backends.

Adding a new backend (Pinecone, Qdrant …) only requires subclassing
:class:`VectorStoreBase` and implementing the abstract methods. The
ingestion and answering pipelines are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from pdf_chatbot.retrieval.models import RetrievalMatch, VectorRecord


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Every operation is scoped to a *namespace*, the logical partition
    that separates this application's vectors from others sharing the
    same database.
    """

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def upsert(self, namespace: str, records: list[VectorRecord]) -> None:
        """Insert or overwrite *records* (matched by id) in *namespace*."""
        ...

    @abstractmethod
    def query(
        self,
        namespace: str,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[RetrievalMatch]:
        """Return up to *top_k* nearest neighbours of *vector*.

        Results are ordered by descending similarity. When
        *include_metadata* is false, matches carry no ``text``.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...
