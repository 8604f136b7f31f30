"""Chroma implementation of the vector-store abstraction.

Each namespace maps to one Chroma collection of the same name.
"""

from __future__ import annotations

import logging
from typing import Any

import chromadb

from pdf_chatbot.config import settings
from pdf_chatbot.retrieval.base import VectorStoreBase
from pdf_chatbot.retrieval.models import RetrievalMatch, VectorRecord

logger = logging.getLogger(__name__)


def _flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Chroma metadata values must be flat str/int/float/bool."""
    return {k: v for k, v in metadata.items() if isinstance(v, (str, int, float, bool))}


def distance_to_score(distance: float, metric: str) -> float:
    """Convert a Chroma distance into a similarity score (higher = closer)."""
    if metric in ("cosine", "ip"):
        # Chroma reports 1 - similarity for both spaces.
        return 1.0 - distance
    return 1.0 / (1.0 + distance)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store.

    Parameters
    ----------
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    distance_metric:
        ``cosine`` | ``l2`` | ``ip``; applied when a collection is created.
    client:
        Pre-built Chroma client. When given, *host* and *port* are ignored.
    """

    def __init__(
        self,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        distance_metric: str = settings.chroma_distance_metric,
        client: Any = None,
    ) -> None:
        self._host = host
        self._port = port
        self.distance_metric = distance_metric
        self._client = client if client is not None else chromadb.HttpClient(host=host, port=port)
        self._collections: dict[str, Any] = {}

    def _collection(self, namespace: str) -> Any:
        if namespace not in self._collections:
            self._collections[namespace] = self._client.get_or_create_collection(
                name=namespace,
                metadata={"hnsw:space": self.distance_metric},
            )
        return self._collections[namespace]

    # -- VectorStoreBase overrides --------------------------------------------

    def upsert(self, namespace: str, records: list[VectorRecord]) -> None:
        if not records:
            return
        self._collection(namespace).upsert(
            ids=[r.id for r in records],
            embeddings=[r.values for r in records],
            documents=[r.text for r in records],
            metadatas=[_flatten_metadata(r.metadata) for r in records],
        )
        logger.info("Upserted %d vectors into namespace %r", len(records), namespace)

    def query(
        self,
        namespace: str,
        vector: list[float],
        *,
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[RetrievalMatch]:
        include = ["distances"]
        if include_metadata:
            include += ["documents", "metadatas"]

        results = self._collection(namespace).query(
            query_embeddings=[vector],
            n_results=top_k,
            include=include,
        )

        ids = (results.get("ids") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        docs = (results.get("documents") or [[]])[0] or [None] * len(ids)
        metas = (results.get("metadatas") or [[]])[0] or [None] * len(ids)

        matches: list[RetrievalMatch] = []
        for doc_id, dist, content, meta in zip(ids, distances, docs, metas):
            meta = meta or {}
            text = (meta.get("text") or content or "") if include_metadata else ""
            matches.append(
                RetrievalMatch(
                    id=doc_id,
                    text=text,
                    score=distance_to_score(dist, self.distance_metric),
                    metadata=dict(meta),
                )
            )
        return matches

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
