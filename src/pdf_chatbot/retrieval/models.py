"""Domain models for stored vectors, retrieval matches and answer events."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class VectorRecord(BaseModel):
    """One embedded chunk as written to the vector store.

    Attributes
    ----------
    id:
        Chunk identifier, unique within the namespace for one ingestion run.
    values:
        The embedding vector.
    metadata:
        Stored alongside the vector; always carries the chunk ``text``.
    """

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.metadata.get("text", "")


class RetrievalMatch(BaseModel):
    """A stored chunk returned by a similarity query."""

    id: str | None = None
    text: str = ""
    score: float | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AnswerEvent(BaseModel):
    """A single item of a streamed answer.

    ``token`` events carry a text fragment to append to the answer.
    Exactly one terminal event closes every stream: ``done`` when the
    completion finished normally, ``error`` when anything failed. Callers
    can therefore tell a complete answer from a truncated one.
    """

    type: Literal["token", "done", "error"]
    text: str = ""
    finish_reason: str | None = None
    reason: str | None = None

    @classmethod
    def token(cls, text: str) -> AnswerEvent:
        return cls(type="token", text=text)

    @classmethod
    def done(cls, finish_reason: str | None = None) -> AnswerEvent:
        return cls(type="done", finish_reason=finish_reason)

    @classmethod
    def error(cls, reason: str) -> AnswerEvent:
        return cls(type="error", reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.type != "token"
