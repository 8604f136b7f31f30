"""Prompt template for retrieval-augmented answering.

Keeping the prompt in one place makes it easy to audit and version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from pdf_chatbot.retrieval.models import RetrievalMatch

SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the provided document text to answer the question."
)

NO_CONTEXT_PLACEHOLDER = "The document is empty or not relevant."


def build_context(matches: list[RetrievalMatch]) -> str:
    """Join the text of *matches* in store order, one passage per line.

    Matches without text are skipped. When nothing usable remains the
    fixed :data:`NO_CONTEXT_PLACEHOLDER` sentence is returned instead.
    """
    context = "".join(f"{m.text}\n" for m in matches if m.text)
    if not context.strip():
        return NO_CONTEXT_PLACEHOLDER
    return context


def build_rag_prompt(question: str, context: str) -> list[BaseMessage]:
    """Assemble the two-message prompt for a grounded answer.

    Parameters
    ----------
    question:
        The user question, passed through literally.
    context:
        Output of :func:`build_context`.

    Returns
    -------
    list[BaseMessage]
        A system instruction and a user message ending in an ``Answer:`` cue.
    """
    return [
        SystemMessage(content=SYSTEM_PROMPT),
        HumanMessage(content=f"{context}\nQuestion: {question}\nAnswer:"),
    ]
