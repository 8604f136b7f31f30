"""Server-Sent Events framing for answer streams.

Wire format: every token becomes ``data: <text>`` followed by a blank
line, and the stream always closes with ``data: [DONE]``. Whether the
answer completed or failed is not visible on the wire; that distinction
lives in the :class:`~pdf_chatbot.retrieval.models.AnswerEvent` stream
and in the server log.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator

from pdf_chatbot.retrieval.models import AnswerEvent

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"

# SSE treats CRLF, CR and LF alike as line terminators.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def format_event(data: str) -> str:
    """Frame *data* as one SSE event; embedded newlines become extra ``data:`` lines."""
    return "".join(f"data: {line}\n" for line in _LINE_BREAK.split(data)) + "\n"


async def to_sse(events: AsyncIterator[AnswerEvent]) -> AsyncIterator[str]:
    """Relay *events* as SSE frames, ending with the ``[DONE]`` sentinel."""
    try:
        async for event in events:
            if event.type == "token":
                yield format_event(event.text)
            elif event.type == "error":
                logger.warning("Answer stream ended early: %s", event.reason)
                break
            else:
                break
    except Exception:
        logger.exception("Unexpected failure while relaying answer stream")
    yield format_event(DONE_SENTINEL)
