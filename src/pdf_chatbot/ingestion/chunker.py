"""Text chunking strategy."""

from __future__ import annotations

# A break point must sit further than this into the window to be used.
MIN_BREAK_OFFSET = 200


def iter_chunk_spans(text: str, max_length: int = 1000) -> list[tuple[int, int]]:
    """Return the ``(start, end)`` slices that :func:`chunk_text` emits.

    The spans are contiguous and cover *text* exactly, so joining
    ``text[start:end]`` over all spans reconstructs the input.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be >= 1, got {max_length}")

    spans: list[tuple[int, int]] = []
    start = 0
    length = len(text)
    while start < length:
        end = min(start + max_length, length)
        if end < length:
            window = text[start:end]
            last_newline = window.rfind("\n")
            last_space = window.rfind(" ")
            if last_newline > MIN_BREAK_OFFSET:
                end = start + last_newline
            elif last_space > MIN_BREAK_OFFSET:
                end = start + last_space
        spans.append((start, end))
        start = end
    return spans


def chunk_text(text: str, max_length: int = 1000) -> list[str]:
    """Split *text* into whitespace-trimmed chunks of at most *max_length* chars.

    Each window except the last is cut at its last newline, or failing
    that its last space, provided the break lies more than
    ``MIN_BREAK_OFFSET`` characters into the window; otherwise the cut is
    at the hard ``max_length`` boundary.

    Parameters
    ----------
    text:
        Extracted document text.
    max_length:
        Maximum number of characters per chunk before trimming.

    Returns
    -------
    list[str]
        Ordered chunks. Blank entries are possible for long whitespace
        runs and must be filtered by the caller.
    """
    return [text[start:end].strip() for start, end in iter_chunk_spans(text, max_length)]
