"""Assembles a length-bounded prompt context from ranked passages."""

from __future__ import annotations

from collections.abc import Sequence

from knowledge_core.models.rag import RetrievalMatch

DEFAULT_MAX_CONTEXT_LENGTH = 3000

CONTEXT_PREAMBLE = "Based on the following relevant information:\n\n"
CONTEXT_TRAILER = (
    "Please answer the user's question based on the above information. "
    "If the information is not sufficient to answer the question, please say so.\n\n"
)


def format_source_block(position: int, match: RetrievalMatch) -> str:
    """Return the header line plus text for the match at 1-based *position*."""
    header = f"[Source {position}, relevance: {match.similarity * 100:.1f}%]\n"
    return f"{header}{match.text}\n\n"


def build_rag_context(
    matches: Sequence[RetrievalMatch],
    max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH,
) -> str:
    """Build the context string handed to the generation step.

    Blocks are appended most-similar first.  Appending stops at the first
    block that would push the body past *max_context_length*; that block
    and everything after it are left out rather than truncated.  The
    trailer is always appended, so the result is at most
    ``max_context_length + len(CONTEXT_TRAILER)`` characters.

    Returns ``""`` when there are no matches, or when the limit is too
    small to hold even the preamble.
    """
    if not matches or len(CONTEXT_PREAMBLE) > max_context_length:
        return ""

    parts = [CONTEXT_PREAMBLE]
    current_length = len(CONTEXT_PREAMBLE)

    for position, match in enumerate(matches, start=1):
        block = format_source_block(position, match)
        if current_length + len(block) > max_context_length:
            break
        parts.append(block)
        current_length += len(block)

    parts.append(CONTEXT_TRAILER)
    return "".join(parts)
