"""Text chunking with overlapping character windows and sentence-aware cuts.

Splits normalized source text into :class:`~knowledge_core.models.rag.Passage`
objects sized for embedding models (1000 characters with 200 characters of
overlap by default).

The strategy has two goals:

1. **Sentence-aware boundaries** -- a window that is not the last one is
   cut just after the latest sentence terminal (``.``, ``!``, ``?``
   followed by whitespace) found in its final 200 characters, so most
   passages end on a complete sentence.

2. **Overlapping windows** -- the next window starts ``overlap``
   characters before the previous one ended, so a concept spanning a
   boundary is captured whole in at least one passage.

Every character of the normalized text is covered by at least one
passage and no passage is empty.
"""

from __future__ import annotations

import re

import structlog

from knowledge_core.models.rag import Passage
from knowledge_core.utils.text import normalize_whitespace

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 200
# How far back from a window's raw end we look for a sentence terminal.
SENTENCE_SEARCH_WINDOW = 200

_SENTENCE_END = re.compile(r"[.!?](?=\s)")


class TextChunker:
    """Splits text into overlapping :class:`Passage` windows.

    Parameters
    ----------
    chunk_size:
        Maximum window length in characters (default 1000).
    overlap:
        Characters shared by consecutive windows (default 200).  Must be
        smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE, overlap: int = DEFAULT_OVERLAP) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must not be negative, got {overlap}")
        if overlap >= chunk_size:
            raise ValueError(f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[Passage]:
        """Split *text* into overlapping passages.

        Parameters
        ----------
        text:
            Raw text; whitespace is normalized before windowing and all
            offsets refer to the normalized text.

        Returns
        -------
        list[Passage]
            Passages with contiguous ``index`` values from 0.  Blank input
            returns an empty list.
        """
        cleaned = normalize_whitespace(text)
        if not cleaned:
            return []

        passages: list[Passage] = []
        length = len(cleaned)
        start = 0

        while start < length:
            end = start + self._chunk_size
            if end < length:
                end = self._find_sentence_cut(cleaned, start, end)
            else:
                end = length

            passage_text = cleaned[start:end].strip()
            if passage_text:
                passages.append(
                    Passage(
                        text=passage_text,
                        index=len(passages),
                        start_offset=start,
                        end_offset=end,
                        length=len(passage_text),
                    )
                )

            if end >= length:
                break
            next_start = end - self._overlap
            # An early sentence cut can pull the next start behind the
            # current one; drop the overlap for that step instead of looping.
            if next_start <= start:
                next_start = end
            start = next_start

        logger.debug(
            "chunking_complete",
            num_passages=len(passages),
            text_length=length,
            chunk_size=self._chunk_size,
            overlap=self._overlap,
        )
        return passages

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _find_sentence_cut(text: str, start: int, end: int) -> int:
        """Return the position just after the latest sentence terminal before *end*.

        Only terminals in ``[end - SENTENCE_SEARCH_WINDOW, end)`` (clamped to
        *start*) that are immediately followed by whitespace qualify.  When
        none is found the raw window end is returned unchanged.
        """
        search_start = max(end - SENTENCE_SEARCH_WINDOW, start)
        cut = end
        # The lookahead may peek at text[end], which is fine: the terminal
        # itself still sits inside the window.
        for match in _SENTENCE_END.finditer(text, search_start, min(end + 1, len(text))):
            if match.start() < end:
                cut = match.start() + 1
        return cut


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
) -> list[Passage]:
    """Functional shortcut for ``TextChunker(chunk_size, overlap).chunk(text)``."""
    return TextChunker(chunk_size=chunk_size, overlap=overlap).chunk(text)
