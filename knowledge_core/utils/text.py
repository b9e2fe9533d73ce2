"""Whitespace normalization and word counting shared across extractors.

The same normalization is applied by the chunker and the content
extractor so that passage offsets and word counts agree no matter which
path a text took into the pipeline.
"""

import re

_WHITESPACE_RUN = re.compile(r"\s+")
_NEWLINE_RUN = re.compile(r"\n+")


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs to one space and newline runs to one newline, then trim.

    The whitespace pass runs first, so in practice newlines are folded into
    spaces as well; the newline pass is kept so that the rule still holds
    for any text that reaches it with newlines intact.
    """
    cleaned = _WHITESPACE_RUN.sub(" ", text)
    cleaned = _NEWLINE_RUN.sub("\n", cleaned)
    return cleaned.strip()


def count_words(text: str) -> int:
    """Return the number of whitespace-separated words in *text* (0 for blank text)."""
    stripped = text.strip()
    if not stripped:
        return 0
    return len(stripped.split())
