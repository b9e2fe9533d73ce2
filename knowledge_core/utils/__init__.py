"""Utility modules for knowledge_core.

- **errors** -- Domain exception hierarchy rooted at KnowledgeCoreError;
  each pipeline stage raises its own subclass so callers can handle
  failures granularly without broad ``except Exception`` blocks.
- **logging** -- structlog pipeline shared with stdlib logging; console
  lines while developing, JSON lines in production, always on stderr.
- **text** -- Whitespace normalization and word counting shared by the
  chunker, the content extractor and the document extractor.
"""

from knowledge_core.utils.errors import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingProviderError,
    ExtractionError,
    KnowledgeCoreError,
    NetworkError,
    PathTraversalError,
    RobotsDisallowedError,
    UnsupportedFileTypeError,
    ValidationError,
)
from knowledge_core.utils.logging import configure_logging
from knowledge_core.utils.text import count_words, normalize_whitespace

__all__ = [
    "ConfigurationError",
    "DimensionMismatchError",
    "EmbeddingProviderError",
    "ExtractionError",
    "KnowledgeCoreError",
    "NetworkError",
    "PathTraversalError",
    "RobotsDisallowedError",
    "UnsupportedFileTypeError",
    "ValidationError",
    "configure_logging",
    "count_words",
    "normalize_whitespace",
]
