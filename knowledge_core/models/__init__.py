"""Pydantic data models shared across knowledge_core.

- **rag** -- Passage, EmbeddedPassage, StoredPassageVector, RetrievalMatch,
  IngestionResult.
- **crawl** -- CrawlOptions, CrawlState, CrawlStatus, CrawlPageResult,
  CrawlFailure, CrawlResult, UrlValidationResult.
- **document** -- FileType, DocumentMetadata, ExtractedDocument.
"""

from knowledge_core.models.crawl import (
    CrawlFailure,
    CrawlOptions,
    CrawlPageResult,
    CrawlResult,
    CrawlState,
    CrawlStatus,
    UrlValidationResult,
)
from knowledge_core.models.document import DocumentMetadata, ExtractedDocument, FileType
from knowledge_core.models.rag import (
    EmbeddedPassage,
    IngestionResult,
    Passage,
    RetrievalMatch,
    StoredPassageVector,
)

__all__ = [
    "CrawlFailure",
    "CrawlOptions",
    "CrawlPageResult",
    "CrawlResult",
    "CrawlState",
    "CrawlStatus",
    "DocumentMetadata",
    "EmbeddedPassage",
    "ExtractedDocument",
    "FileType",
    "IngestionResult",
    "Passage",
    "RetrievalMatch",
    "StoredPassageVector",
    "UrlValidationResult",
]
