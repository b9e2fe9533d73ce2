"""Orchestrator for the ingestion pipeline.

Pipeline stages: **extract -> chunk -> embed -> store**.

The :class:`IngestionService` coordinates its collaborators (document
extractor, chunker, embedding provider, passage store) without any of
them knowing about each other.  Each public ``ingest_*`` method follows
the same flow:

    1. DocumentTextExtractor / crawl result -- yields plain text
    2. TextChunker -- splits text into overlapping character windows
    3. IEmbeddingProvider -- one vector per passage, batched
    4. IPassageStore -- persists (text, index, vector, metadata) records

All dependencies are injected via constructor, so the embedding endpoint
or the storage backend can be swapped without changing this class.  The
store is optional: without one, callers receive the embedded passages in
the :class:`IngestionResult` and persist them themselves.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from knowledge_core.interfaces.passage_store import PassageRecord
from knowledge_core.models.rag import EmbeddedPassage, IngestionResult
from knowledge_core.services.ingestion.chunker import TextChunker
from knowledge_core.utils.errors import ConfigurationError, EmbeddingProviderError
from knowledge_core.utils.text import normalize_whitespace

if TYPE_CHECKING:
    from knowledge_core.interfaces.embedding_provider import IEmbeddingProvider
    from knowledge_core.interfaces.passage_store import IPassageStore
    from knowledge_core.models.crawl import CrawlResult
    from knowledge_core.models.document import FileType
    from knowledge_core.services.ingestion.document_extractor import DocumentTextExtractor

logger = structlog.get_logger(logger_name=__name__)


class IngestionService:
    """Turns documents, raw text and crawl results into embedded passages.

    Parameters
    ----------
    chunker:
        Splits normalized text into overlapping passages.
    embedding_provider:
        Generates one vector per passage.
    passage_store:
        Optional persistence collaborator.  When present, every
        ``ingest_*`` call hands it the embedded passages as
        :class:`PassageRecord` rows.
    document_extractor:
        Required by :meth:`ingest_file` only.
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        passage_store: IPassageStore | None = None,
        document_extractor: DocumentTextExtractor | None = None,
    ) -> None:
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._passage_store = passage_store
        self._document_extractor = document_extractor

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process_document_for_rag(self, text: str) -> list[EmbeddedPassage]:
        """Chunk *text* and embed every passage.

        Returns
        -------
        list[EmbeddedPassage]
            One entry per passage, in passage order.  Blank text yields an
            empty list without contacting the embedding provider.

        Raises
        ------
        ConfigurationError
            If the embedding provider has no credential.
        EmbeddingProviderError
            If the provider rejects any request.
        """
        passages = self._chunker.chunk(text)
        if not passages:
            logger.info("ingestion_no_passages", text_length=len(text))
            return []

        vectors = await self._embedding_provider.embed([passage.text for passage in passages])
        if len(vectors) != len(passages):
            raise EmbeddingProviderError(
                message=(
                    f"Embedding provider returned {len(vectors)} vectors "
                    f"for {len(passages)} passages"
                ),
                provider_name=self._embedding_provider.get_provider_name(),
            )

        return [
            EmbeddedPassage(passage=passage, vector=vector)
            for passage, vector in zip(passages, vectors)
        ]

    async def ingest_text(
        self,
        source_id: str,
        text: str,
        metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Ingest raw text under *source_id*.

        *metadata* is merged into every stored record after the passage's
        own offset metadata.
        """
        start_time = time.monotonic()
        log = logger.bind(source_id=source_id)

        try:
            embedded = await self.process_document_for_rag(text)
        except ConfigurationError:
            log.error("ingestion_aborted_configuration")
            raise

        stored = False
        if embedded and self._passage_store is not None:
            records = [
                PassageRecord(
                    text=item.passage.text,
                    index=item.passage.index,
                    vector=item.vector,
                    metadata={**item.passage.to_metadata(), **(metadata or {})},
                )
                for item in embedded
            ]
            await self._passage_store.store(source_id, records)
            stored = True

        elapsed = round(time.monotonic() - start_time, 3)
        log.info(
            "ingestion_complete",
            passages=len(embedded),
            stored=stored,
            elapsed_s=elapsed,
        )
        return IngestionResult(
            source_id=source_id,
            passages_created=len(embedded),
            characters=len(normalize_whitespace(text)),
            stored=stored,
            ingestion_time=elapsed,
            embedded_passages=embedded,
        )

    async def ingest_file(
        self,
        source_id: str,
        path: str | Path,
        file_type: FileType | str,
        metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Extract an uploaded file and ingest its text.

        Raises
        ------
        ConfigurationError
            If no document extractor was injected.
        PathTraversalError
            If *path* escapes the upload root.
        """
        if self._document_extractor is None:
            raise ConfigurationError(
                message="A document extractor is required to ingest files",
                provider_name="ingestion_service",
            )

        document = await self._document_extractor.extract(path, file_type)
        file_metadata: dict[str, Any] = {"fileType": document.file_type.value if document.file_type else None}
        if document.metadata.title:
            file_metadata["title"] = document.metadata.title
        if document.metadata.author:
            file_metadata["author"] = document.metadata.author
        return await self.ingest_text(source_id, document.text, {**file_metadata, **(metadata or {})})

    async def ingest_crawl(
        self,
        source_id: str,
        crawl_result: CrawlResult,
        metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Ingest every page of a finished crawl as one document.

        Each page contributes its title followed by its main text, in the
        order the crawler collected them.
        """
        sections = [
            f"{page.title}\n\n{page.main_text}"
            for page in crawl_result.pages
            if page.main_text.strip()
        ]
        crawl_metadata = {
            "seedUrl": crawl_result.seed_url,
            "pagesCrawled": crawl_result.pages_fetched,
        }
        return await self.ingest_text(
            source_id,
            "\n\n".join(sections),
            {**crawl_metadata, **(metadata or {})},
        )
