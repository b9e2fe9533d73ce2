"""Query path: embed the question, rank stored passages, build the context.

    query text --IEmbeddingProvider--> query vector
               --SimilarityRetriever--> ranked matches
               --build_rag_context--> context string
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from knowledge_core.services.retrieval.context_builder import (
    DEFAULT_MAX_CONTEXT_LENGTH,
    build_rag_context,
)
from knowledge_core.services.retrieval.similarity import SimilarityRetriever

if TYPE_CHECKING:
    from knowledge_core.interfaces.embedding_provider import IEmbeddingProvider
    from knowledge_core.models.rag import RetrievalMatch, StoredPassageVector

logger = structlog.get_logger(logger_name=__name__)


class RetrievalService:
    """Turns a user question into a grounded context string.

    Stored vectors are supplied by the caller on every call; the service
    never loads them itself.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        retriever: SimilarityRetriever | None = None,
        max_context_length: int = DEFAULT_MAX_CONTEXT_LENGTH,
    ) -> None:
        self._embedding_provider = embedding_provider
        self._retriever = retriever or SimilarityRetriever()
        self._max_context_length = max_context_length

    async def retrieve(
        self,
        query: str,
        stored: Sequence[StoredPassageVector],
    ) -> list[RetrievalMatch]:
        """Return the passages in *stored* most similar to *query*."""
        if not query.strip() or not stored:
            return []
        query_vector = await self._embedding_provider.embed_single(query)
        matches = self._retriever.retrieve(query_vector, stored)
        logger.info(
            "query_retrieved",
            candidates=len(stored),
            matches=len(matches),
            top_similarity=round(matches[0].similarity, 4) if matches else None,
        )
        return matches

    async def build_context(
        self,
        query: str,
        stored: Sequence[StoredPassageVector],
    ) -> str:
        """Return the context string for *query*, or ``""`` when nothing matches."""
        matches = await self.retrieve(query, stored)
        return build_rag_context(matches, max_context_length=self._max_context_length)
