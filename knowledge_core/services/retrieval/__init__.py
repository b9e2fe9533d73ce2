"""Query-time retrieval: similarity ranking and context assembly."""

from knowledge_core.services.retrieval.context_builder import (
    CONTEXT_PREAMBLE,
    CONTEXT_TRAILER,
    build_rag_context,
)
from knowledge_core.services.retrieval.retrieval_service import RetrievalService
from knowledge_core.services.retrieval.similarity import (
    SimilarityRetriever,
    cosine_similarity,
    find_relevant_chunks,
)

__all__ = [
    "CONTEXT_PREAMBLE",
    "CONTEXT_TRAILER",
    "RetrievalService",
    "SimilarityRetriever",
    "build_rag_context",
    "cosine_similarity",
    "find_relevant_chunks",
]
