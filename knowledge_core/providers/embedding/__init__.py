"""Embedding provider implementations.

Embeddings convert text into numeric vectors that capture semantic
meaning; the retriever ranks passages by cosine similarity between them.

    HttpEmbeddingProvider: any OpenAI-compatible ``/v1/embeddings`` API,
    bearer-authenticated, batched with concurrent requests per batch.
"""

from knowledge_core.providers.embedding.http_embedding_provider import HttpEmbeddingProvider

__all__ = ["HttpEmbeddingProvider"]
