"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.  The
ingestion and retrieval services depend only on this interface, so tests
substitute a deterministic fake and deployments can swap the HTTP
provider for any other backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   HttpEmbeddingProvider: OpenAI-compatible POST /v1/embeddings over httpx
# Located in: knowledge_core/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the ingestion pipeline."""

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            batching internally.

        Returns
        -------
        list[list[float]]
            Exactly one vector per input text, in input order.

        Raises
        ------
        knowledge_core.utils.errors.ConfigurationError
            If the provider has no credential configured.
        knowledge_core.utils.errors.EmbeddingProviderError
            If the provider answers with a non-success status.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Embed one text, typically a retrieval query, and return its vector."""

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the vector length, or ``0`` while it is still unknown.

        Providers that cannot look the model up learn the length from
        their first response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the short name used in log events and error prefixes."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
