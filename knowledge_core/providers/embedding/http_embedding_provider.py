"""OpenAI-compatible embedding provider over plain HTTP.

Implements :class:`IEmbeddingProvider` with ``httpx``: one
``POST {endpoint}/v1/embeddings`` per text, body ``{"model", "input"}``,
bearer-authenticated.  Texts are processed in fixed-size batches; the
requests inside a batch run concurrently, batches run one after another
with a short pause in between to stay under provider rate limits.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from knowledge_core.config.settings import Settings
from knowledge_core.interfaces.embedding_provider import IEmbeddingProvider
from knowledge_core.utils.errors import (
    ConfigurationError,
    EmbeddingProviderError,
    NetworkError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_API_URL = "https://forge.manus.im"

# Known embedding model dimensions.  Unknown models learn their dimension
# from the first response.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
    "nomic-embed-text": 768,
}


class HttpEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible ``/v1/embeddings`` endpoint.

    All configuration is taken from *settings* once, at construction.  A
    missing API key is not an error until the first :meth:`embed` call,
    which then raises :class:`ConfigurationError` before touching the
    network.

    Parameters
    ----------
    settings:
        Resolved application settings (endpoint, key, model, batching).
    http_client:
        Optional shared ``httpx.AsyncClient``; one is created (and owned)
        when omitted.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self._api_key = settings.embedding_api_key
        base_url = settings.embedding_api_url.strip() or _DEFAULT_API_URL
        self._endpoint = f"{base_url.rstrip('/')}/v1/embeddings"
        self._model = settings.embedding_model
        self._batch_size = settings.embedding_batch_size
        self._batch_delay = settings.embedding_batch_delay_ms / 1000.0
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 0)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.embedding_timeout),
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Embed *texts* batch by batch, preserving input order."""
        if not texts:
            return []
        self._require_credentials()

        vectors: list[list[float]] = []
        batch_count = 0
        for start in range(0, len(texts), self._batch_size):
            if batch_count:
                await self._pause_between_batches()
            batch = texts[start : start + self._batch_size]
            batch_vectors = await self._embed_batch(batch)
            vectors.extend(batch_vectors)
            batch_count += 1
            logger.debug(
                "embedding_batch_complete",
                model=self._model,
                batch=batch_count,
                batch_size=len(batch),
            )

        logger.info(
            "embeddings_generated",
            model=self._model,
            texts=len(texts),
            batches=batch_count,
        )
        return vectors

    async def embed_single(self, text: str) -> list[float]:
        """POST one text to the embeddings endpoint and return its vector."""
        self._require_credentials()
        try:
            response = await self._client.post(
                self._endpoint,
                json={"model": self._model, "input": text},
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._api_key}",
                },
            )
        except httpx.TimeoutException as exc:
            raise NetworkError(
                message=f"Timeout calling embedding endpoint: {exc}",
                provider_name=self.get_provider_name(),
                url=self._endpoint,
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                message=f"HTTP error calling embedding endpoint: {exc}",
                provider_name=self.get_provider_name(),
                url=self._endpoint,
            ) from exc

        if not response.is_success:
            body = response.text
            raise EmbeddingProviderError(
                message=f"Embedding generation failed: {response.status_code} - {body}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
                body=body,
            )

        try:
            embedding = response.json()["data"][0]["embedding"]
            vector = [float(value) for value in embedding]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise EmbeddingProviderError(
                message=f"Malformed embedding response: {exc}",
                provider_name=self.get_provider_name(),
                status_code=response.status_code,
                body=response.text,
            ) from exc

        if not self._dimension:
            self._dimension = len(vector)
        return vector

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "http_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_credentials(self) -> None:
        if not self._api_key:
            raise ConfigurationError(
                message="EMBEDDING_API_KEY is required for embeddings",
                provider_name=self.get_provider_name(),
            )

    async def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        """Embed one batch concurrently; the first failure cancels the rest."""
        tasks = [asyncio.ensure_future(self.embed_single(text)) for text in batch]
        try:
            # Results come back in argument order, whatever order the
            # requests complete in.
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _pause_between_batches(self) -> None:
        if self._batch_delay > 0:
            await asyncio.sleep(self._batch_delay)
