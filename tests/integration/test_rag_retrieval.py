"""Integration tests: ingest text, then retrieve context for a query.

Runs the real chunker, ingestion service, similarity retriever and
context builder together.  Only the embedding backend is replaced: once
with the deterministic letter-frequency fake, once with the HTTP provider
talking to an ``httpx.MockTransport``.
"""

from __future__ import annotations

import json
import string

import httpx
import pytest

from conftest import InMemoryPassageStore, LetterFrequencyEmbeddingProvider
from knowledge_core.config.settings import Settings
from knowledge_core.interfaces.passage_store import PassageRecord
from knowledge_core.main import (
    build_embedding_provider,
    build_ingestion_service,
    build_retrieval_service,
)
from knowledge_core.models.rag import StoredPassageVector
from knowledge_core.services.retrieval.context_builder import CONTEXT_PREAMBLE, CONTEXT_TRAILER

_CORPUS = {
    "worms": "Earthworms aerate compost and turn scraps into rich castings. " * 6,
    "bees": "Honeybees pollinate flowering plants while buzzing between hives. " * 6,
}


def _stored_vectors(records: dict[str, list[PassageRecord]]) -> list[StoredPassageVector]:
    stored = []
    for source_id, rows in records.items():
        for row in rows:
            stored.append(
                StoredPassageVector(
                    id=f"{source_id}-{row.index}",
                    vector=row.vector,
                    text=row.text,
                    metadata={**row.metadata, "sourceId": source_id},
                )
            )
    return stored


@pytest.fixture
def rag_settings(upload_root) -> Settings:
    return Settings(
        _env_file=None,
        embedding_api_key="test-key",
        embedding_api_url="https://embeddings.test",
        chunk_size=200,
        chunk_overlap=40,
        rag_top_k=3,
        rag_min_similarity=0.5,
        rag_max_context_length=3000,
        upload_dir=str(upload_root),
    )


class TestIngestThenRetrieve:
    @pytest.mark.asyncio
    async def test_query_returns_matching_source(
        self,
        rag_settings: Settings,
        passage_store: InMemoryPassageStore,
    ) -> None:
        provider = LetterFrequencyEmbeddingProvider()
        ingestion = build_ingestion_service(rag_settings, embedding_provider=provider, passage_store=passage_store)
        retrieval = build_retrieval_service(rag_settings, embedding_provider=provider)

        for source_id, text in _CORPUS.items():
            await ingestion.ingest_text(source_id, text)
        stored = _stored_vectors(passage_store.records)

        matches = await retrieval.retrieve("earthworms aerate compost", stored)
        context = await retrieval.build_context("earthworms aerate compost", stored)

        assert 0 < len(matches) <= 3
        assert matches[0].metadata["sourceId"] == "worms"
        assert all(m.similarity >= 0.5 for m in matches)
        assert [m.similarity for m in matches] == sorted((m.similarity for m in matches), reverse=True)
        assert context.startswith(CONTEXT_PREAMBLE)
        assert context.endswith(CONTEXT_TRAILER)
        assert "[Source 1, relevance:" in context

    @pytest.mark.asyncio
    async def test_file_upload_is_retrievable(
        self,
        rag_settings: Settings,
        passage_store: InMemoryPassageStore,
        upload_root,
    ) -> None:
        (upload_root / "bees.txt").write_text(_CORPUS["bees"], encoding="utf-8")
        provider = LetterFrequencyEmbeddingProvider()
        ingestion = build_ingestion_service(rag_settings, embedding_provider=provider, passage_store=passage_store)
        retrieval = build_retrieval_service(rag_settings, embedding_provider=provider)

        result = await ingestion.ingest_file("upload-1", "bees.txt", "txt")
        matches = await retrieval.retrieve("honeybees pollinate", _stored_vectors(passage_store.records))

        assert result.passages_created == len(passage_store.records["upload-1"])
        assert matches
        assert matches[0].metadata["fileType"] == "txt"

    @pytest.mark.asyncio
    async def test_empty_store_gives_empty_context(self, rag_settings: Settings) -> None:
        retrieval = build_retrieval_service(rag_settings, embedding_provider=LetterFrequencyEmbeddingProvider())
        assert await retrieval.build_context("anything", []) == ""


class TestHttpEmbeddingEndToEnd:
    @pytest.mark.asyncio
    async def test_ingest_and_query_over_http(
        self,
        rag_settings: Settings,
        passage_store: InMemoryPassageStore,
    ) -> None:
        requests: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            requests.append(body)
            vector = [float(body["input"].lower().count(c)) for c in string.ascii_lowercase]
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": vector}]})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = build_embedding_provider(rag_settings, http_client=client)
        ingestion = build_ingestion_service(rag_settings, embedding_provider=provider, passage_store=passage_store)
        retrieval = build_retrieval_service(rag_settings, embedding_provider=provider)

        await ingestion.ingest_text("worms", _CORPUS["worms"])
        context = await retrieval.build_context("earthworms", _stored_vectors(passage_store.records))

        assert requests[0]["model"] == rag_settings.embedding_model
        assert len(requests) == len(passage_store.records["worms"]) + 1
        assert "Earthworms" in context
        await client.aclose()
