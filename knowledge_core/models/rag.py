"""RAG data models: passages, embedded passages, and retrieval matches.

All models are Pydantic v2 with frozen config -- a Passage never changes
once the chunker has produced it, and a RetrievalMatch is recomputed for
every query rather than mutated.

Flow through the pipeline:

    text --Chunker--> Passage --EmbeddingClient--> EmbeddedPassage
        --(external store)--> StoredPassageVector --Retriever--> RetrievalMatch
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Passage: the fundamental unit of the knowledge base.
# ---------------------------------------------------------------------------
class Passage(BaseModel):
    """A bounded slice of normalized source text, ready for embedding.

    ``index`` values are contiguous from 0 within one document;
    ``start_offset``/``end_offset`` locate the window in the normalized
    text the chunker walked (``end_offset`` is exclusive).
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1, description="The passage's textual content.")
    index: int = Field(ge=0, description="Position of this passage within its document.")
    start_offset: int = Field(ge=0, description="Window start in the normalized text.")
    end_offset: int = Field(ge=0, description="Window end (exclusive) in the normalized text.")
    length: int = Field(ge=1, description="Length of ``text`` in characters.")

    @model_validator(mode="after")
    def _check_offsets(self) -> Passage:
        if self.end_offset < self.start_offset:
            raise ValueError("end_offset must not precede start_offset")
        return self

    @property
    def source_offsets(self) -> tuple[int, int]:
        return (self.start_offset, self.end_offset)

    def to_metadata(self) -> dict[str, int]:
        """Return the offset metadata stored alongside the passage vector."""
        return {
            "startChar": self.start_offset,
            "endChar": self.end_offset,
            "length": self.length,
        }


# ---------------------------------------------------------------------------
# EmbeddedPassage: a passage paired 1:1 with its vector.
# ---------------------------------------------------------------------------
class EmbeddedPassage(BaseModel):
    """A passage together with the embedding vector generated for it."""

    model_config = ConfigDict(frozen=True)

    passage: Passage
    vector: list[float] = Field(min_length=1)

    @property
    def text(self) -> str:
        return self.passage.text

    @property
    def index(self) -> int:
        return self.passage.index


# ---------------------------------------------------------------------------
# StoredPassageVector: what the caller hands back to the retriever.
# ---------------------------------------------------------------------------
class StoredPassageVector(BaseModel):
    """A persisted passage vector, as loaded by the caller from its store.

    knowledge_core never reads the store itself; callers pass these in to
    :func:`~knowledge_core.services.retrieval.similarity.find_relevant_chunks`.
    """

    model_config = ConfigDict(frozen=True)

    id: int | str
    vector: list[float]
    text: str
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# RetrievalMatch: a ranked search result.
# ---------------------------------------------------------------------------
class RetrievalMatch(BaseModel):
    """A stored passage ranked against a query vector."""

    model_config = ConfigDict(frozen=True)

    passage_id: int | str
    text: str
    similarity: float = Field(ge=-1.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# IngestionResult: output of one ingestion run.
# ---------------------------------------------------------------------------
class IngestionResult(BaseModel):
    """Summary of a single ingestion run plus the embedded passages it produced.

    ``embedded_passages`` is what the storage collaborator persists; the
    counters are what a caller reports back to the user.
    """

    model_config = ConfigDict(frozen=True)

    source_id: str
    passages_created: int = Field(default=0, ge=0)
    characters: int = Field(default=0, ge=0, description="Length of the normalized source text.")
    stored: bool = Field(default=False, description="True when records were handed to a store.")
    ingestion_time: float = Field(default=0.0, ge=0.0, description="Wall-clock seconds.")
    embedded_passages: list[EmbeddedPassage] = Field(default_factory=list)
