"""Abstract base class for the storage collaborator that persists passages.

knowledge_core never reads stored vectors back; it only hands embedded
passages to an :class:`IPassageStore` keyed by a caller-supplied source
identifier.  Querying the store is the caller's job -- loaded vectors
come back in through the retriever's input parameter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PassageRecord:
    """One row handed to the store: passage text, position, vector, metadata."""

    text: str
    index: int
    vector: list[float]
    metadata: dict[str, Any] = field(default_factory=dict)


class IPassageStore(ABC):
    """Contract for persisting embedded passages produced by ingestion."""

    @abstractmethod
    async def store(self, source_id: str, records: list[PassageRecord]) -> None:
        """Persist *records* under *source_id*.

        Implementations own identifiers, transactions and retries; any
        exception they raise propagates to the ingestion caller unchanged.
        """
