"""Cosine-similarity ranking of stored passage vectors against a query vector.

Pure functions: no I/O, no state.  The only error they raise is
:class:`~knowledge_core.utils.errors.DimensionMismatchError`, which always
means the caller mixed vectors from different embedding models.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np
import structlog

from knowledge_core.models.rag import RetrievalMatch, StoredPassageVector
from knowledge_core.utils.errors import DimensionMismatchError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TOP_K = 5
DEFAULT_MIN_SIMILARITY = 0.7


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, or ``0.0`` when either norm is zero.

    Raises
    ------
    DimensionMismatchError
        If the vectors have different lengths.
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(
            message=f"Vectors must have the same length ({len(vec_a)} != {len(vec_b)})"
        )
    a = np.asarray(vec_a, dtype=np.float64)
    b = np.asarray(vec_b, dtype=np.float64)
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    similarity = float(np.dot(a, b)) / (norm_a * norm_b)
    # Floating-point error can push identical vectors a hair past 1.0.
    return max(-1.0, min(1.0, similarity))


def find_relevant_chunks(
    query_vector: Sequence[float],
    stored: Iterable[StoredPassageVector],
    top_k: int = DEFAULT_TOP_K,
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
) -> list[RetrievalMatch]:
    """Rank *stored* passages against *query_vector*.

    Matches below *min_similarity* are dropped; the rest are sorted by
    descending similarity (ties by ascending id, compared as strings when
    ids mix types) and truncated to *top_k*.

    Raises
    ------
    DimensionMismatchError
        If any stored vector's length differs from the query vector's.
    """
    matches: list[RetrievalMatch] = []
    for item in stored:
        if len(item.vector) != len(query_vector):
            raise DimensionMismatchError(
                message=(
                    f"Stored vector {item.id!r} has dimension {len(item.vector)}, "
                    f"query has {len(query_vector)}"
                )
            )
        similarity = cosine_similarity(query_vector, item.vector)
        if similarity >= min_similarity:
            matches.append(
                RetrievalMatch(
                    passage_id=item.id,
                    text=item.text,
                    similarity=similarity,
                    metadata=dict(item.metadata),
                )
            )

    matches.sort(key=lambda m: (-m.similarity, _id_sort_key(m.passage_id)))
    return matches[: max(top_k, 0)]


def _id_sort_key(passage_id: int | str) -> tuple[int, int | str]:
    # Integers order numerically and before strings.
    if isinstance(passage_id, int):
        return (0, passage_id)
    return (1, str(passage_id))


class SimilarityRetriever:
    """Holds ranking parameters so callers configure them once.

    Parameters
    ----------
    top_k:
        Maximum number of matches returned.
    min_similarity:
        Inclusive similarity floor.
    """

    def __init__(
        self,
        top_k: int = DEFAULT_TOP_K,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
    ) -> None:
        self._top_k = top_k
        self._min_similarity = min_similarity

    def retrieve(
        self,
        query_vector: Sequence[float],
        stored: Iterable[StoredPassageVector],
    ) -> list[RetrievalMatch]:
        matches = find_relevant_chunks(
            query_vector,
            stored,
            top_k=self._top_k,
            min_similarity=self._min_similarity,
        )
        logger.debug(
            "retrieval_complete",
            matches=len(matches),
            top_k=self._top_k,
            min_similarity=self._min_similarity,
        )
        return matches
