"""Unit tests for the TextChunker: overlapping, sentence-aware character windows."""

from __future__ import annotations

import pytest

from knowledge_core.services.ingestion.chunker import TextChunker, chunk_text
from knowledge_core.utils.text import normalize_whitespace

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sentences(count: int) -> str:
    return " ".join(f"Sentence number {i} talks about compost and soil." for i in range(count))


def _covered_positions(passages, length: int) -> set[int]:
    covered: set[int] = set()
    for passage in passages:
        covered.update(range(passage.start_offset, min(passage.end_offset, length)))
    return covered


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_defaults(self) -> None:
        chunker = TextChunker()
        assert chunker.chunk_size == 1000
        assert chunker.overlap == 200

    @pytest.mark.parametrize(
        ("chunk_size", "overlap"),
        [(0, 0), (-5, 0), (100, 100), (100, 150), (100, -1)],
    )
    def test_invalid_parameters_rejected(self, chunk_size: int, overlap: int) -> None:
        with pytest.raises(ValueError):
            TextChunker(chunk_size=chunk_size, overlap=overlap)


class TestEmptyInput:
    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t  \n"])
    def test_blank_text_returns_no_passages(self, text: str) -> None:
        assert TextChunker().chunk(text) == []


class TestShortInput:
    def test_text_shorter_than_window_is_one_passage(self) -> None:
        passages = chunk_text("  Hello   world.\n\nSecond line.  ")

        assert len(passages) == 1
        assert passages[0].text == "Hello world. Second line."
        assert passages[0].index == 0
        assert passages[0].source_offsets == (0, len("Hello world. Second line."))

    def test_whitespace_is_normalized_before_windowing(self) -> None:
        passages = chunk_text("a\t\tb\n\n\nc")
        assert passages[0].text == "a b c"


class TestWindowing:
    def test_indices_are_contiguous_from_zero(self) -> None:
        passages = TextChunker(chunk_size=200, overlap=40).chunk(_sentences(30))
        assert [p.index for p in passages] == list(range(len(passages)))

    def test_no_passage_is_empty_or_oversized(self) -> None:
        passages = TextChunker(chunk_size=200, overlap=40).chunk(_sentences(30))
        assert len(passages) > 1
        for passage in passages:
            assert passage.text.strip()
            assert passage.length == len(passage.text)
            assert passage.length <= 200

    def test_every_character_is_covered(self) -> None:
        text = _sentences(40)
        normalized = normalize_whitespace(text)
        passages = TextChunker(chunk_size=250, overlap=50).chunk(text)

        assert _covered_positions(passages, len(normalized)) == set(range(len(normalized)))
        assert passages[-1].end_offset == len(normalized)

    def test_consecutive_windows_overlap(self) -> None:
        passages = TextChunker(chunk_size=250, overlap=50).chunk(_sentences(40))
        for previous, current in zip(passages, passages[1:]):
            assert current.start_offset == previous.end_offset - 50

    def test_text_without_terminals_cuts_at_raw_boundary(self) -> None:
        text = "x" * 250
        passages = TextChunker(chunk_size=100, overlap=20).chunk(text)

        assert [p.source_offsets for p in passages] == [(0, 100), (80, 180), (160, 250)]


class TestSentenceBoundaries:
    def test_non_final_window_ends_after_sentence_terminal(self) -> None:
        passages = TextChunker(chunk_size=200, overlap=40).chunk(_sentences(30))
        for passage in passages[:-1]:
            assert passage.text.endswith(".")

    def test_latest_terminal_in_search_window_wins(self) -> None:
        first = "A" * 50 + ". "
        second = "B" * 30 + "! "
        text = first + second + "C" * 100
        passages = TextChunker(chunk_size=100, overlap=10).chunk(text)

        assert passages[0].text == (first + second).strip()

    def test_terminal_not_followed_by_whitespace_is_ignored(self) -> None:
        text = "version3.14is" + "z" * 200
        passages = TextChunker(chunk_size=100, overlap=10).chunk(text)
        assert passages[0].end_offset == 100

    def test_early_cut_does_not_stall(self) -> None:
        # A terminal right after the window start forces next_start <= start
        # without the progress guard.
        text = "A. " + "b" * 300
        passages = TextChunker(chunk_size=100, overlap=90).chunk(text)

        starts = [p.start_offset for p in passages]
        assert starts == sorted(set(starts))
        assert passages[-1].end_offset == len(text)
