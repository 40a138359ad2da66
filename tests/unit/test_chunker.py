"""Unit tests for the ContentChunker -- overlapping word windows with tagging."""

from __future__ import annotations

import pytest

from src.models.content import ChunkType
from src.services.ingestion.chunker import ContentChunker, classify_chunk_type
from src.utils.errors import InputValidationError
from tests.conftest import make_words


def _reconstruct(chunks, overlap: int) -> list[str]:
    words: list[str] = []
    for i, chunk in enumerate(chunks):
        chunk_words = chunk.text.split()
        words.extend(chunk_words if i == 0 else chunk_words[overlap:])
    return words


class TestWindowing:
    def test_1200_words_give_two_overlapping_chunks(self) -> None:
        text = make_words(1200)
        chunks = ContentChunker(max_words=1000, overlap_words=100).chunk(text, "item-1")

        assert len(chunks) == 2
        assert (chunks[0].start_word, chunks[0].end_word) == (0, 1000)
        assert (chunks[1].start_word, chunks[1].end_word) == (900, 1200)
        assert chunks[0].text.split()[-100:] == chunks[1].text.split()[:100]

    def test_ordinals_are_contiguous_and_stamped(self) -> None:
        chunks = ContentChunker(max_words=50, overlap_words=10).chunk(make_words(400), "abc")

        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert all(c.content_id == "abc" for c in chunks)
        assert all(c.word_count == c.end_word - c.start_word for c in chunks)

    def test_chunking_is_lossless(self) -> None:
        text = make_words(537)
        chunks = ContentChunker(max_words=100, overlap_words=20).chunk(text)

        assert _reconstruct(chunks, 20) == text.split()
        assert chunks[-1].end_word == 537

    def test_char_offsets_point_into_source(self) -> None:
        text = "alpha  beta\n\ngamma delta   epsilon zeta"
        chunks = ContentChunker(max_words=3, overlap_words=1).chunk(text)

        for chunk in chunks:
            assert text[chunk.start_char : chunk.end_char] == chunk.text

    def test_short_text_is_a_single_chunk(self) -> None:
        chunks = ContentChunker().chunk("Just a few words here.")

        assert len(chunks) == 1
        assert chunks[0].start_word == 0
        assert chunks[0].end_word == 5

    @pytest.mark.parametrize("text", ["", "   \n\t  "])
    def test_empty_text_yields_no_chunks(self, text: str) -> None:
        assert ContentChunker().chunk(text) == []


class TestConfiguration:
    def test_overlap_must_be_smaller_than_window(self) -> None:
        with pytest.raises(InputValidationError):
            ContentChunker(max_words=100, overlap_words=100)

    def test_window_must_be_positive(self) -> None:
        with pytest.raises(InputValidationError):
            ContentChunker(max_words=0, overlap_words=0)


class TestChunkTypes:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("| plan | price |\n| basic | $10 |", ChunkType.TABLE),
            ("Steps:\n- call leads\n- send offer", ChunkType.LIST),
            ("1. Define the offer\n2. Price it", ChunkType.LIST),
            ("import pandas as pd", ChunkType.CODE),
            ("# Pricing\nCharge more.", ChunkType.HEADING),
            ("Plain prose about pricing.", ChunkType.TEXT),
        ],
    )
    def test_classification(self, text: str, expected: ChunkType) -> None:
        assert classify_chunk_type(text) == expected

    def test_table_wins_over_list(self) -> None:
        assert classify_chunk_type("- item | other") == ChunkType.TABLE


class TestFeatures:
    def test_short_fragment_has_low_importance(self) -> None:
        chunker = ContentChunker()
        assert chunker.importance_score("tiny note") == pytest.approx(0.1)

    def test_business_keywords_raise_importance(self) -> None:
        chunker = ContentChunker()
        plain = chunker.importance_score(make_words(120))
        rich = chunker.importance_score(
            make_words(110) + " strategy revenue growth customer offer"
        )
        assert rich > plain

    def test_all_keyword_text_clamps_to_one(self, tables) -> None:
        chunker = ContentChunker(tables=tables.chunking)
        text = " ".join(tables.chunking.business_keywords * 10)

        assert len(text) > 500
        assert chunker.importance_score(text) == 1.0

    def test_empty_text_stays_in_range(self) -> None:
        assert 0.0 <= ContentChunker().importance_score("") <= 1.0

    def test_concepts_detected(self, sample_business_text: str) -> None:
        chunker = ContentChunker()
        concepts = chunker.extract_concepts(
            "Our value proposition drives customer acquisition through the sales funnel."
        )
        assert concepts == ["value_proposition", "customer_acquisition", "sales_funnel"]
        assert chunker.extract_concepts(sample_business_text) == ["conversion_optimization"]

    def test_entities_deduplicated_and_capped(self) -> None:
        chunker = ContentChunker()
        text = "Alex Hormozi met Leila Hormozi. Alex Hormozi charged $5,000 for 12 sessions."
        entities = chunker.extract_entities(text)

        assert entities.count("Alex Hormozi") == 1
        assert "$5,000" in entities
        assert len(entities) <= 10
