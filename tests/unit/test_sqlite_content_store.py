"""Unit tests for SQLiteContentStore.

Runs against a throwaway database under pytest's ``tmp_path`` so the real
``data/`` directory is never touched.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from src.interfaces.content_store import IContentStore
from src.models.content import (
    ContentChunk,
    ContentItem,
    ContentStatus,
    ContentType,
    FrameworkDetection,
)
from src.providers.store.sqlite_content_store import SQLiteContentStore
from src.utils.errors import StorageError


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteContentStore:
    s = SQLiteContentStore(db_path=tmp_path / "kb" / "oracle.db")
    await s.initialize()
    return s


def _item(item_id: str = "item-1", **overrides) -> ContentItem:
    values = {
        "id": item_id,
        "type": ContentType.TEXT,
        "title": "Offer notes",
        "source": "text",
        "status": ContentStatus.COMPLETED,
        "detected_frameworks": ["Grand Slam Offer"],
        "metadata": {"authority_score": 0.9},
    }
    values.update(overrides)
    return ContentItem(**values)


def _chunk(index: int, embedding: list[float] | None, content_id: str = "item-1", **overrides) -> ContentChunk:
    values = {
        "id": f"{content_id}-c{index}",
        "content_id": content_id,
        "chunk_index": index,
        "text": f"chunk {index} text",
        "start_word": index * 3,
        "end_word": index * 3 + 3,
        "start_char": 0,
        "end_char": 14,
        "word_count": 3,
        "embedding": embedding,
    }
    values.update(overrides)
    return ContentChunk(**values)


# ─── Content items ────────────────────────────────────────────────────


class TestContentItems:
    @pytest.mark.asyncio
    async def test_create_and_get_round_trip(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())

        loaded = await store.get_content_item("item-1")

        assert loaded is not None
        assert loaded.title == "Offer notes"
        assert loaded.detected_frameworks == ["Grand Slam Offer"]
        assert loaded.metadata == {"authority_score": 0.9}

    @pytest.mark.asyncio
    async def test_duplicate_id_raises(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())

        with pytest.raises(StorageError):
            await store.create_content_item(_item())

    @pytest.mark.asyncio
    async def test_update_missing_item_raises(self, store: SQLiteContentStore) -> None:
        with pytest.raises(StorageError, match="does not exist"):
            await store.update_content_item(_item("ghost"))

    @pytest.mark.asyncio
    async def test_update_changes_status(self, store: SQLiteContentStore) -> None:
        item = _item(status=ContentStatus.PROCESSING)
        await store.create_content_item(item)

        await store.update_content_item(
            item.model_copy(update={"status": ContentStatus.FAILED, "error_message": "boom"})
        )

        loaded = await store.get_content_item("item-1")
        assert loaded.status == ContentStatus.FAILED
        assert loaded.error_message == "boom"

    @pytest.mark.asyncio
    async def test_list_filters_by_status(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item("a"))
        await store.create_content_item(_item("b", status=ContentStatus.FAILED))

        completed = await store.list_content_items(status=ContentStatus.COMPLETED)
        everything = await store.list_content_items()

        assert [i.id for i in completed] == ["a"]
        assert {i.id for i in everything} == {"a", "b"}

    @pytest.mark.asyncio
    async def test_archive(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())

        assert await store.archive_content_item("item-1") is True
        assert await store.archive_content_item("missing") is False
        assert (await store.get_content_item("item-1")).status == ContentStatus.ARCHIVED


# ─── Chunks and search ────────────────────────────────────────────────


class TestSearch:
    @pytest.mark.asyncio
    async def test_threshold_and_order(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())
        await store.store_chunks(
            "item-1",
            [
                _chunk(0, [1.0, 0.0]),
                _chunk(1, [0.8, 0.6]),
                _chunk(2, [0.0, 1.0]),
            ],
        )

        results = await store.search_chunks([1.0, 0.0], threshold=0.5, limit=10)

        assert [r.chunk_id for r in results] == ["item-1-c0", "item-1-c1"]
        assert results[0].similarity == pytest.approx(1.0)
        assert results[1].similarity == pytest.approx(0.8)
        assert results[0].metadata["authority_score"] == 0.9
        assert results[0].detected_frameworks == ["Grand Slam Offer"]

    @pytest.mark.asyncio
    async def test_limit(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())
        await store.store_chunks("item-1", [_chunk(i, [1.0, 0.0]) for i in range(5)])

        results = await store.search_chunks([1.0, 0.0], threshold=0.0, limit=2)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_only_completed_items_are_searchable(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item(status=ContentStatus.PROCESSING))
        await store.store_chunks("item-1", [_chunk(0, [1.0, 0.0])])

        assert await store.search_chunks([1.0, 0.0], threshold=0.0, limit=5) == []

    @pytest.mark.asyncio
    async def test_framework_and_type_filters(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())
        await store.create_content_item(
            _item("video-1", type=ContentType.VIDEO, detected_frameworks=["Core Four"])
        )
        await store.store_chunks("item-1", [_chunk(0, [1.0, 0.0])])
        await store.store_chunks("video-1", [_chunk(0, [1.0, 0.0], content_id="video-1")])

        by_framework = await store.search_chunks(
            [1.0, 0.0], threshold=0.0, limit=5, frameworks=["core four"]
        )
        by_type = await store.search_chunks(
            [1.0, 0.0], threshold=0.0, limit=5, content_types=["text"]
        )

        assert [r.content_id for r in by_framework] == ["video-1"]
        assert [r.content_id for r in by_type] == ["item-1"]

    @pytest.mark.asyncio
    async def test_chunks_without_embeddings_are_skipped(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())
        await store.store_chunks("item-1", [_chunk(0, None)])

        assert await store.search_chunks([1.0, 0.0], threshold=0.0, limit=5) == []

    @pytest.mark.asyncio
    async def test_duplicate_chunk_rolls_back_whole_batch(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())

        with pytest.raises(StorageError):
            await store.store_chunks("item-1", [_chunk(0, [1.0, 0.0]), _chunk(0, [1.0, 0.0])])

        assert (await store.get_stats())["total_chunks"] == 0

    @pytest.mark.asyncio
    async def test_delete_chunks(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())
        await store.store_chunks("item-1", [_chunk(0, [1.0]), _chunk(1, [1.0])])

        assert await store.delete_chunks_by_content("item-1") == 2


# ─── Statistics ───────────────────────────────────────────────────────


class TestStats:
    @pytest.mark.asyncio
    async def test_counts(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item("a"))
        await store.create_content_item(_item("b", status=ContentStatus.FAILED))
        await store.store_chunks("a", [_chunk(0, [1.0], content_id="a")])
        await store.store_framework_detections(
            "a", [FrameworkDetection(framework_name="Core Four", confidence=0.6)]
        )

        stats = await store.get_stats()

        assert stats["total_items"] == 2
        assert stats["items_by_status"] == {"completed": 1, "failed": 1}
        assert stats["total_chunks"] == 1
        assert stats["frameworks"] == {"Core Four": 1}

    @pytest.mark.asyncio
    async def test_detections_are_replaced_per_item(self, store: SQLiteContentStore) -> None:
        await store.create_content_item(_item())
        first = [FrameworkDetection(framework_name="Core Four", confidence=0.6)]
        second = [FrameworkDetection(framework_name="Lead Magnets", confidence=0.5)]

        await store.store_framework_detections("item-1", first)
        await store.store_framework_detections("item-1", second)

        assert (await store.get_stats())["frameworks"] == {"Lead Magnets": 1}


class TestIdentity:
    def test_provider_name_is_part_of_the_contract(self, tmp_path: Path) -> None:
        assert "get_provider_name" in IContentStore.__abstractmethods__
        assert SQLiteContentStore(db_path=tmp_path / "oracle.db").get_provider_name() == (
            "sqlite_store"
        )

    def test_store_mock_accepts_provider_name(self, mock_store) -> None:
        assert mock_store.get_provider_name() == "mock_store"
