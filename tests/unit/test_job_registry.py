"""Unit tests for the JobRegistry -- snapshots, retention and listeners."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models.content import ContentType
from src.models.pipeline import JobStatus, ProcessingJob
from src.pipeline.job_registry import JobRegistry


def _job(job_id: str, status: JobStatus = JobStatus.QUEUED) -> ProcessingJob:
    return ProcessingJob(id=job_id, content_type=ContentType.TEXT, status=status)


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_latest_snapshot_wins(self) -> None:
        registry = JobRegistry()
        await registry.save(_job("j1"))
        await registry.save(_job("j1", JobStatus.PROCESSING))

        assert registry.get("j1").status == JobStatus.PROCESSING
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_unknown_job_is_none(self) -> None:
        assert JobRegistry().get("missing") is None

    @pytest.mark.asyncio
    async def test_active_and_by_status(self) -> None:
        registry = JobRegistry()
        await registry.save(_job("a", JobStatus.PROCESSING))
        await registry.save(_job("b", JobStatus.COMPLETED))
        await registry.save(_job("c", JobStatus.FAILED))

        assert [j.id for j in registry.active()] == ["a"]
        assert [j.id for j in registry.by_status(JobStatus.COMPLETED)] == ["b"]
        assert {j.id for j in registry.all()} == {"a", "b", "c"}


class TestRetention:
    @pytest.mark.asyncio
    async def test_terminal_jobs_evicted_beyond_max_size(self) -> None:
        registry = JobRegistry(retention_seconds=3600, max_size=1)
        await registry.save(_job("old", JobStatus.COMPLETED))
        await registry.save(_job("new", JobStatus.COMPLETED))

        assert registry.get("old") is None
        assert registry.get("new") is not None

    @pytest.mark.asyncio
    async def test_running_jobs_are_never_evicted(self) -> None:
        registry = JobRegistry(retention_seconds=3600, max_size=1)
        await registry.save(_job("running", JobStatus.PROCESSING))
        await registry.save(_job("done-1", JobStatus.COMPLETED))
        await registry.save(_job("done-2", JobStatus.FAILED))

        assert registry.get("running") is not None


class TestListeners:
    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_receive_snapshots(self) -> None:
        registry = JobRegistry()
        sync_cb = MagicMock()
        async_cb = AsyncMock()
        registry.register_listener("j1", sync_cb)
        registry.register_listener("j1", async_cb)

        job = _job("j1", JobStatus.PROCESSING)
        await registry.save(job)

        sync_cb.assert_called_once_with(job)
        async_cb.assert_awaited_once_with(job)

    @pytest.mark.asyncio
    async def test_listener_only_sees_its_job(self) -> None:
        registry = JobRegistry()
        callback = MagicMock()
        registry.register_listener("j1", callback)

        await registry.save(_job("j2"))

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_block_others(self) -> None:
        registry = JobRegistry()
        broken = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        registry.register_listener("j1", broken)
        registry.register_listener("j1", healthy)

        await registry.save(_job("j1"))

        healthy.assert_called_once()

    @pytest.mark.asyncio
    async def test_listeners_dropped_after_terminal_snapshot(self) -> None:
        registry = JobRegistry()
        callback = MagicMock()
        registry.register_listener("j1", callback)

        await registry.save(_job("j1", JobStatus.COMPLETED))
        await registry.save(_job("j1", JobStatus.COMPLETED))

        assert callback.call_count == 1

    @pytest.mark.asyncio
    async def test_unregister(self) -> None:
        registry = JobRegistry()
        callback = MagicMock()
        registry.register_listener("j1", callback)
        registry.unregister_listener("j1", callback)

        await registry.save(_job("j1"))

        callback.assert_not_called()

    def test_unregister_last_listener_forgets_job(self) -> None:
        registry = JobRegistry()
        callback = MagicMock()
        registry.register_listener("ghost", callback)

        registry.unregister_listener("ghost", callback)
        registry.unregister_listener("never-registered", callback)

        assert "ghost" not in registry._listeners
        assert registry._listeners == {}

    def test_unregister_keeps_other_listeners(self) -> None:
        registry = JobRegistry()
        first, second = MagicMock(), MagicMock()
        registry.register_listener("j1", first)
        registry.register_listener("j1", second)

        registry.unregister_listener("j1", first)

        assert registry._listeners == {"j1": [second]}
