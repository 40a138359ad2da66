"""In-memory job registry with listener notification.

Owns every :class:`~src.models.pipeline.ProcessingJob` snapshot the
orchestrator produces and broadcasts each new snapshot to listeners
registered for that job.

# ─── HOW THE REGISTRY WORKS ───────────────────────────────────────────
#
#   Orchestrator ──save(job)──→ JobRegistry ──callback(job)──→ API / CLI listener
#
#   - Non-terminal jobs (queued / processing) live in a plain dict and are
#     never evicted, so a running job is always queryable.
#   - Terminal jobs (completed / failed) move into a cachetools.TTLCache:
#     they stay readable for ``retention_seconds`` and at most ``max_size``
#     of them are kept.
#   - Listener errors are caught and logged so one broken listener cannot
#     stall a job or other listeners.  Sync and async callbacks are both
#     supported.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import structlog
from cachetools import TTLCache

from src.models.pipeline import JobStatus, ProcessingJob
from src.utils.logging import get_logger

JobListener = Callable[[ProcessingJob], object]


class JobRegistry:
    """Stores job snapshots by id.

    Parameters
    ----------
    retention_seconds:
        How long a terminal job stays queryable.
    max_size:
        Maximum number of terminal jobs retained.
    """

    def __init__(self, retention_seconds: int = 3600, max_size: int = 1000) -> None:
        self._active: dict[str, ProcessingJob] = {}
        self._finished: TTLCache[str, ProcessingJob] = TTLCache(
            maxsize=max_size, ttl=retention_seconds
        )
        self._listeners: dict[str, list[JobListener]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def save(self, job: ProcessingJob) -> None:
        """Store *job* as the latest snapshot and notify its listeners."""
        if job.is_terminal:
            self._active.pop(job.id, None)
            self._finished[job.id] = job
        else:
            self._active[job.id] = job

        self._logger.debug(
            "job_snapshot_saved",
            job_id=job.id,
            status=job.status.value,
            progress=job.progress,
        )
        await self._notify_listeners(job)

        if job.is_terminal:
            self._listeners.pop(job.id, None)

    def get(self, job_id: str) -> ProcessingJob | None:
        """Return the latest snapshot, or ``None`` if unknown or evicted."""
        job = self._active.get(job_id)
        if job is not None:
            return job
        return self._finished.get(job_id)

    def active(self) -> list[ProcessingJob]:
        """Jobs that are queued or processing, oldest first."""
        return sorted(self._active.values(), key=lambda j: j.created_at)

    def by_status(self, status: JobStatus) -> list[ProcessingJob]:
        return [job for job in self.all() if job.status == status]

    def all(self) -> list[ProcessingJob]:
        jobs = list(self._active.values()) + list(self._finished.values())
        return sorted(jobs, key=lambda j: j.created_at)

    def register_listener(self, job_id: str, callback: JobListener) -> None:
        """Register *callback* to receive every new snapshot of *job_id*.

        Listeners are dropped once the job reaches a terminal state.
        """
        listeners = self._listeners.setdefault(job_id, [])
        if callback not in listeners:
            listeners.append(callback)

    def unregister_listener(self, job_id: str, callback: JobListener) -> None:
        listeners = self._listeners.get(job_id)
        if listeners is None:
            return
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            del self._listeners[job_id]

    def __len__(self) -> int:
        return len(self._active) + len(self._finished)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(self, job: ProcessingJob) -> None:
        for callback in list(self._listeners.get(job.id, [])):
            try:
                result = callback(job)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    job_id=job.id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
