"""WebSocket endpoint for real-time ingestion job updates.

Connects a client to one job via the :class:`JobRegistry` listener
mechanism.  Every new job snapshot is pushed as the JSON form of
:class:`~src.models.pipeline.ProcessingJob`.

# ─── HOW JOB PUSH WORKS ───────────────────────────────────────────────
#
#   Client                               Backend (this file)
#   ──────                               ──────────────────
#   ws = new WebSocket(url)   ──────→   websocket.accept()
#                                        register_listener(callback)
#                             ←──────   current snapshot (or 404 notice)
#                                        ...stages run...
#                             ←──────   snapshot after each transition
#   ws.close()                ──────→   WebSocketDisconnect
#                                        unregister_listener(callback)
#
# The registry drops listeners itself once the job is terminal.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from src.models.pipeline import ProcessingJob
from src.pipeline.orchestrator import IngestionOrchestrator
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_job_progress(websocket: WebSocket, job_id: str) -> None:
    """Stream snapshots of *job_id* to the client until it disconnects."""
    orchestrator: IngestionOrchestrator = websocket.app.state.orchestrator

    await websocket.accept()
    _logger.info("websocket_connected", job_id=job_id)

    async def _on_snapshot(job: ProcessingJob) -> None:
        await websocket.send_json(job.model_dump(mode="json"))

    orchestrator.register_listener(job_id, _on_snapshot)

    try:
        current = orchestrator.get_job(job_id)
        if current is None:
            await websocket.send_json({"job_id": job_id, "error": "Job not found"})
        else:
            await websocket.send_json(current.model_dump(mode="json"))

        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", job_id=job_id)

    finally:
        orchestrator.registry.unregister_listener(job_id, _on_snapshot)
        _logger.debug("websocket_listener_cleaned_up", job_id=job_id)
