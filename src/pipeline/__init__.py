"""Ingestion pipeline components: job registry and orchestrator."""

from src.pipeline.job_registry import JobRegistry
from src.pipeline.orchestrator import IngestionOrchestrator

__all__ = [
    "IngestionOrchestrator",
    "JobRegistry",
]
