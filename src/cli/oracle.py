# =============================================================================
# src/cli/oracle.py -- CLI for the oracle-rag knowledge base
# =============================================================================
#
# Standalone CLI for operators: push content through the ingestion
# pipeline, ask business questions against the knowledge base, and show
# store statistics, without starting the HTTP server.
#
# Supported subcommands:
#
#   ingest    -- Ingest one file, URL, video or text file
#   batch     -- Ingest every line of a list file (one path/URL per line)
#   ask       -- Ask a business question and print the assembled answer
#   stats     -- Display knowledge-base statistics
#
# Every command builds the same object graph as the API server via
# ``src.main.build_components`` so chunk sizes, scoring tables and
# providers are identical on both surfaces.
#
# Usage examples:
#   python -m src.cli.oracle ingest --type file --source docs/offers.md
#   python -m src.cli.oracle ingest --type text --content-file notes.txt
#   python -m src.cli.oracle batch --file urls.txt --type url --max-concurrent 2
#   python -m src.cli.oracle ask "How do I reduce churn in my SaaS?" --json
#   python -m src.cli.oracle stats
# =============================================================================

"""Standalone CLI for ingesting content and querying the oracle-rag store.

Usage::

    python -m src.cli.oracle ingest --type url --source https://example.com/post

    python -m src.cli.oracle ask "How should I price my first offer?"

    python -m src.cli.oracle stats
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.assembly import QueryAnswer
from src.models.content import ContentType
from src.models.pipeline import BatchItem, JobStatus, ProcessingJob
from src.models.query import QueryOptions
from src.utils.errors import OracleError


def _build(app_settings: Settings) -> dict[str, Any]:
    """Construct the shared component graph.

    Deferred import: ``src.main`` configures logging and builds the FastAPI
    app at import time, which ``--help`` does not need.
    """
    from src.main import build_components

    return build_components(app_settings)


def _print_job(job: ProcessingJob) -> None:
    print(f"  Job:      {job.id}")
    print(f"  Status:   {job.status.value} ({job.progress}%)")
    if job.content_id:
        print(f"  Content:  {job.content_id}")
    print(f"  Chunks:   {job.chunk_count}")
    if job.error:
        print(f"  Error:    {job.error}")


def _print_answer(answer: QueryAnswer) -> None:
    response = answer.response
    ctx = answer.query_context

    print(f"Intent: {ctx.intent.value} | Industry: {ctx.industry} | Stage: {ctx.business_stage}")
    print(
        f"Quality: {response.quality.overall_quality:.2f} | "
        f"Confidence: {response.confidence.overall_confidence:.2f}"
    )
    print()
    print(response.executive_summary)

    if answer.rendered_answer:
        print()
        print(answer.rendered_answer)

    if response.actionable_insights:
        print("\nActions:")
        for insight in response.actionable_insights:
            print(f"  [{insight.priority.value:<8}] {insight.insight_text} ({insight.timeframe})")

    if response.limitations:
        print("\nLimitations:")
        for limitation in response.limitations:
            print(f"  - {limitation}")

    if response.metadata.warnings:
        print("\nWarnings:")
        for warning in response.metadata.warnings:
            print(f"  ! {warning}")


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest a single item."""
    content = None
    if args.content_file:
        content = Path(args.content_file).read_text(encoding="utf-8")

    print(f"Ingesting {args.type}: {args.source or args.content_file}")
    await components["store"].initialize()
    job = await components["orchestrator"].process_content(
        ContentType(args.type), args.source, content=content
    )

    print("\nIngestion finished:")
    _print_job(job)
    return 0 if job.status == JobStatus.COMPLETED else 1


async def _handle_batch(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ingest every non-blank, non-comment line of a list file."""
    lines = Path(args.file).read_text(encoding="utf-8").splitlines()
    sources = [line.strip() for line in lines if line.strip() and not line.startswith("#")]
    items = [BatchItem(type=ContentType(args.type), source=s) for s in sources]

    print(f"Ingesting {len(items)} items from {args.file} (type: {args.type})")
    await components["store"].initialize()
    jobs = await components["orchestrator"].process_batch(
        items, max_concurrent=args.max_concurrent
    )

    failed = 0
    for job in jobs:
        print()
        print(f"{job.source}")
        _print_job(job)
        if job.status == JobStatus.FAILED:
            failed += 1

    print("\nBatch ingestion complete:")
    print(f"  Succeeded: {len(jobs) - failed}")
    print(f"  Failed:    {failed}")
    return 0 if failed == 0 else 1


async def _handle_ask(args: argparse.Namespace, components: dict[str, Any]) -> int:
    """Ask a business question."""
    app_settings: Settings = components["settings"]
    options = QueryOptions(
        max_results=args.max_results or app_settings.query_default_max_results,
        similarity_threshold=(
            args.threshold
            if args.threshold is not None
            else app_settings.query_default_similarity_threshold
        ),
        response_length=args.length,
        render_prose=args.prose,
    )

    await components["store"].initialize()
    answer = await components["answer_service"].answer(args.question, options=options)

    if args.json:
        print(answer.model_dump_json(indent=2))
    else:
        _print_answer(answer)
    return 0


async def _handle_stats(components: dict[str, Any]) -> int:
    """Display knowledge-base statistics."""
    store = components["store"]
    await store.initialize()
    stats = await store.get_stats()

    print("Knowledge Base Statistics")
    print("=" * 40)
    print(f"  Content items:  {stats['total_items']}")
    print(f"  Chunks:         {stats['total_chunks']}")

    if stats["items_by_status"]:
        print("\n  Items by status:")
        for status, count in sorted(stats["items_by_status"].items()):
            print(f"    {status:<15} {count}")

    if stats["frameworks"]:
        print("\n  Framework detections:")
        for name, count in stats["frameworks"].items():
            print(f"    {name:<30} {count}")

    return 0


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    components = _build(app_settings)
    try:
        if args.command == "ingest":
            return await _handle_ingest(args, components)
        if args.command == "batch":
            return await _handle_batch(args, components)
        if args.command == "ask":
            return await _handle_ask(args, components)
        return await _handle_stats(components)
    finally:
        await components["http_client"].aclose()


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the oracle CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.oracle",
        description="Ingest business content and query the oracle-rag knowledge base.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")
    type_choices = [t.value for t in ContentType]

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest one item")
    ingest_parser.add_argument("--type", required=True, choices=type_choices)
    ingest_parser.add_argument(
        "--source", default="", help="File path, page URL or video URL"
    )
    ingest_parser.add_argument(
        "--content-file",
        dest="content_file",
        help="Read literal text for --type text from this file",
    )

    # -- batch --
    batch_parser = subparsers.add_parser("batch", help="Ingest a list of sources")
    batch_parser.add_argument(
        "--file", required=True, help="Text file with one path or URL per line"
    )
    batch_parser.add_argument("--type", default="url", choices=type_choices)
    batch_parser.add_argument(
        "--max-concurrent",
        dest="max_concurrent",
        type=int,
        default=None,
        help="Items processed per window (default: INGESTION_MAX_CONCURRENT)",
    )

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Ask a business question")
    ask_parser.add_argument("question", help="The question, in quotes")
    ask_parser.add_argument("--max-results", dest="max_results", type=int, default=None)
    ask_parser.add_argument("--threshold", type=float, default=None)
    ask_parser.add_argument(
        "--length",
        default="medium",
        choices=["short", "medium", "long", "comprehensive"],
    )
    ask_parser.add_argument(
        "--prose", action="store_true", help="Also render a prose answer with the LLM"
    )
    ask_parser.add_argument(
        "--json", action="store_true", help="Print the full answer as JSON"
    )

    # -- stats --
    subparsers.add_parser("stats", help="Show knowledge-base statistics")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point.

    Parses the subcommand, loads Settings from the environment / ``.env``,
    and dispatches.  Domain errors are printed to stderr with exit code 1.
    """
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "ingest" and args.type == ContentType.TEXT.value and not args.content_file:
        parser.error("--type text requires --content-file")

    app_settings = Settings()

    try:
        exit_code = asyncio.run(_run(args, app_settings))
    except OracleError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
