"""Unit tests for the oracle CLI -- argument parsing and command dispatch."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cli import oracle
from src.models.content import ContentType
from src.models.pipeline import JobStatus, ProcessingJob
from src.utils.errors import StorageError


def _components(mock_store, settings, **overrides) -> dict:
    components = {
        "settings": settings,
        "store": mock_store,
        "orchestrator": MagicMock(),
        "answer_service": MagicMock(),
        "http_client": MagicMock(aclose=AsyncMock()),
    }
    components.update(overrides)
    return components


def _run_main(monkeypatch, argv: list[str], components: dict | None = None) -> int:
    monkeypatch.setattr(sys, "argv", ["oracle", *argv])
    if components is not None:
        monkeypatch.setattr(oracle, "_build", lambda app_settings: components)
    with pytest.raises(SystemExit) as exc_info:
        oracle.main()
    return exc_info.value.code


class TestParser:
    def test_ask_defaults(self) -> None:
        args = oracle._build_parser().parse_args(["ask", "How do I scale?"])

        assert args.question == "How do I scale?"
        assert args.length == "medium"
        assert args.threshold is None
        assert not args.json

    def test_batch_defaults_to_url(self) -> None:
        args = oracle._build_parser().parse_args(["batch", "--file", "list.txt"])

        assert args.type == "url"
        assert args.max_concurrent is None

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(SystemExit):
            oracle._build_parser().parse_args(["ingest", "--type", "podcast"])


class TestMain:
    def test_no_command_prints_help(self, monkeypatch) -> None:
        assert _run_main(monkeypatch, []) == 1

    def test_text_requires_content_file(self, monkeypatch) -> None:
        assert _run_main(monkeypatch, ["ingest", "--type", "text"]) == 2

    def test_stats(self, monkeypatch, capsys, mock_store, settings) -> None:
        mock_store.get_stats.return_value = {
            "total_items": 2,
            "items_by_status": {"completed": 2},
            "total_chunks": 7,
            "frameworks": {"Core Four": 1},
        }
        components = _components(mock_store, settings)

        assert _run_main(monkeypatch, ["stats"], components) == 0

        out = capsys.readouterr().out
        assert "Chunks:         7" in out
        assert "Core Four" in out
        components["http_client"].aclose.assert_awaited_once()

    def test_ingest_text_file(self, monkeypatch, tmp_path: Path, mock_store, settings) -> None:
        notes = tmp_path / "notes.txt"
        notes.write_text("Some business notes", encoding="utf-8")
        orchestrator = MagicMock()
        orchestrator.process_content = AsyncMock(
            return_value=ProcessingJob(
                id="text_1_abcdef", content_type=ContentType.TEXT, status=JobStatus.FAILED
            )
        )
        components = _components(mock_store, settings, orchestrator=orchestrator)

        code = _run_main(
            monkeypatch, ["ingest", "--type", "text", "--content-file", str(notes)], components
        )

        assert code == 1
        orchestrator.process_content.assert_awaited_once_with(
            ContentType.TEXT, "", content="Some business notes"
        )

    def test_batch_skips_comments(self, monkeypatch, tmp_path: Path, mock_store, settings) -> None:
        listing = tmp_path / "urls.txt"
        listing.write_text("# reading list\nhttps://a.example\n\nhttps://b.example\n", encoding="utf-8")
        orchestrator = MagicMock()
        orchestrator.process_batch = AsyncMock(return_value=[])
        components = _components(mock_store, settings, orchestrator=orchestrator)

        assert _run_main(monkeypatch, ["batch", "--file", str(listing)], components) == 0

        items = orchestrator.process_batch.await_args.args[0]
        assert [i.source for i in items] == ["https://a.example", "https://b.example"]

    def test_domain_error_exits_1(self, monkeypatch, capsys, mock_store, settings) -> None:
        mock_store.get_stats.side_effect = StorageError("database is locked")
        components = _components(mock_store, settings)

        assert _run_main(monkeypatch, ["stats"], components) == 1
        assert "Error: database is locked" in capsys.readouterr().err
