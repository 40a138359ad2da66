"""Unit tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from src.config.loader import load_config, load_scoring_tables
from src.config.settings import Settings
from src.utils.errors import ConfigurationError


class TestScoringTables:
    def test_packaged_tables_load(self) -> None:
        tables = load_scoring_tables()

        assert list(tables.query.intents)[0] == "learning"
        assert tables.assembly.min_sources == 3
        assert "Grand Slam Offer" in [f.name for f in tables.frameworks]

    def test_intent_weights_sum_to_one(self) -> None:
        tables = load_scoring_tables()

        for intent, weights in tables.ranking.intent_weights.items():
            assert sum(weights.values()) == pytest.approx(1.0), intent

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_scoring_tables(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "tables.yaml"
        path.write_text("query: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Malformed"):
            load_scoring_tables(path)

    def test_schema_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "tables.yaml"
        path.write_text("ranking:\n  default_authority: not-a-number\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid"):
            load_scoring_tables(path)


class TestLoadConfig:
    def test_settings_override_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "app:\n  name: oracle\n  port: 1234\ningestion:\n  max_concurrent: 9\n",
            encoding="utf-8",
        )
        settings = Settings(_env_file=None, app_port=9000, ingestion_max_concurrent=2)

        config = load_config(str(path), settings=settings)

        assert config["app"]["name"] == "oracle"
        assert config["app"]["port"] == 9000
        assert config["ingestion"]["max_concurrent"] == 2

    def test_missing_yaml_uses_settings_only(self, tmp_path: Path) -> None:
        settings = Settings(_env_file=None)

        config = load_config(str(tmp_path / "absent.yaml"), settings=settings)

        assert config["query"]["similarity_threshold"] == pytest.approx(0.7)
        assert config["logging"]["level"] == "INFO"
