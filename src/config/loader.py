"""YAML configuration loading with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- static defaults checked into the repo
#   2. .env file           -- local developer overrides (not committed)
#   3. Environment vars    -- set at deploy time
#
# Scoring vocabularies live separately in config/scoring_tables.yaml and
# are parsed into the frozen ScoringTables model by load_scoring_tables().
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from src.config.scoring_tables import ScoringTables
from src.config.settings import Settings
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_SCORING_TABLES_PATH = _PROJECT_ROOT / "config" / "scoring_tables.yaml"


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings instance to read overrides from; a fresh one is
            built when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "ingestion": {
            "max_concurrent": settings.ingestion_max_concurrent,
            "max_batch_size": settings.ingestion_max_batch_size,
            "job_retention_seconds": settings.job_retention_seconds,
            "embed_batch_size": settings.embed_batch_size,
        },
        "query": {
            "max_results": settings.query_default_max_results,
            "similarity_threshold": settings.query_default_similarity_threshold,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def load_scoring_tables(path: str | Path = DEFAULT_SCORING_TABLES_PATH) -> ScoringTables:
    """Parse a scoring-tables YAML file into a :class:`ScoringTables`.

    Raises
    ------
    ConfigurationError
        If the file is missing, is not valid YAML, or does not match the
        expected schema.
    """
    tables_path = Path(path)
    if not tables_path.exists():
        raise ConfigurationError(f"Scoring tables not found: {tables_path}")

    try:
        with open(tables_path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed scoring tables {tables_path}: {exc}") from exc

    try:
        tables = ScoringTables.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid scoring tables {tables_path}: {exc}") from exc

    logger.debug(
        "scoring_tables_loaded",
        path=str(tables_path),
        frameworks=len(tables.frameworks),
        intents=len(tables.query.intents),
    )
    return tables


@lru_cache(maxsize=1)
def default_scoring_tables() -> ScoringTables:
    """Return the packaged scoring tables, parsed once per process."""
    return load_scoring_tables(DEFAULT_SCORING_TABLES_PATH)


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
