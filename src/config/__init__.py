"""Configuration module -- exports Settings, loaders, and a module-level singleton."""

from src.config.loader import default_scoring_tables, load_config, load_scoring_tables
from src.config.scoring_tables import ScoringTables
from src.config.settings import Settings

settings = Settings()

__all__ = [
    "ScoringTables",
    "Settings",
    "default_scoring_tables",
    "load_config",
    "load_scoring_tables",
    "settings",
]
