"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ─────────────────────────────────────────────────
#
# Two sources, in priority order:
#
#   1. **Environment variables** (e.g. OPENAI_API_KEY=sk-abc123)
#   2. **.env file** in the project root (local development)
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults
# apply when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """oracle-rag application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === Embedding / LLM ===
    # Empty string = "not configured".
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embedding_model: str = ""
    openai_text_model: str = ""

    # === Video metadata ===
    youtube_api_key: str = ""

    # === Datastore ===
    store_db_path: str = "data/oracle.db"

    # === Scoring tables ===
    # Empty = the packaged config/scoring_tables.yaml.
    scoring_tables_path: str = ""

    # === Ingestion ===
    ingestion_max_concurrent: int = 3
    ingestion_max_batch_size: int = 50
    job_retention_seconds: int = 3600
    job_registry_max_size: int = 1000
    embed_batch_size: int = 10
    chunk_max_words: int = 1000
    chunk_overlap_words: int = 100

    # === Network ===
    http_timeout_seconds: float = 30.0
    robots_timeout_seconds: float = 5.0
    max_content_length: int = 10 * 1024 * 1024

    # === Query ===
    query_default_max_results: int = 10
    query_default_similarity_threshold: float = 0.7

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def has_openai(self) -> bool:
        """Return ``True`` when an OpenAI-compatible key is configured."""
        return bool(self.openai_api_key)
