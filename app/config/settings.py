from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "taxdoc"
    db_username: str = "taxdoc"
    db_password: str = "secret"

    files_root: Path = Path("/app/files")

    worker_poll_interval_seconds: int = 5
    worker_batch_limit: int = 9

    pipeline_batch_group_size: int = 3
    processing_stale_after_seconds: int = 900

    ocr_general_engine: str = "google_vision"
    ocr_structured_engine: str = "document_ai"
    ocr_timeout_seconds: int = 60

    google_vision_api_key: str = ""
    google_document_ai_project_id: str = ""
    google_document_ai_location: str = "us"
    google_document_ai_processor_id: str = ""
    google_document_ai_access_token: str = ""

    llm_provider: str = "openrouter"
    llm_api_key: str = ""
    llm_model_name: str = "anthropic/claude-3-sonnet"
    llm_base_url: str | None = None
    llm_timeout_seconds: int = 60

    autofill_tax_year: int | None = None
    autofill_merge_max_attempts: int = 3
    autofill_protect_user_fields: bool = True
