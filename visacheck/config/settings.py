from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8000

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "visacheck"
    db_username: str = "visacheck"
    db_password: str = "secret"
    db_pool_max_size: int = 10
    db_apply_schema: bool = False

    pdf_engine: str = "pdfplumber"

    analysis_provider: str = "openai"
    openai_api_key: str = ""
    openai_model_name: str = "gpt-4o-mini"
    openai_base_url: str = ""
    openai_timeout_seconds: int = 90
    openai_temperature: float = 0.3
    openai_max_tokens: int = 4000

    storage_backend: str = "local"
    files_root: str = "/app/files"
    s3_bucket: str = ""
    s3_endpoint_url: str = ""
    s3_region: str = "auto"
    s3_access_key_id: str = ""
    s3_secret_access_key: str = ""
    signed_url_ttl_seconds: int = 3600

    max_files_per_request: int = 10
    max_file_size_bytes: int = 10 * 1024 * 1024

    api_usage_retention_days: int = 90
    api_usage_purge_interval_seconds: int = 6 * 60 * 60

    stripe_webhook_secret: str = ""
