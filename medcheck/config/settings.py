from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    backend_provider: str = "http"
    api_base_url: str = "http://localhost:5001"
    identify_path: str = "/api/identify"
    verify_path: str = "/api/verify"
    drug_info_path: str = "/api/drug-info"
    request_timeout_seconds: int = 30
