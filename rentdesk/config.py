"""Configuration management using Pydantic Settings"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Hosted backend (PostgREST + auth)
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""

    # Service
    service_name: str = "rentdesk"
    log_level: str = "INFO"
    auth_required: bool = True

    # HTTP Client
    http_timeout_seconds: float = 5.0
    read_max_retries: int = 3
    read_backoff_base: float = 0.5  # Exponential backoff base in seconds

    # Billing rules
    payments_allow_overpay: bool = False
    owners: List[str] = ["Rahman", "Dival", "Fadel"]
    audit_page_size: int = 50


settings = Settings()
