# eloqua_toolbox/config.py - Pydantic settings (env vars)

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Public form endpoint: https://s{site_id}.{eloqua_form_host}/e/f2
    eloqua_form_host: str = "t.eloqua.com"
    form_submit_user_agent: str = "EloquaAdminToolbox-BulkSubmit/1.0"

    # Bulk form submit defaults (operator can override per job)
    bulk_submit_default_timeout_seconds: int = 10
    bulk_submit_default_batch_delay_ms: int = 100
    bulk_submit_default_stagger_ms: int = 0
    bulk_submit_default_max_concurrent: int = 5

    # CSV ingestion
    csv_max_bytes: int = 10 * 1024 * 1024

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("eloqua_form_host")
    @classmethod
    def _validate_form_host(cls, value: str) -> str:
        cleaned = value.strip().strip(".").lower()
        if not cleaned:
            raise ValueError("ELOQUA_FORM_HOST must be set and non-empty")
        return cleaned

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
