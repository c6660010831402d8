"""
authz/config.py

AUTHZ_ 접두사가 붙은 환경 변수(또는 .env 파일)에서 설정값을 읽습니다.

Usage:
    from authz.config import get_settings

    settings = get_settings()
    print(settings.database_url)
"""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthzSettings(BaseSettings):
    """
    권한 관리 코어의 설정.

    예: AUTHZ_DATABASE_URL=postgresql://... , AUTHZ_AUDIT_RETENTION_DAYS=90
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(default="sqlite:///tracker_authz.db", description="SQLAlchemy URL")

    # Runtime
    env: Literal["development", "production", "testing"] = Field(default="development")
    log_level: str = Field(default="INFO", description="Root log level")
    port: int = Field(default=8000, ge=1, le=65535)

    # Auth
    token_ttl_minutes: int = Field(default=60, ge=1)

    # Audit
    audit_retention_days: int = Field(default=365, ge=0)
    audit_workers: int = Field(default=1, ge=1)

    # Rate limiting (process-local)
    user_rate_limit_max_requests: int = Field(default=100, ge=1)
    user_rate_limit_window_seconds: int = Field(default=900, ge=1)

    # Bootstrap superuser created by initialize_db()
    bootstrap_admin_username: str = Field(default="admin")
    bootstrap_admin_password: str = Field(default="admin")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
            raise ValueError(f"Invalid log level '{value}'")
        return level

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache()
def get_settings() -> AuthzSettings:
    """캐시된 설정 인스턴스를 반환합니다. 테스트에서는 get_settings.cache_clear()로 초기화합니다."""
    return AuthzSettings()
