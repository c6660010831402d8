# tests/test_config.py
import pytest
from pydantic import ValidationError

from authz.config import AuthzSettings, get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    monkeypatch.delenv("AUTHZ_ENV", raising=False)
    settings = AuthzSettings(_env_file=None)

    assert settings.token_ttl_minutes == 60
    assert settings.audit_retention_days == 365
    assert settings.is_production is False


def test_env_prefix_overrides(monkeypatch):
    """AUTHZ_ 접두사 환경 변수가 기본값을 덮어써야 합니다."""
    # === Arrange ===
    monkeypatch.setenv("AUTHZ_ENV", "production")
    monkeypatch.setenv("AUTHZ_AUDIT_RETENTION_DAYS", "30")
    monkeypatch.setenv("AUTHZ_LOG_LEVEL", "debug")

    # === Act ===
    settings = get_settings()

    # === Assert ===
    assert settings.is_production is True
    assert settings.audit_retention_days == 30
    assert settings.log_level == "DEBUG"
    assert get_settings() is settings


def test_invalid_values_are_rejected(monkeypatch):
    monkeypatch.setenv("AUTHZ_TOKEN_TTL_MINUTES", "soon")
    with pytest.raises(ValidationError):
        AuthzSettings(_env_file=None)

    monkeypatch.setenv("AUTHZ_TOKEN_TTL_MINUTES", "5")
    monkeypatch.setenv("AUTHZ_LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        AuthzSettings(_env_file=None)
