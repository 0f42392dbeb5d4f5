"""
Tests for settings loading.
"""
import pytest

from app.core.config import load_settings
from app.core.exceptions import ConfigurationError
from app.core.logging_config import sanitize_log_data


def test_load_settings_from_mapping():
    settings = load_settings({
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "secret",
        "USAGE_CACHE_TTL_SECONDS": "30",
        "QUOTA_FAIL_OPEN": "true",
        "STRIPE_PRICE_ID_PRO": "price_pro",
    })

    assert settings.usage_cache_ttl_seconds == 30
    assert settings.quota_fail_open is True
    assert settings.redis_url is None
    assert settings.price_id_to_plan == {"price_pro": "pro"}


def test_missing_required_values_are_all_reported():
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings({})

    message = str(exc_info.value)
    assert "DATABASE_URL" in message
    assert "JWT_SECRET" in message


def test_empty_values_count_as_missing():
    with pytest.raises(ConfigurationError):
        load_settings({"DATABASE_URL": "", "JWT_SECRET": "secret"})


@pytest.mark.parametrize("ttl", ["0", "-5", "2419200"])
def test_cache_ttl_must_be_shorter_than_a_period(ttl):
    with pytest.raises(ConfigurationError) as exc_info:
        load_settings({"DATABASE_URL": "sqlite://", "JWT_SECRET": "s", "USAGE_CACHE_TTL_SECONDS": ttl})

    assert "USAGE_CACHE_TTL_SECONDS" in str(exc_info.value)


def test_sanitize_log_data_redacts_secrets():
    settings = load_settings({"DATABASE_URL": "postgresql://u:p@db/kapture", "JWT_SECRET": "secret"})

    sanitized = sanitize_log_data(settings.model_dump())

    assert sanitized["database_url"] == "***REDACTED***"
    assert sanitized["jwt_secret"] == "***REDACTED***"
    assert sanitized["openai_model"] == "gpt-4o-mini"
