"""
Application settings for the Kapture API.

Settings are read from the environment exactly once, by load_settings(), and
the resulting object is handed to create_app(). Nothing else in the
application reads os.environ.
"""
import os
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError

from app.core.exceptions import ConfigurationError

# Calendar months are never shorter than 28 days
MIN_PERIOD_SECONDS = 28 * 24 * 60 * 60


class Settings(BaseModel):
    """Explicit configuration object passed to every component that needs it."""

    app_env: str = Field("development", pattern="^(development|production|test)$")

    # ✅ Logging
    log_level: str = Field("INFO", pattern="(?i)^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_to_file: bool = True
    log_dir: str = "logs"
    log_file_name: str = "kapture.log"
    log_max_bytes: int = Field(10 * 1024 * 1024, gt=0)
    log_backup_count: int = Field(5, ge=0)

    # ✅ Database
    database_url: str = Field(..., min_length=1)

    # ✅ Redis (optional; without it the usage cache is disabled)
    redis_url: Optional[str] = None
    usage_cache_ttl_seconds: int = Field(60, gt=0, lt=MIN_PERIOD_SECONDS)

    # ✅ Quota policy when the ledger cannot be read
    quota_fail_open: bool = False

    # ✅ Identity provider tokens
    jwt_secret: str = Field(..., min_length=1)
    jwt_algorithm: str = "HS256"

    # ✅ Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_price_id_pro: Optional[str] = None
    stripe_price_id_enterprise: Optional[str] = None
    frontend_url: str = "http://localhost:3000"

    # ✅ OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # ✅ Apify (trend scraping)
    apify_api_token: Optional[str] = None
    scrape_timeout_seconds: float = Field(120.0, gt=0)

    # ✅ Maintenance
    cron_secret_token: Optional[str] = None
    usage_retention_months: int = Field(12, ge=1)

    @property
    def price_id_to_plan(self) -> Dict[str, str]:
        """Map configured Stripe price ids to plan tiers."""
        mapping: Dict[str, str] = {}
        if self.stripe_price_id_pro:
            mapping[self.stripe_price_id_pro] = "pro"
        if self.stripe_price_id_enterprise:
            mapping[self.stripe_price_id_enterprise] = "enterprise"
        return mapping


# Environment variable -> Settings field
ENV_VARS: Dict[str, str] = {
    "APP_ENV": "app_env",
    "LOG_LEVEL": "log_level",
    "LOG_TO_FILE": "log_to_file",
    "LOG_DIR": "log_dir",
    "LOG_FILE_NAME": "log_file_name",
    "LOG_MAX_BYTES": "log_max_bytes",
    "LOG_BACKUP_COUNT": "log_backup_count",
    "DATABASE_URL": "database_url",
    "REDIS_URL": "redis_url",
    "USAGE_CACHE_TTL_SECONDS": "usage_cache_ttl_seconds",
    "QUOTA_FAIL_OPEN": "quota_fail_open",
    "JWT_SECRET": "jwt_secret",
    "JWT_ALGORITHM": "jwt_algorithm",
    "STRIPE_SECRET_KEY": "stripe_secret_key",
    "STRIPE_WEBHOOK_SECRET": "stripe_webhook_secret",
    "STRIPE_PRICE_ID_PRO": "stripe_price_id_pro",
    "STRIPE_PRICE_ID_ENTERPRISE": "stripe_price_id_enterprise",
    "FRONTEND_URL": "frontend_url",
    "OPENAI_API_KEY": "openai_api_key",
    "OPENAI_MODEL": "openai_model",
    "APIFY_API_TOKEN": "apify_api_token",
    "SCRAPE_TIMEOUT_SECONDS": "scrape_timeout_seconds",
    "CRON_SECRET_TOKEN": "cron_secret_token",
    "USAGE_RETENTION_MONTHS": "usage_retention_months",
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated Settings object

    Raises:
        ConfigurationError: listing every missing or invalid variable
    """
    if environ is None:
        environ = os.environ

    values = {
        field: environ[name]
        for name, field in ENV_VARS.items()
        if environ.get(name) not in (None, "")
    }

    try:
        return Settings(**values)
    except ValidationError as e:
        field_to_env = {field: name for name, field in ENV_VARS.items()}
        problems: List[str] = []
        for error in e.errors():
            field = str(error["loc"][0]) if error["loc"] else "?"
            problems.append(f"{field_to_env.get(field, field)}: {error['msg']}")
        raise ConfigurationError(
            "Invalid environment configuration: " + "; ".join(problems)
        ) from e
