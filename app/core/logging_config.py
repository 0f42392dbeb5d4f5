"""
Logging configuration for Kapture API.

Handlers, file location and rotation come from Settings. Every record passes
through SecretRedactingFilter so bearer tokens and vendor keys that end up in
exception text never reach the console or the log file.
"""
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List

from app.core.config import Settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Vendor SDKs log request details at INFO
NOISY_LOGGERS = ("uvicorn.access", "stripe", "openai", "httpx", "httpcore", "redis")

REDACTED = "***REDACTED***"

_SECRET_PATTERNS = [
    (re.compile(r"(Bearer\s+)\S+"), rf"\g<1>{REDACTED}"),
    (re.compile(r"\b(?:sk|rk|whsec)_[A-Za-z0-9_]{6,}"), REDACTED),
    (re.compile(r"\bapify_api_[A-Za-z0-9]{6,}"), REDACTED),
    (re.compile(r"(://[^:/@\s]+:)[^@\s]+@"), rf"\g<1>{REDACTED}@"),
]

_SENSITIVE_KEYS = ("password", "token", "secret", "key", "database_url", "redis_url")


def redact_secrets(text: str) -> str:
    """Mask bearer tokens, Stripe/Apify keys and URL passwords in free text."""
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrites each record's message with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def _build_handlers(settings: Settings) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    handlers.append(console_handler)

    if settings.log_to_file:
        log_path = Path(settings.log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path / settings.log_file_name,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        handlers.append(file_handler)

    return handlers


def setup_logging(settings: Settings) -> None:
    """
    Configure application logging from Settings.

    Args:
        settings: Uses log_level, log_to_file, log_dir, log_file_name,
            log_max_bytes and log_backup_count
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    redacting = SecretRedactingFilter()
    for handler in _build_handlers(settings):
        handler.setLevel(level)
        handler.addFilter(redacting)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def sanitize_log_data(data: dict) -> dict:
    """
    Sanitize log data to remove sensitive information.

    Args:
        data: Dictionary to sanitize

    Returns:
        Sanitized dictionary without secrets
    """
    sanitized = data.copy()
    for key in sanitized:
        if any(sensitive in key.lower() for sensitive in _SENSITIVE_KEYS):
            sanitized[key] = REDACTED
    return sanitized
