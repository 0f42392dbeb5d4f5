"""
Database migration runner for Alembic migrations.

Run: python -m app.db.migrate
"""
import logging
import os

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text

from app.core.config import Settings, load_settings
from app.core.logging_config import setup_logging

logger = logging.getLogger(__name__)

ADVISORY_LOCK_ID = 987654321


def run_migrations(settings: Settings) -> None:
    """
    Run Alembic migrations to head revision.
    Uses a PostgreSQL advisory lock so concurrent deploys migrate once.
    """
    logger.info("Running alembic upgrade head")

    alembic_ini_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "alembic.ini")
    alembic_cfg = Config(alembic_ini_path)
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)

    is_postgres = settings.database_url.startswith("postgresql")
    engine = create_engine(settings.database_url, pool_pre_ping=True)
    lock_conn = None

    try:
        if is_postgres:
            # Keep the connection open to hold the lock
            lock_conn = engine.connect()
            lock_conn.execute(text(f"SELECT pg_advisory_lock({ADVISORY_LOCK_ID})"))
            lock_conn.commit()
            logger.info("Migration lock acquired")

        command.upgrade(alembic_cfg, "head")
        logger.info("Migrations complete")
    except Exception:
        logger.exception("Migration failed")
        raise
    finally:
        if lock_conn is not None:
            lock_conn.execute(text(f"SELECT pg_advisory_unlock({ADVISORY_LOCK_ID})"))
            lock_conn.commit()
            lock_conn.close()
        engine.dispose()


if __name__ == "__main__":
    settings = load_settings()
    setup_logging(settings)
    run_migrations(settings)
