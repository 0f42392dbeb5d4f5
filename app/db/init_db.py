from sqlalchemy.engine import Engine

from app.db.base import Base
import app.db.models  # noqa: F401  registers every model on Base.metadata


def init_db(engine: Engine) -> None:
    """Create any missing tables (development and tests)."""
    Base.metadata.create_all(bind=engine)
