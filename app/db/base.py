from sqlalchemy.orm import declarative_base

Base = declarative_base()

# All models import Base from this module; app.db.models registers them on
# Base.metadata for create_all() and migrations.
