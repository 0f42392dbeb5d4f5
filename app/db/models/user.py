from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class User(Base):
    """Identity record synced from the external identity provider."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String, unique=True, index=True, nullable=False)  # identity provider subject
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Owned records are deleted with the user
    subscription = relationship(
        "Subscription", back_populates="user", uselist=False,
        cascade="all, delete-orphan",
    )
    usage_records = relationship(
        "UsageRecord", back_populates="user",
        cascade="all, delete-orphan",
    )
    media_downloads = relationship(
        "MediaDownload", back_populates="user",
        cascade="all, delete-orphan",
    )
    ai_generations = relationship(
        "AIGeneration", back_populates="user",
        cascade="all, delete-orphan",
    )
    trends = relationship(
        "Trend", back_populates="user",
        cascade="all, delete-orphan",
    )
