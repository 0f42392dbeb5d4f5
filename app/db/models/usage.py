from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class UsageRecord(Base):
    """
    Per-user, per-action, per-period usage counter.

    One row per (user_id, action_kind, period_start). A new period starts a
    new row; rows of past periods are never mutated.
    """
    __tablename__ = "usage_records"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    action_kind = Column(String, nullable=False)  # "scrape", "download", "ai_generation"
    period_start = Column(DateTime, nullable=False)  # naive UTC, first instant of month
    period_end = Column(DateTime, nullable=False)  # naive UTC, last instant of month
    count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="usage_records")

    __table_args__ = (
        UniqueConstraint("user_id", "action_kind", "period_start", name="uq_usage_user_action_period"),
        Index("idx_usage_period_start", "period_start"),
    )
