from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class MediaDownload(Base):
    """A media download job and the resulting library item."""
    __tablename__ = "media_downloads"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    original_url = Column(String, nullable=False)
    title = Column(String, nullable=True)
    platform = Column(String, nullable=True)
    file_type = Column(String, default="video", nullable=False)  # video | audio | image
    quality = Column(String, default="highest", nullable=False)
    download_status = Column(String, default="queued", nullable=False)  # queued | processing | completed | failed
    storage_key = Column(String, nullable=True)

    archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    favorite = Column(Boolean, default=False, nullable=False)
    favorited_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="media_downloads")
    tags = relationship(
        "MediaTag", back_populates="media_download",
        cascade="all, delete-orphan", order_by="MediaTag.tag",
    )

    @property
    def tag_names(self):
        return [t.tag for t in self.tags]


class MediaTag(Base):
    """Tag attached to a library item."""
    __tablename__ = "media_tags"

    id = Column(Integer, primary_key=True, index=True)
    media_download_id = Column(
        Integer, ForeignKey("media_downloads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tag = Column(String(64), nullable=False, index=True)

    media_download = relationship("MediaDownload", back_populates="tags")

    __table_args__ = (
        UniqueConstraint("media_download_id", "tag", name="uq_media_tag"),
    )
