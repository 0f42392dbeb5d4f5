"""
Pydantic schemas for downloads and library endpoints.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class DownloadRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048, pattern="^https?://")
    file_type: str = Field("video", pattern="^(video|audio|image)$")
    quality: str = Field("highest", max_length=32)
    title: Optional[str] = Field(None, max_length=300)
    platform: Optional[str] = Field(None, max_length=32)


class MediaItemResponse(BaseModel):
    id: int
    original_url: str
    title: Optional[str] = None
    platform: Optional[str] = None
    file_type: str
    quality: str
    download_status: str
    archived: bool
    archived_at: Optional[datetime] = None
    favorite: bool
    favorited_at: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, item) -> "MediaItemResponse":
        return cls(
            id=item.id,
            original_url=item.original_url,
            title=item.title,
            platform=item.platform,
            file_type=item.file_type,
            quality=item.quality,
            download_status=item.download_status,
            archived=item.archived,
            archived_at=item.archived_at,
            favorite=item.favorite,
            favorited_at=item.favorited_at,
            tags=item.tag_names,
            created_at=item.created_at,
        )


class DownloadResponse(BaseModel):
    download: MediaItemResponse
    usage_recorded: bool = Field(..., description="False when the usage increment could not be persisted")


class OrganizeLibraryRequest(BaseModel):
    media_ids: List[int] = Field(..., min_length=1, max_length=50)
    action: str = Field(..., pattern="^(delete|archive|favorite)$")
    tags: Optional[List[str]] = Field(None, max_length=20)


class OrganizeLibraryResponse(BaseModel):
    action: str
    processed_count: int
    media_ids: List[int]
    tags_added: List[str]
    platform_breakdown: Dict[str, int]
    message: str
