"""
Pydantic schemas for trend scraping endpoints.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class TrendScrapeRequest(BaseModel):
    platform: str = Field(..., pattern="^(youtube|tiktok|reddit|twitter)$")
    keywords: List[str] = Field(..., min_length=1, max_length=10)
    limit: int = Field(20, ge=1, le=50)
    min_views: Optional[int] = Field(None, ge=0)
    language: Optional[str] = Field(None, max_length=8)


class TrendResponse(BaseModel):
    id: int
    platform: str
    content_type: str
    title: Optional[str] = None
    description: Optional[str] = None
    url: str
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    likes: int
    views: int
    shares: int
    comments: int
    hashtags: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    scraped_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, trend) -> "TrendResponse":
        return cls(
            id=trend.id,
            platform=trend.platform,
            content_type=trend.content_type,
            title=trend.title,
            description=trend.description,
            url=trend.url,
            thumbnail_url=trend.thumbnail_url,
            author=trend.author,
            likes=trend.likes,
            views=trend.views,
            shares=trend.shares,
            comments=trend.comments,
            hashtags=trend.hashtags or [],
            metadata=trend.extra or {},
            scraped_at=trend.scraped_at,
        )


class TrendScrapeResponse(BaseModel):
    trends: List[TrendResponse]
    scraped_count: int
    platform: str
    keywords: List[str]
    usage_recorded: bool
