"""
Saved trends: persistence of scrape results and listing.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.db.models.trend import Trend
from app.services.trend_scraper import ScrapedTrend

logger = logging.getLogger(__name__)


def filter_min_views(scraped: List[ScrapedTrend], min_views: Optional[int]) -> List[ScrapedTrend]:
    if not min_views:
        return scraped
    return [item for item in scraped if item.views >= min_views]


def save_trends(db: Session, user_id: int, scraped: List[ScrapedTrend]) -> List[Trend]:
    """
    Store one Trend row per scraped item in a single commit.

    Args:
        db: Database session
        user_id: Owner of the scrape
        scraped: Results returned by the scraper

    Returns:
        The saved rows, in scrape order
    """
    trends = [
        Trend(
            user_id=user_id,
            platform=item.platform,
            content_type=item.content_type,
            title=item.title,
            description=item.description,
            url=item.url,
            thumbnail_url=item.thumbnail_url,
            author=item.author,
            likes=item.likes,
            views=item.views,
            shares=item.shares,
            comments=item.comments,
            hashtags=item.hashtags,
            extra=item.metadata,
        )
        for item in scraped
    ]
    if not trends:
        return []

    db.add_all(trends)
    db.commit()
    for trend in trends:
        db.refresh(trend)
    logger.info(f"Trends saved: user_id={user_id}, count={len(trends)}")
    return trends


def list_trends(
    db: Session,
    user_id: int,
    platform: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[Trend]:
    """Newest saved trends for one user, optionally for one platform."""
    query = db.query(Trend).filter(Trend.user_id == user_id)
    if platform:
        query = query.filter(Trend.platform == platform)
    return query.order_by(Trend.scraped_at.desc(), Trend.id.desc()).offset(offset).limit(limit).all()
