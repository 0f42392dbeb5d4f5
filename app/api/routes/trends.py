"""
Trend endpoints (scrape is metered: scrape, one unit per saved result).
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db, get_trend_scraper, get_usage_cache
from app.core.exceptions import ConfigurationError
from app.core.plan_limits import ActionKind
from app.core.quota_guard import EntitledRequest, require_entitlement
from app.db.models.user import User
from app.schemas.trends import TrendResponse, TrendScrapeRequest, TrendScrapeResponse
from app.schemas.usage import QUOTA_RESPONSES
from app.services import trend_service
from app.services.trend_scraper import TrendScraper
from app.services.usage_cache import UsageCache
from app.services.usage_recorder import try_record_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trends", tags=["Trends"])


@router.post("/scrape", response_model=TrendScrapeResponse, responses=QUOTA_RESPONSES)
def scrape_trends(
    request: TrendScrapeRequest,
    entitled: EntitledRequest = Depends(require_entitlement(ActionKind.SCRAPE)),
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
    scraper: Optional[TrendScraper] = Depends(get_trend_scraper),
):
    """
    Scrape trending content and save it to the user's trends.

    Each saved result counts as one scrape. The requested limit is capped at
    the quota left this period so a single call cannot overshoot the plan.
    """
    if scraper is None:
        raise ConfigurationError("APIFY_API_TOKEN is not configured")

    user = entitled.user
    limit = request.limit
    if entitled.decision is not None:
        limit = min(limit, entitled.decision.remaining)

    scraped = scraper.scrape(request.platform, request.keywords, limit, language=request.language)
    scraped = trend_service.filter_min_views(scraped, request.min_views)[:limit]
    saved = trend_service.save_trends(db, user.id, scraped)

    recorded = None
    if saved:
        recorded = try_record_usage(db, cache, user.id, ActionKind.SCRAPE, delta=len(saved))
    else:
        logger.info(f"Scrape returned no results: user_id={user.id}, platform={request.platform}")

    return {
        "trends": [TrendResponse.from_model(trend) for trend in saved],
        "scraped_count": len(saved),
        "platform": request.platform,
        "keywords": request.keywords,
        "usage_recorded": recorded is not None,
    }


@router.get("", response_model=List[TrendResponse])
def list_trends(
    platform: Optional[str] = Query(None, pattern="^(youtube|tiktok|reddit|twitter)$"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    trends = trend_service.list_trends(db, user.id, platform=platform, limit=limit, offset=offset)
    return [TrendResponse.from_model(trend) for trend in trends]
