"""
Trend scraping through Apify actors.

Routes depend on the TrendScraper interface only; ApifyTrendScraper is the
production implementation and tests substitute their own.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import Settings
from app.core.exceptions import ProviderError

logger = logging.getLogger(__name__)

PLATFORMS = ("youtube", "tiktok", "reddit", "twitter")

APIFY_BASE_URL = "https://api.apify.com/v2"

HASHTAG_RE = re.compile(r"#\w+")


@dataclass
class ScrapedTrend:
    """One piece of trending content returned by a scraper."""
    platform: str
    content_type: str
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    author: Optional[str] = None
    likes: int = 0
    views: int = 0
    shares: int = 0
    comments: int = 0
    hashtags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class TrendScraper:
    """Interface for trend scrapers."""

    def scrape(
        self,
        platform: str,
        keywords: List[str],
        limit: int,
        language: Optional[str] = None,
    ) -> List[ScrapedTrend]:
        raise NotImplementedError


def extract_hashtags(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [tag.lower() for tag in HASHTAG_RE.findall(text)]


def _int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


# ============================================
# ✅ ACTOR RESULT MAPPERS
# ============================================

def _map_youtube(item: Dict) -> ScrapedTrend:
    channel = item.get("channel") or {}
    text = f"{item.get('title') or ''} {item.get('description') or ''}"
    return ScrapedTrend(
        platform="youtube",
        content_type="video",
        title=item.get("title"),
        description=item.get("description"),
        url=item.get("url") or f"https://www.youtube.com/watch?v={item.get('videoId')}",
        thumbnail_url=(item.get("thumbnail") or {}).get("url") or item.get("thumbnailUrl"),
        author=channel.get("name") or item.get("channelName"),
        likes=_int(item.get("likes")),
        views=_int(item.get("views")),
        comments=_int(item.get("comments")),
        hashtags=extract_hashtags(text),
        metadata={
            "duration": item.get("duration"),
            "published_at": item.get("publishedAt"),
            "channel_id": channel.get("id") or item.get("channelId"),
        },
    )


def _map_tiktok(item: Dict) -> ScrapedTrend:
    author = item.get("author") or {}
    return ScrapedTrend(
        platform="tiktok",
        content_type="video",
        title=item.get("title") or item.get("description"),
        description=item.get("description"),
        url=item.get("url") or item.get("videoUrl"),
        thumbnail_url=item.get("thumbnail") or item.get("cover"),
        author=author.get("name") or item.get("authorName"),
        likes=_int(item.get("likes")),
        views=_int(item.get("views")),
        shares=_int(item.get("shares")),
        comments=_int(item.get("comments")),
        hashtags=item.get("hashtags") or extract_hashtags(item.get("description")),
        metadata={
            "duration": item.get("duration"),
            "published_at": item.get("publishedAt") or item.get("createTime"),
            "author_id": author.get("id") or item.get("authorId"),
        },
    )


def _map_reddit(item: Dict) -> ScrapedTrend:
    text = item.get("text") or item.get("selftext")
    thumbnail = item.get("thumbnail")
    return ScrapedTrend(
        platform="reddit",
        content_type="post",
        title=item.get("title"),
        description=text,
        url=item.get("url") or f"https://reddit.com{item.get('permalink')}",
        thumbnail_url=thumbnail if thumbnail != "self" else None,
        author=item.get("author"),
        likes=_int(item.get("ups")),
        comments=_int(item.get("num_comments")),
        hashtags=extract_hashtags(f"{item.get('title') or ''} {text or ''}"),
        metadata={
            "subreddit": item.get("subreddit"),
            "score": item.get("score"),
            "upvote_ratio": item.get("upvote_ratio"),
        },
    )


def _map_twitter(item: Dict) -> ScrapedTrend:
    user = item.get("user") or {}
    media = item.get("media") or [{}]
    return ScrapedTrend(
        platform="twitter",
        content_type="post",
        title=item.get("text"),
        description=item.get("text"),
        url=item.get("url") or f"https://twitter.com/{user.get('screen_name')}/status/{item.get('id')}",
        thumbnail_url=(media[0] or {}).get("media_url_https"),
        author=user.get("name") or user.get("screen_name"),
        likes=_int(item.get("favorite_count")),
        shares=_int(item.get("retweet_count")),
        comments=_int(item.get("reply_count")),
        hashtags=item.get("hashtags") or extract_hashtags(item.get("text")),
        metadata={
            "screen_name": user.get("screen_name"),
            "lang": item.get("lang"),
        },
    )


# platform -> (actor id, input builder, item mapper)
ACTORS: Dict[str, tuple] = {
    "youtube": (
        "dtrungtin~youtube-scraper",
        lambda keywords, limit, language: {
            "searchTerms": keywords, "maxResults": limit, "language": language or "en", "country": "US",
        },
        _map_youtube,
    ),
    "tiktok": (
        "clockworks~tiktok-scraper",
        lambda keywords, limit, language: {
            "searchTerms": keywords, "maxResults": limit, "language": language or "en", "country": "US",
        },
        _map_tiktok,
    ),
    "reddit": (
        "trudax~reddit-scraper",
        lambda keywords, limit, language: {
            "subreddits": ["all"], "searchTerms": keywords, "maxResults": limit, "timeframe": "week",
        },
        _map_reddit,
    ),
    "twitter": (
        "quacker~twitter-scraper",
        lambda keywords, limit, language: {
            "searchTerms": keywords, "maxResults": limit, "language": language or "en", "resultType": "recent",
        },
        _map_twitter,
    ),
}


class ApifyTrendScraper(TrendScraper):
    """Runs an Apify actor synchronously and maps its dataset items."""

    def __init__(self, api_token: str, timeout: float = 120.0, transport: Optional[httpx.BaseTransport] = None):
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    def _run_actor(self, actor_id: str, actor_input: Dict, limit: int) -> List[Dict]:
        url = f"{APIFY_BASE_URL}/acts/{actor_id}/run-sync-get-dataset-items"
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    url,
                    params={"limit": limit},
                    headers={"Authorization": f"Bearer {self.api_token}"},
                    json=actor_input,
                )
                response.raise_for_status()
                items = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error from Apify: {e.response.status_code} for actor {actor_id}")
            raise ProviderError(f"Trend scraper returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"Apify request failed for actor {actor_id}: {e}")
            raise ProviderError("Trend scraper is unreachable") from e

        if not isinstance(items, list):
            raise ProviderError("Trend scraper returned an unexpected payload")
        return items

    def scrape(
        self,
        platform: str,
        keywords: List[str],
        limit: int,
        language: Optional[str] = None,
    ) -> List[ScrapedTrend]:
        """
        Scrape trending content for keywords on one platform.

        Raises:
            ValueError: Unsupported platform
            ProviderError: Apify call failed or timed out
        """
        if platform not in ACTORS:
            raise ValueError(f"Unsupported platform: {platform}")
        actor_id, build_input, mapper = ACTORS[platform]

        items = self._run_actor(actor_id, build_input(keywords, limit, language), limit)
        trends = [mapper(item) for item in items[:limit]]
        logger.info(f"Scraped {len(trends)} {platform} trends for keywords={keywords}")
        return trends


def build_trend_scraper(settings: Settings) -> Optional[TrendScraper]:
    """Create the Apify scraper, or None when no token is configured."""
    if not settings.apify_api_token:
        logger.warning("APIFY_API_TOKEN not set; trend scraping is disabled")
        return None
    return ApifyTrendScraper(settings.apify_api_token, timeout=settings.scrape_timeout_seconds)
