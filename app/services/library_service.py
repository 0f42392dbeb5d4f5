"""
Media library: download jobs and bulk organize actions.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.core.exceptions import NotFoundError
from app.db.models.media import MediaDownload, MediaTag

logger = logging.getLogger(__name__)

ORGANIZE_ACTIONS = ("delete", "archive", "favorite")
MAX_TAG_LENGTH = 64


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Trim, lowercase and de-duplicate tags, preserving order."""
    seen = []
    for tag in tags or []:
        value = tag.strip().lower()[:MAX_TAG_LENGTH]
        if value and value not in seen:
            seen.append(value)
    return seen


def create_download_job(
    db: Session,
    user_id: int,
    url: str,
    file_type: str = "video",
    quality: str = "highest",
    title: Optional[str] = None,
    platform: Optional[str] = None,
) -> MediaDownload:
    """Queue a media download for the external download worker."""
    download = MediaDownload(
        user_id=user_id,
        original_url=url,
        file_type=file_type,
        quality=quality,
        title=title or "Media Download",
        platform=platform,
        download_status="queued",
    )
    db.add(download)
    db.commit()
    db.refresh(download)
    logger.info(f"Download queued: id={download.id}, user_id={user_id}, file_type={file_type}")
    return download


def list_library(
    db: Session,
    user_id: int,
    archived: Optional[bool] = None,
    favorite: Optional[bool] = None,
    tag: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[MediaDownload]:
    """List a user's media, newest first, with optional filters."""
    query = (
        db.query(MediaDownload)
        .options(selectinload(MediaDownload.tags))
        .filter(MediaDownload.user_id == user_id)
    )
    if archived is not None:
        query = query.filter(MediaDownload.archived == archived)
    if favorite is not None:
        query = query.filter(MediaDownload.favorite == favorite)
    if tag:
        query = query.filter(MediaDownload.tags.any(MediaTag.tag == tag.strip().lower()))
    return (
        query.order_by(MediaDownload.created_at.desc(), MediaDownload.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def _add_tags(item: MediaDownload, tags: List[str]) -> None:
    existing = set(item.tag_names)
    for tag in tags:
        if tag not in existing:
            item.tags.append(MediaTag(tag=tag))
            existing.add(tag)


def organize_library(
    db: Session,
    user_id: int,
    media_ids: List[int],
    action: str,
    tags: Optional[List[str]] = None,
) -> Dict:
    """
    Apply a bulk action to library items owned by a user.

    Args:
        db: Database session
        user_id: Owner of the items
        media_ids: Items to process
        action: delete, archive or favorite
        tags: Tags merged into archived/favorited items

    Returns:
        Summary of the processed items

    Raises:
        NotFoundError: Some ids do not exist or belong to another user
        ValueError: Unsupported action
    """
    if action not in ORGANIZE_ACTIONS:
        raise ValueError(f"Unsupported action: {action}")

    media_ids = list(dict.fromkeys(media_ids))
    items = (
        db.query(MediaDownload)
        .options(selectinload(MediaDownload.tags))
        .filter(MediaDownload.id.in_(media_ids), MediaDownload.user_id == user_id)
        .all()
    )
    found = {item.id for item in items}
    missing = [media_id for media_id in media_ids if media_id not in found]
    if missing:
        raise NotFoundError(
            f"Some media items not found or access denied: {', '.join(str(m) for m in missing)}"
        )

    tags = normalize_tags(tags)
    now = datetime.now(timezone.utc)
    platform_breakdown: Dict[str, int] = {}
    for item in items:
        platform = item.platform or "unknown"
        platform_breakdown[platform] = platform_breakdown.get(platform, 0) + 1

    if action == "delete":
        for item in items:
            db.delete(item)
    elif action == "archive":
        for item in items:
            item.archived = True
            item.archived_at = now
            _add_tags(item, tags)
    elif action == "favorite":
        for item in items:
            item.favorite = True
            item.favorited_at = now
            _add_tags(item, tags)

    db.commit()
    logger.info(f"Library organized: user_id={user_id}, action={action}, count={len(items)}")

    return {
        "action": action,
        "processed_count": len(items),
        "media_ids": media_ids,
        "tags_added": tags if action != "delete" else [],
        "platform_breakdown": platform_breakdown,
    }
