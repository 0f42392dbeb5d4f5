"""
Library endpoints: listing and bulk organize actions.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db
from app.db.models.user import User
from app.schemas.library import MediaItemResponse, OrganizeLibraryRequest, OrganizeLibraryResponse
from app.services import library_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/library", tags=["Library"])

ACTION_MESSAGES = {
    "delete": "Successfully deleted {count} media items",
    "archive": "Successfully archived {count} media items",
    "favorite": "Successfully favorited {count} media items",
}


@router.get("", response_model=List[MediaItemResponse])
def list_library(
    archived: Optional[bool] = None,
    favorite: Optional[bool] = None,
    tag: Optional[str] = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    items = library_service.list_library(
        db, user.id, archived=archived, favorite=favorite, tag=tag, limit=limit, offset=offset
    )
    return [MediaItemResponse.from_model(item) for item in items]


@router.post("/organize", response_model=OrganizeLibraryResponse)
def organize_library(
    request: OrganizeLibraryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        result = library_service.organize_library(
            db, user.id, request.media_ids, request.action, request.tags
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    result["message"] = ACTION_MESSAGES[request.action].format(count=result["processed_count"])
    return result
