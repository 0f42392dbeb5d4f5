"""
Download request endpoint (metered: download).
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_usage_cache
from app.core.plan_limits import ActionKind
from app.core.quota_guard import EntitledRequest, require_entitlement
from app.schemas.library import DownloadRequest, DownloadResponse, MediaItemResponse
from app.schemas.usage import QUOTA_RESPONSES
from app.services import library_service
from app.services.usage_cache import UsageCache
from app.services.usage_recorder import try_record_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/downloads", tags=["Downloads"])


@router.post(
    "/request", response_model=DownloadResponse, status_code=status.HTTP_201_CREATED, responses=QUOTA_RESPONSES
)
def request_download(
    request: DownloadRequest,
    entitled: EntitledRequest = Depends(require_entitlement(ActionKind.DOWNLOAD)),
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
):
    """
    Queue a media download.

    The download counts against the plan once the job has been accepted.
    """
    user = entitled.user
    download = library_service.create_download_job(
        db,
        user.id,
        request.url,
        file_type=request.file_type,
        quality=request.quality,
        title=request.title,
        platform=request.platform,
    )

    recorded = try_record_usage(db, cache, user.id, ActionKind.DOWNLOAD)
    return {
        "download": MediaItemResponse.from_model(download),
        "usage_recorded": recorded is not None,
    }
