"""
Scheduled maintenance endpoints, authenticated with the cron bearer token.
"""
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_db, get_settings
from app.core.config import Settings
from app.core.periods import billing_period_for, months_before
from app.schemas.usage import UsageRetentionResponse
from app.services.quota_ledger import prune_usage_before

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


def require_cron_token(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.cron_secret_token:
        logger.error("CRON_SECRET_TOKEN not configured")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cron authentication not configured")
    expected = f"Bearer {settings.cron_secret_token}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid cron authentication token")


@router.post("/usage-retention", response_model=UsageRetentionResponse, dependencies=[Depends(require_cron_token)])
def usage_retention(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Delete usage records older than the retention window."""
    cutoff = months_before(billing_period_for(), settings.usage_retention_months).start
    deleted = prune_usage_before(db, cutoff)
    return {"deleted_records": deleted, "cutoff": cutoff}
