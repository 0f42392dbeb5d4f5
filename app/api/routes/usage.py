"""
Usage tracking endpoints.

Provides usage statistics and entitlement decisions for authenticated users.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db, get_usage_cache
from app.core.plan_limits import SUPPORTED_ACTIONS
from app.db.models.user import User
from app.schemas.usage import EntitlementResponse, UsageSummaryResponse
from app.services.quota_service import check_entitlement, get_usage_summary
from app.services.usage_cache import UsageCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["Usage"])


@router.get("/usage", response_model=UsageSummaryResponse, status_code=status.HTTP_200_OK)
def get_usage(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
):
    """
    Get current period usage for the authenticated user.

    Returns:
    - plan: Plan whose limits apply (free, pro, enterprise)
    - period_key: Current month in YYYY-MM format
    - actions: current, limit and remaining per action kind
    """
    usage_data = get_usage_summary(db, cache, user.id)
    logger.debug(f"Usage summary requested: user_id={user.id}, plan={usage_data['plan']}")
    return usage_data


@router.get("/entitlements/{action_kind}", response_model=EntitlementResponse)
def get_entitlement(
    action_kind: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
):
    """Whether the user may perform one more unit of an action kind right now."""
    if action_kind not in SUPPORTED_ACTIONS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown action kind: {action_kind}"
        )
    return check_entitlement(db, cache, user.id, action_kind).to_dict()
