"""
Quota enforcement dependency for metered routes.

require_entitlement() checks the current period's usage against the user's
plan before the route runs. It never records usage: routes call
usage_recorder.try_record_usage() after their action has succeeded.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db, get_settings, get_usage_cache
from app.core.config import Settings
from app.core.exceptions import StorageUnavailable
from app.core.plan_limits import normalize_action_kind
from app.db.models.user import User
from app.schemas.usage import QuotaExceededResponse
from app.services.quota_service import EntitlementDecision, check_entitlement
from app.services.usage_cache import UsageCache

logger = logging.getLogger(__name__)


@dataclass
class EntitledRequest:
    """Current user plus the decision that admitted the request."""
    user: User
    decision: Optional[EntitlementDecision]  # None when admitted by fail-open policy


def quota_exceeded_detail(decision: EntitlementDecision) -> dict:
    return QuotaExceededResponse(
        action_kind=decision.action_kind,
        plan=decision.plan,
        limit=decision.limit,
        used=decision.current,
        remaining=decision.remaining,
        period=decision.period_key,
        message=(
            f"You have reached your monthly limit of {decision.limit} {decision.action_kind} "
            f"requests. Upgrade your plan for more quota."
        ),
    ).model_dump()


def require_entitlement(action_kind):
    """
    Dependency that admits a request only if the user has quota left.

    Args:
        action_kind: Action kind (scrape, download, ai_generation)

    Returns:
        EntitledRequest if allowed

    Raises:
        HTTPException 429: Quota exceeded with structured error detail
        HTTPException 503: Ledger unreachable and the fail-open policy is off
    """
    kind = normalize_action_kind(action_kind)

    def entitlement_checker(
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
        cache: UsageCache = Depends(get_usage_cache),
        settings: Settings = Depends(get_settings),
    ) -> EntitledRequest:
        try:
            decision = check_entitlement(db, cache, user.id, kind)
        except StorageUnavailable:
            if settings.quota_fail_open:
                logger.warning(f"Usage ledger unavailable, failing open: user_id={user.id}, action_kind={kind}")
                return EntitledRequest(user=user, decision=None)
            logger.error(f"Usage ledger unavailable, failing closed: user_id={user.id}, action_kind={kind}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail={"error": "quota_unavailable", "action_kind": kind},
            )

        if not decision.allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=quota_exceeded_detail(decision),
            )
        return EntitledRequest(user=user, decision=decision)

    return entitlement_checker
