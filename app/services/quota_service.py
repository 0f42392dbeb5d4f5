"""
Quota service: plan resolution, entitlement checks and usage summaries.

Read-only. Usage is written exclusively by app.services.usage_recorder.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ConfigurationError, StorageUnavailable
from app.core.periods import BillingPeriod, billing_period_for
from app.core.plan_limits import (
    DEFAULT_PLAN,
    ENTITLING_STATUSES,
    PLAN_LIMITS,
    SUPPORTED_ACTIONS,
    get_plan_limit,
    normalize_action_kind,
)
from app.db.models.subscription import Subscription
from app.services import quota_ledger
from app.services.usage_cache import UsageCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntitlementDecision:
    """Outcome of an entitlement check. A denial is a normal result, not an error."""
    allowed: bool
    remaining: int
    current: int
    limit: int
    plan: str
    action_kind: str
    period_key: str

    def to_dict(self) -> Dict:
        return asdict(self)


def get_plan_for_user(db: Session, user_id: int) -> str:
    """
    Get the plan tier whose limits apply to a user.

    Args:
        db: Database session
        user_id: User ID

    Returns:
        Plan tier. 'free' when there is no subscription or it is not in an
        entitling status (active, trialing).

    Raises:
        StorageUnavailable: Subscription could not be read
        ConfigurationError: Subscription names a plan with no configured limits
    """
    try:
        subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Subscription read failed: user_id={user_id}: {e}")
        raise StorageUnavailable("get_plan_for_user") from e

    if not subscription or subscription.status not in ENTITLING_STATUSES:
        return DEFAULT_PLAN

    plan_type = subscription.plan_type or DEFAULT_PLAN
    if plan_type not in PLAN_LIMITS:
        raise ConfigurationError(
            f"Subscription for user_id={user_id} references unknown plan {plan_type!r}"
        )
    return plan_type


def read_current_usage(
    db: Session,
    cache: UsageCache,
    user_id: int,
    action_kind: str,
    period: BillingPeriod,
) -> int:
    """
    Get usage for a period, cache first.

    On a miss (or an unreachable cache) the ledger is read and the cache
    repopulated. Ledger failures propagate as StorageUnavailable.
    """
    cached = cache.get(user_id, action_kind, period.key)
    if cached is not None:
        return cached

    count = quota_ledger.get_usage(db, user_id, action_kind, period)
    cache.set(user_id, action_kind, period.key, count)
    return count


def check_entitlement(
    db: Session,
    cache: UsageCache,
    user_id: int,
    action_kind,
    now: Optional[datetime] = None,
) -> EntitlementDecision:
    """
    Decide whether a user may perform one more unit of an action kind.

    Args:
        db: Database session
        cache: Usage cache front
        user_id: User ID
        action_kind: Action kind (scrape, download, ai_generation)
        now: Moment to frame the billing period (defaults to now)

    Returns:
        EntitlementDecision with allowed = current < limit and
        remaining = max(0, limit - current)

    Raises:
        StorageUnavailable: Ledger or subscription could not be read
        ConfigurationError: Plan limits could not be resolved
    """
    kind = normalize_action_kind(action_kind)
    period = billing_period_for(now)
    plan_type = get_plan_for_user(db, user_id)
    limit = get_plan_limit(plan_type, kind)

    current = read_current_usage(db, cache, user_id, kind, period)
    allowed = current < limit
    remaining = max(0, limit - current)

    decision = EntitlementDecision(
        allowed=allowed,
        remaining=remaining,
        current=current,
        limit=limit,
        plan=plan_type,
        action_kind=kind,
        period_key=period.key,
    )

    if allowed:
        logger.debug(
            f"Entitlement granted: user_id={user_id}, action_kind={kind}, "
            f"used={current}/{limit}, plan={plan_type}, period={period.key}"
        )
    else:
        logger.warning(
            f"Entitlement denied: user_id={user_id}, action_kind={kind}, "
            f"used={current}/{limit}, plan={plan_type}, period={period.key}"
        )
    return decision


def get_usage_summary(
    db: Session,
    cache: UsageCache,
    user_id: int,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Get usage data formatted for GET /me/usage.

    Returns:
        Dictionary with plan, period boundaries and, per action kind,
        current, limit and remaining
    """
    period = billing_period_for(now)
    plan_type = get_plan_for_user(db, user_id)

    counts = {kind: cache.get(user_id, kind, period.key) for kind in SUPPORTED_ACTIONS}
    missing = [kind for kind, count in counts.items() if count is None]
    if missing:
        # One ledger query covers every kind the cache could not answer
        ledger_counts = quota_ledger.get_period_usage(db, user_id, period)
        for kind in missing:
            counts[kind] = ledger_counts.get(kind, 0)
            cache.set(user_id, kind, period.key, counts[kind])

    actions = {}
    for kind in SUPPORTED_ACTIONS:
        limit = get_plan_limit(plan_type, kind)
        current = counts[kind]
        actions[kind] = {
            "current": current,
            "limit": limit,
            "remaining": max(0, limit - current),
        }

    return {
        "plan": plan_type,
        "period_key": period.key,
        "period_start": period.start,
        "period_end": period.end,
        "actions": actions,
    }
