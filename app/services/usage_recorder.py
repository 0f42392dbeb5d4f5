"""
Usage recorder: the only caller of quota_ledger.increment().

Call it strictly after the metered action has succeeded. The new total is
written through to the cache so the next entitlement check sees it
immediately.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import LostIncrement, StorageUnavailable
from app.core.periods import billing_period_for
from app.core.plan_limits import normalize_action_kind
from app.services import quota_ledger
from app.services.usage_cache import UsageCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UsageRecorded:
    new_count: int
    action_kind: str
    period_key: str


def record_usage(
    db: Session,
    cache: UsageCache,
    user_id: int,
    action_kind,
    delta: int = 1,
    now: Optional[datetime] = None,
) -> UsageRecorded:
    """
    Persist usage for a completed metered action.

    Args:
        db: Database session
        cache: Usage cache front (written through with the new total)
        user_id: User ID
        action_kind: Action kind (scrape, download, ai_generation)
        delta: Units consumed (default: 1)
        now: Moment to frame the billing period (defaults to now)

    Returns:
        UsageRecorded with the count after the increment

    Raises:
        StorageUnavailable: The ledger write failed. No retry is attempted.
    """
    kind = normalize_action_kind(action_kind)
    period = billing_period_for(now)

    new_count = quota_ledger.increment(db, user_id, kind, period, delta)
    cache.set(user_id, kind, period.key, new_count)

    logger.info(
        f"Usage recorded: user_id={user_id}, action_kind={kind}, delta={delta}, "
        f"count={new_count}, period={period.key}"
    )
    return UsageRecorded(new_count=new_count, action_kind=kind, period_key=period.key)


def try_record_usage(
    db: Session,
    cache: UsageCache,
    user_id: int,
    action_kind,
    delta: int = 1,
    now: Optional[datetime] = None,
) -> Optional[UsageRecorded]:
    """
    Record usage, logging a lost increment instead of failing.

    Used by route handlers whose user-visible action already succeeded:
    under-counting is accepted, double-charging is not.

    Returns:
        UsageRecorded, or None when the increment was lost
    """
    try:
        return record_usage(db, cache, user_id, action_kind, delta, now)
    except StorageUnavailable as e:
        lost = LostIncrement(
            user_id=user_id,
            action_kind=normalize_action_kind(action_kind),
            delta=delta,
            period_key=billing_period_for(now).key,
        )
        logger.error(f"{lost} ({e})")
        return None
