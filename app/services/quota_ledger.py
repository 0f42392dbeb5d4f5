"""
Quota ledger: durable per-user, per-action, per-period usage counts.

The ledger is the source of truth. It never touches the cache; storage
faults surface as StorageUnavailable.
"""
import logging
from datetime import datetime
from typing import Dict

from sqlalchemy import and_, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import StorageUnavailable
from app.core.periods import BillingPeriod
from app.core.plan_limits import normalize_action_kind
from app.db.models.usage import UsageRecord

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def get_usage(db: Session, user_id: int, action_kind, period: BillingPeriod) -> int:
    """
    Get usage count for one action kind in a period.

    Returns:
        Stored count, or 0 when no record exists for the period
    """
    kind = normalize_action_kind(action_kind)
    try:
        count = db.execute(
            select(UsageRecord.count).where(
                and_(
                    UsageRecord.user_id == user_id,
                    UsageRecord.action_kind == kind,
                    UsageRecord.period_start == period.start,
                )
            )
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error(f"Usage read failed: user_id={user_id}, action_kind={kind}, period={period.key}: {e}")
        raise StorageUnavailable("get_usage") from e
    return int(count or 0)


def get_period_usage(db: Session, user_id: int, period: BillingPeriod) -> Dict[str, int]:
    """
    Get per-action usage totals for a user in a period.

    Returns:
        Dictionary mapping action kinds to counts (kinds with no record are absent)
    """
    try:
        rows = db.execute(
            select(UsageRecord.action_kind, UsageRecord.count).where(
                and_(
                    UsageRecord.user_id == user_id,
                    UsageRecord.period_start == period.start,
                )
            )
        ).all()
    except SQLAlchemyError as e:
        logger.error(f"Usage summary read failed: user_id={user_id}, period={period.key}: {e}")
        raise StorageUnavailable("get_period_usage") from e
    return {kind: int(count) for kind, count in rows}


def increment(db: Session, user_id: int, action_kind, period: BillingPeriod, delta: int = 1) -> int:
    """
    Add delta to a usage record, creating it when absent.

    Runs as a single INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement
    so concurrent increments of the same key are never lost.

    Args:
        db: Database session (committed by this call)
        user_id: User ID
        action_kind: Action kind
        period: Billing period the usage belongs to
        delta: Positive amount to add

    Returns:
        Count after the increment
    """
    kind = normalize_action_kind(action_kind)
    if delta < 1:
        raise ValueError(f"Usage delta must be positive, got {delta}")

    try:
        dialect = db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise StorageUnavailable("increment", f"No atomic upsert available for dialect {dialect!r}")

        stmt = insert(UsageRecord).values(
            user_id=user_id,
            action_kind=kind,
            period_start=period.start,
            period_end=period.end,
            count=delta,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[UsageRecord.user_id, UsageRecord.action_kind, UsageRecord.period_start],
            set_={
                "count": UsageRecord.count + stmt.excluded["count"],
                "updated_at": func.now(),
            },
        ).returning(UsageRecord.count)

        new_count = db.execute(stmt).scalar_one()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage increment failed: user_id={user_id}, action_kind={kind}, period={period.key}: {e}")
        raise StorageUnavailable("increment") from e

    logger.debug(f"Usage incremented: user_id={user_id}, action_kind={kind}, period={period.key}, count={new_count}")
    return int(new_count)


def prune_usage_before(db: Session, cutoff: datetime) -> int:
    """
    Delete usage records of periods starting before cutoff.

    Returns:
        Number of deleted records
    """
    try:
        result = db.execute(delete(UsageRecord).where(UsageRecord.period_start < cutoff))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage retention failed: cutoff={cutoff.isoformat()}: {e}")
        raise StorageUnavailable("prune_usage_before") from e

    deleted = result.rowcount or 0
    logger.info(f"Pruned {deleted} usage records older than {cutoff.isoformat()}")
    return deleted
