"""
Script to put a user on a plan without going through Stripe (support / comps).
Run: python -m scripts.set_user_plan user@example.com pro
"""
import logging
import sys

from app.core.config import load_settings
from app.core.exceptions import ConfigurationError
from app.core.logging_config import setup_logging
from app.core.plan_limits import PLAN_LIMITS
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.db.session import build_engine, build_session_factory
from app.services.usage_cache import UsageCache, build_redis_client

logger = logging.getLogger(__name__)


def set_user_plan(db, cache: UsageCache, email: str, plan_type: str) -> bool:
    """Create or update the user's subscription row to an active plan."""
    if plan_type not in PLAN_LIMITS:
        raise ConfigurationError(f"Unknown plan_type '{plan_type}'. Expected one of {sorted(PLAN_LIMITS)}")

    user = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        logger.error(f"User {email} not found. The user must sign in once before a plan can be set.")
        return False

    subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()
    if subscription:
        logger.info(f"Updating subscription for user {user.id}: {subscription.plan_type} -> {plan_type}")
        subscription.plan_type = plan_type
        subscription.status = "active"
    else:
        logger.info(f"Creating subscription for user {user.id} with {plan_type} plan")
        db.add(Subscription(user_id=user.id, plan_type=plan_type, status="active"))

    db.commit()
    cache.invalidate_user(user.id)
    return True


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("Usage: python -m scripts.set_user_plan <email> <plan_type>")
        sys.exit(2)

    settings = load_settings()
    setup_logging(settings)

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)
    cache = UsageCache(build_redis_client(settings), settings.usage_cache_ttl_seconds)

    db = session_factory()
    try:
        ok = set_user_plan(db, cache, sys.argv[1], sys.argv[2])
    finally:
        db.close()
        engine.dispose()

    if not ok:
        sys.exit(1)
    print(f"[SUCCESS] {sys.argv[1]} is now on the {sys.argv[2]} plan")
