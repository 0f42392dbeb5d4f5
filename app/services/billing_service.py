"""
Billing service for Stripe integration.

Handles plan/price mapping, checkout sessions, customer portal, and webhook
event processing. Webhooks and checkout completion are the only writers of
Subscription rows.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import stripe
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.exceptions import ConfigurationError
from app.core.plan_limits import DEFAULT_PLAN, ENTITLING_STATUSES, PLAN_LIMITS, get_all_plan_limits
from app.db.models.subscription import Subscription
from app.db.models.user import User

logger = logging.getLogger(__name__)

PAID_PLANS = ("pro", "enterprise")


def get_plan_from_price_id(settings: Settings, price_id: Optional[str]) -> Optional[str]:
    """Get plan tier from Stripe price ID."""
    if not price_id:
        return None
    return settings.price_id_to_plan.get(price_id)


def get_price_id_from_plan(settings: Settings, plan: str) -> Optional[str]:
    """Get Stripe price ID from plan tier."""
    plan_to_price = {plan_id: price_id for price_id, plan_id in settings.price_id_to_plan.items()}
    price_id = plan_to_price.get(plan.lower())
    if not price_id or price_id.startswith("price_your_"):
        # Placeholder values from .env.example
        return None
    return price_id


def _require_stripe_key(settings: Settings) -> str:
    if not settings.stripe_secret_key:
        raise ConfigurationError("STRIPE_SECRET_KEY is not configured")
    return settings.stripe_secret_key


def _timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _first_item(subscription_data: Dict) -> Dict:
    items = (subscription_data.get("items") or {}).get("data") or [{}]
    return items[0] or {}


def get_subscription_view(db: Session, user_id: int) -> Dict:
    """Current subscription state for GET /billing/subscription."""
    subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if not subscription:
        return {
            "plan": DEFAULT_PLAN,
            "status": "active",
            "is_active": True,
            "current_period_end": None,
            "limits": get_all_plan_limits(DEFAULT_PLAN),
        }

    is_active = subscription.status in ENTITLING_STATUSES
    effective_plan = subscription.plan_type if is_active else DEFAULT_PLAN
    return {
        "plan": effective_plan,
        "status": subscription.status,
        "is_active": is_active,
        "current_period_end": subscription.current_period_end,
        "limits": get_all_plan_limits(effective_plan),
    }


def create_checkout_session(
    settings: Settings,
    db: Session,
    user: User,
    plan: str,
    success_url: Optional[str] = None,
    cancel_url: Optional[str] = None,
):
    """
    Create a Stripe checkout session for a subscription.

    Args:
        settings: Application settings
        db: Database session
        user: User object
        plan: Plan tier (pro or enterprise)
        success_url: Redirect after successful payment
        cancel_url: Redirect if payment is canceled

    Returns:
        Stripe checkout session object
    """
    api_key = _require_stripe_key(settings)
    price_id = get_price_id_from_plan(settings, plan)
    if not price_id:
        raise ValueError(f"Invalid plan type: {plan}. Must be one of {', '.join(PAID_PLANS)}")

    # Get or create Stripe customer
    subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()
    if subscription and subscription.stripe_customer_id:
        customer_id = subscription.stripe_customer_id
    else:
        customer = stripe.Customer.create(
            api_key=api_key,
            email=user.email,
            name=user.name or None,
            metadata={"user_id": str(user.id), "external_id": user.external_id},
        )
        customer_id = customer.id

        if not subscription:
            subscription = Subscription(user_id=user.id, plan_type=DEFAULT_PLAN, status="inactive")
            db.add(subscription)
        subscription.stripe_customer_id = customer_id
        db.commit()

    session = stripe.checkout.Session.create(
        api_key=api_key,
        customer=customer_id,
        payment_method_types=["card"],
        mode="subscription",
        line_items=[{"price": price_id, "quantity": 1}],
        success_url=success_url or f"{settings.frontend_url}/dashboard?success=true",
        cancel_url=cancel_url or f"{settings.frontend_url}/dashboard?canceled=true",
        metadata={"user_id": str(user.id), "plan": plan},
        subscription_data={"metadata": {"user_id": str(user.id), "plan": plan}},
    )

    logger.info(f"Created checkout session: session_id={session.id}, user_id={user.id}, plan={plan}")
    return session


def create_portal_session(settings: Settings, db: Session, user: User, return_url: Optional[str] = None):
    """
    Create a Stripe customer portal session.

    Raises:
        ValueError: User has no Stripe customer
    """
    api_key = _require_stripe_key(settings)
    subscription = db.query(Subscription).filter(Subscription.user_id == user.id).first()
    if not subscription or not subscription.stripe_customer_id:
        raise ValueError("User does not have a Stripe customer ID")

    session = stripe.billing_portal.Session.create(
        api_key=api_key,
        customer=subscription.stripe_customer_id,
        return_url=return_url or f"{settings.frontend_url}/settings",
    )
    logger.info(f"Created portal session: session_id={session.id}, user_id={user.id}")
    return session


def construct_event(settings: Settings, payload: bytes, signature: Optional[str]):
    """
    Verify a webhook payload signature and parse the event.

    Raises:
        ConfigurationError: Webhook secret not configured
        ValueError: Signature or payload invalid
    """
    if not settings.stripe_webhook_secret:
        raise ConfigurationError("STRIPE_WEBHOOK_SECRET is not configured")
    try:
        return stripe.Webhook.construct_event(
            payload=payload,
            sig_header=signature,
            secret=settings.stripe_webhook_secret,
        )
    except (ValueError, stripe.SignatureVerificationError) as e:
        raise ValueError(f"Webhook verification failed: {e}") from e


def _find_subscription_for_user(db: Session, user_id: int) -> Subscription:
    subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if not subscription:
        subscription = Subscription(user_id=user_id, plan_type=DEFAULT_PLAN, status="inactive")
        db.add(subscription)
    return subscription


def _resolve_user_id(db: Session, metadata: Dict, customer_id: Optional[str]) -> Optional[int]:
    user_id_str = (metadata or {}).get("user_id")
    if user_id_str:
        user = db.query(User).filter(User.id == int(user_id_str)).first()
        if user:
            return user.id
    if customer_id:
        subscription = db.query(Subscription).filter(
            Subscription.stripe_customer_id == customer_id
        ).first()
        if subscription:
            return subscription.user_id
    return None


def _apply_stripe_subscription(settings: Settings, subscription: Subscription, subscription_data: Dict) -> None:
    item = _first_item(subscription_data)
    price_id = (item.get("price") or {}).get("id")

    subscription.stripe_subscription_id = subscription_data.get("id")
    subscription.status = subscription_data.get("status") or subscription.status
    if subscription_data.get("customer"):
        subscription.stripe_customer_id = subscription_data.get("customer")

    # Newer API versions carry the period on the subscription item
    period_start = subscription_data.get("current_period_start") or item.get("current_period_start")
    period_end = subscription_data.get("current_period_end") or item.get("current_period_end")
    subscription.current_period_start = _timestamp(period_start)
    subscription.current_period_end = _timestamp(period_end)

    if price_id:
        subscription.stripe_price_id = price_id
        plan = get_plan_from_price_id(settings, price_id)
        if plan:
            subscription.plan_type = plan
        else:
            logger.warning(f"Unmapped Stripe price id: {price_id}")


def handle_checkout_session_completed(settings: Settings, event_data: Dict, db: Session) -> Subscription:
    """Handle checkout.session.completed: activate the purchased plan."""
    session_data = event_data.get("object", {})
    metadata = session_data.get("metadata") or {}
    customer_id = session_data.get("customer")

    user_id = _resolve_user_id(db, metadata, customer_id)
    if user_id is None:
        raise ValueError("Cannot identify user from checkout session")

    subscription = _find_subscription_for_user(db, user_id)
    subscription.stripe_customer_id = customer_id
    subscription.stripe_subscription_id = session_data.get("subscription")
    subscription.status = "active"

    plan = metadata.get("plan")
    if plan in PLAN_LIMITS:
        subscription.plan_type = plan

    db.commit()
    db.refresh(subscription)
    logger.info(f"Checkout completed: user_id={user_id}, plan={subscription.plan_type}")
    return subscription


def handle_subscription_updated(settings: Settings, event_data: Dict, db: Session) -> Subscription:
    """Handle customer.subscription.created / customer.subscription.updated."""
    subscription_data = event_data.get("object", {})
    user_id = _resolve_user_id(db, subscription_data.get("metadata"), subscription_data.get("customer"))
    if user_id is None:
        raise ValueError(f"Cannot identify user for subscription_id={subscription_data.get('id')}")

    subscription = _find_subscription_for_user(db, user_id)
    _apply_stripe_subscription(settings, subscription, subscription_data)

    db.commit()
    db.refresh(subscription)
    logger.info(
        f"Subscription updated: user_id={user_id}, status={subscription.status}, "
        f"plan={subscription.plan_type}"
    )
    return subscription


def handle_subscription_deleted(settings: Settings, event_data: Dict, db: Session) -> Subscription:
    """Handle customer.subscription.deleted: downgrade to free."""
    subscription_data = event_data.get("object", {})
    subscription_id = subscription_data.get("id")

    subscription = db.query(Subscription).filter(
        Subscription.stripe_subscription_id == subscription_id
    ).first()
    if not subscription:
        raise ValueError(f"Subscription not found for subscription_id={subscription_id}")

    subscription.plan_type = DEFAULT_PLAN
    subscription.status = "canceled"
    subscription.stripe_subscription_id = None  # keep customer id for reactivation
    subscription.current_period_end = _timestamp(subscription_data.get("current_period_end"))

    db.commit()
    db.refresh(subscription)
    logger.info(f"Subscription canceled: user_id={subscription.user_id}, downgraded to {DEFAULT_PLAN}")
    return subscription


def handle_invoice_payment_succeeded(settings: Settings, event_data: Dict, db: Session) -> Optional[Subscription]:
    """Handle invoice.payment_succeeded: re-sync the subscription from Stripe."""
    invoice = event_data.get("object", {})
    subscription_id = invoice.get("subscription")
    if not subscription_id:
        return None

    stripe_sub = stripe.Subscription.retrieve(subscription_id, api_key=_require_stripe_key(settings))
    return handle_subscription_updated(settings, {"object": stripe_sub}, db)


def handle_invoice_payment_failed(settings: Settings, event_data: Dict, db: Session) -> Optional[Subscription]:
    """Handle invoice.payment_failed: mark the subscription past due."""
    invoice = event_data.get("object", {})
    subscription_id = invoice.get("subscription")
    subscription = None
    if subscription_id:
        subscription = db.query(Subscription).filter(
            Subscription.stripe_subscription_id == subscription_id
        ).first()

    if not subscription:
        logger.warning(f"Payment failed for unknown subscription: invoice_id={invoice.get('id')}")
        return None

    subscription.status = "past_due"
    db.commit()
    db.refresh(subscription)
    logger.warning(f"Payment failed: user_id={subscription.user_id}, invoice_id={invoice.get('id')}")
    return subscription


WEBHOOK_HANDLERS = {
    "checkout.session.completed": handle_checkout_session_completed,
    "customer.subscription.created": handle_subscription_updated,
    "customer.subscription.updated": handle_subscription_updated,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_succeeded": handle_invoice_payment_succeeded,
    "invoice.payment_failed": handle_invoice_payment_failed,
}


def handle_webhook_event(settings: Settings, event: Dict, db: Session) -> bool:
    """
    Dispatch a verified Stripe event.

    Returns:
        True if the event type was handled, False if ignored
    """
    event_type = event.get("type")
    handler = WEBHOOK_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled Stripe event type {event_type}")
        return False

    handler(settings, event.get("data", {}), db)
    return True
