"""
Tests for Stripe billing: price mapping, webhook handlers and checkout.
Stripe API calls are mocked.
"""
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.exceptions import ConfigurationError
from app.db.base import Base
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.services import billing_service
from app.services.quota_service import get_plan_for_user


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def settings():
    return Settings(
        database_url=TEST_DATABASE_URL,
        jwt_secret="secret",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret="whsec_123",
        stripe_price_id_pro="price_pro",
        stripe_price_id_enterprise="price_enterprise",
    )


@pytest.fixture
def test_user(db):
    user = User(external_id="user_billing", email="billing@example.com", name="Billing User")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _subscription_event(user_id, status="active", price_id="price_pro", sub_id="sub_123"):
    return {
        "object": {
            "id": sub_id,
            "customer": "cus_123",
            "status": status,
            "metadata": {"user_id": str(user_id)},
            "current_period_start": 1790000000,
            "current_period_end": 1792592000,
            "items": {"data": [{"price": {"id": price_id}}]},
        }
    }


def test_price_mapping(settings):
    assert billing_service.get_plan_from_price_id(settings, "price_pro") == "pro"
    assert billing_service.get_plan_from_price_id(settings, "price_unknown") is None
    assert billing_service.get_price_id_from_plan(settings, "enterprise") == "price_enterprise"
    assert billing_service.get_price_id_from_plan(settings, "free") is None


def test_checkout_completed_activates_plan(db, settings, test_user):
    event_data = {
        "object": {
            "customer": "cus_123",
            "subscription": "sub_123",
            "metadata": {"user_id": str(test_user.id), "plan": "enterprise"},
        }
    }

    sub = billing_service.handle_checkout_session_completed(settings, event_data, db)

    assert sub.plan_type == "enterprise"
    assert sub.status == "active"
    assert sub.stripe_customer_id == "cus_123"
    assert get_plan_for_user(db, test_user.id) == "enterprise"


def test_checkout_completed_unknown_user(db, settings):
    with pytest.raises(ValueError):
        billing_service.handle_checkout_session_completed(settings, {"object": {"metadata": {}}}, db)


def test_subscription_updated_maps_price(db, settings, test_user):
    sub = billing_service.handle_subscription_updated(settings, _subscription_event(test_user.id), db)

    assert sub.plan_type == "pro"
    assert sub.stripe_price_id == "price_pro"
    assert sub.current_period_end is not None


def test_subscription_past_due_falls_back_to_free(db, settings, test_user):
    billing_service.handle_subscription_updated(settings, _subscription_event(test_user.id), db)
    billing_service.handle_subscription_updated(
        settings, _subscription_event(test_user.id, status="past_due"), db
    )

    assert get_plan_for_user(db, test_user.id) == "free"


def test_subscription_deleted_downgrades(db, settings, test_user):
    billing_service.handle_subscription_updated(settings, _subscription_event(test_user.id), db)

    sub = billing_service.handle_subscription_deleted(settings, {"object": {"id": "sub_123"}}, db)

    assert sub.plan_type == "free"
    assert sub.status == "canceled"
    assert sub.stripe_customer_id == "cus_123"


def test_invoice_payment_failed_marks_past_due(db, settings, test_user):
    billing_service.handle_subscription_updated(settings, _subscription_event(test_user.id), db)

    sub = billing_service.handle_invoice_payment_failed(
        settings, {"object": {"id": "in_1", "subscription": "sub_123"}}, db
    )

    assert sub.status == "past_due"


def test_invoice_payment_succeeded_resyncs(db, settings, test_user):
    stripe_sub = _subscription_event(test_user.id, price_id="price_enterprise")["object"]

    with patch("stripe.Subscription.retrieve", return_value=stripe_sub) as retrieve:
        sub = billing_service.handle_invoice_payment_succeeded(
            settings, {"object": {"subscription": "sub_123"}}, db
        )

    retrieve.assert_called_once_with("sub_123", api_key="sk_test_123")
    assert sub.plan_type == "enterprise"


def test_handle_webhook_event_dispatch(db, settings, test_user):
    event = {"type": "customer.subscription.created", "data": _subscription_event(test_user.id)}

    assert billing_service.handle_webhook_event(settings, event, db) is True
    assert billing_service.handle_webhook_event(settings, {"type": "charge.refunded", "data": {}}, db) is False


def test_checkout_session_creates_customer(db, settings, test_user):
    with patch("stripe.Customer.create", return_value=SimpleNamespace(id="cus_new")) as create_customer, \
         patch("stripe.checkout.Session.create",
               return_value=SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/cs_1")) as create_session:
        session = billing_service.create_checkout_session(settings, db, test_user, "pro")

    assert session.id == "cs_1"
    create_customer.assert_called_once()
    assert create_session.call_args.kwargs["line_items"] == [{"price": "price_pro", "quantity": 1}]
    sub = db.query(Subscription).filter(Subscription.user_id == test_user.id).first()
    assert sub.stripe_customer_id == "cus_new"
    assert get_plan_for_user(db, test_user.id) == "free"


def test_checkout_requires_stripe_key(db, test_user):
    settings = Settings(database_url=TEST_DATABASE_URL, jwt_secret="secret")

    with pytest.raises(ConfigurationError):
        billing_service.create_checkout_session(settings, db, test_user, "pro")


def test_portal_requires_customer(db, settings, test_user):
    with pytest.raises(ValueError):
        billing_service.create_portal_session(settings, db, test_user)


def test_construct_event_rejects_bad_signature(settings):
    with pytest.raises(ValueError):
        billing_service.construct_event(settings, b"{}", "t=1,v1=bad")


def test_subscription_view_without_subscription(db, test_user):
    view = billing_service.get_subscription_view(db, test_user.id)

    assert view["plan"] == "free"
    assert view["limits"]["download"] == 5
