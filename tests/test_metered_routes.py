"""
Integration tests for AI generation, the Stripe webhook, the library routes
and the application-wide exception handlers.
"""
import asyncio
from unittest.mock import MagicMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt
from openai import APIError

from app.core.config import Settings
from app.core.exceptions import StorageUnavailable
from app.core.periods import billing_period_for
from app.db.models.ai_generation import AIGeneration
from app.db.models.media import MediaDownload
from app.db.models.subscription import Subscription
from app.db.models.user import User
from app.main import create_app
from app.services import quota_ledger
from app.services.usage_cache import UsageCache
from tests.fakes import FakeRedis

JWT_SECRET = "test-jwt-secret"
WEBHOOK_SECRET = "whsec_test_secret"


def _settings(tmp_path, **overrides):
    values = {
        "app_env": "test",
        "database_url": f"sqlite:///{tmp_path / 'routes.db'}",
        "jwt_secret": JWT_SECRET,
        "stripe_webhook_secret": WEBHOOK_SECRET,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def app(tmp_path):
    app = create_app(_settings(tmp_path), configure_logging=False)
    app.state.usage_cache = UsageCache(FakeRedis(), ttl_seconds=60)
    yield app
    app.state.engine.dispose()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db_session(app):
    """Provide a database session for tests."""
    db = app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def _make_user(db_session, external_id, email):
    user = User(external_id=external_id, email=email)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _headers(user):
    token = jwt.encode({"sub": user.external_id}, JWT_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def test_user(db_session):
    return _make_user(db_session, "user_routes", "routes@example.com")


@pytest.fixture
def auth_headers(test_user):
    return _headers(test_user)


def _openai_client(content="1. A title", tokens=42):
    client = MagicMock()
    completion = MagicMock()
    completion.choices[0].message.content = content
    completion.usage.total_tokens = tokens
    client.chat.completions.create.return_value = completion
    return client


# ============================================
# ✅ AI GENERATION
# ============================================

def test_generate_records_usage(app, client, auth_headers, db_session, test_user):
    app.state.openai_client = _openai_client()

    response = client.post(
        "/ai/generate",
        json={"prompt": "budget travel", "generation_type": "title"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "1. A title"
    assert data["tokens_used"] == 42
    assert data["usage_recorded"] is True
    assert db_session.query(AIGeneration).filter(AIGeneration.user_id == test_user.id).count() == 1
    assert quota_ledger.get_usage(db_session, test_user.id, "ai_generation", billing_period_for()) == 1


def test_generate_provider_error_is_502_and_records_nothing(app, client, auth_headers, db_session, test_user):
    openai_client = MagicMock()
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    openai_client.chat.completions.create.side_effect = APIError("upstream failure", request, body=None)
    app.state.openai_client = openai_client

    response = client.post(
        "/ai/generate",
        json={"prompt": "budget travel", "generation_type": "hook"},
        headers=auth_headers,
    )

    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "provider_error"
    assert db_session.query(AIGeneration).count() == 0
    assert quota_ledger.get_usage(db_session, test_user.id, "ai_generation", billing_period_for()) == 0


def test_generate_without_openai_key_is_500(app, client, auth_headers):
    app.state.openai_client = None

    response = client.post("/ai/generate", json={"prompt": "x", "generation_type": "script"}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "configuration_error"


# ============================================
# ✅ STRIPE WEBHOOK
# ============================================

def test_webhook_rejects_bad_signature(client):
    response = client.post(
        "/billing/webhook",
        content=b'{"type": "checkout.session.completed"}',
        headers={"Stripe-Signature": "t=1700000000,v1=deadbeef"},
    )

    assert response.status_code == 400


def test_webhook_unmatched_user_is_acknowledged(client, db_session):
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {"metadata": {}, "customer": None}},
    }

    with patch("app.services.billing_service.stripe.Webhook.construct_event", return_value=event):
        response = client.post("/billing/webhook", content=b"{}", headers={"Stripe-Signature": "sig"})

    assert response.status_code == 200
    assert response.json()["status"] == "ignored"
    assert db_session.query(Subscription).count() == 0


def test_webhook_checkout_activates_plan(client, db_session, test_user):
    event = {
        "type": "checkout.session.completed",
        "data": {"object": {
            "metadata": {"user_id": str(test_user.id), "plan": "pro"},
            "customer": "cus_123",
            "subscription": "sub_123",
        }},
    }

    with patch("app.services.billing_service.stripe.Webhook.construct_event", return_value=event):
        response = client.post("/billing/webhook", content=b"{}", headers={"Stripe-Signature": "sig"})

    assert response.status_code == 200
    assert response.json()["status"] == "success"
    subscription = db_session.query(Subscription).filter(Subscription.user_id == test_user.id).one()
    assert subscription.plan_type == "pro"
    assert subscription.status == "active"


def test_webhook_handler_runs_off_the_event_loop(client):
    seen = {}

    def handle(settings, event, db):
        try:
            asyncio.get_running_loop()
            seen["on_loop"] = True
        except RuntimeError:
            seen["on_loop"] = False
        return True

    event = {"type": "invoice.paid", "data": {"object": {}}}
    with patch("app.services.billing_service.stripe.Webhook.construct_event", return_value=event), \
            patch("app.services.billing_service.handle_webhook_event", side_effect=handle):
        response = client.post("/billing/webhook", content=b"{}", headers={"Stripe-Signature": "sig"})

    assert response.json()["status"] == "success"
    assert seen["on_loop"] is False


# ============================================
# ✅ LIBRARY
# ============================================

def _add_media(db_session, user, platform="youtube"):
    item = MediaDownload(user_id=user.id, original_url="https://youtu.be/x", platform=platform)
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


def test_list_library_returns_own_items(client, auth_headers, db_session, test_user):
    _add_media(db_session, test_user)
    other = _make_user(db_session, "user_other", "other@example.com")
    _add_media(db_session, other)

    response = client.get("/library", headers=auth_headers)

    assert response.status_code == 200
    assert len(response.json()) == 1


def test_organize_favorites_with_tags(client, auth_headers, db_session, test_user):
    item = _add_media(db_session, test_user, platform="tiktok")

    response = client.post(
        "/library/organize",
        json={"media_ids": [item.id], "action": "favorite", "tags": ["Travel"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["processed_count"] == 1
    assert data["platform_breakdown"] == {"tiktok": 1}
    assert data["message"] == "Successfully favorited 1 media items"

    favorites = client.get("/library", params={"favorite": True, "tag": "travel"}, headers=auth_headers).json()
    assert [entry["id"] for entry in favorites] == [item.id]


def test_organize_foreign_ids_is_404(client, auth_headers, db_session, test_user):
    own = _add_media(db_session, test_user)
    other = _make_user(db_session, "user_other", "other@example.com")
    foreign = _add_media(db_session, other)

    response = client.post(
        "/library/organize",
        json={"media_ids": [own.id, foreign.id], "action": "delete"},
        headers=auth_headers,
    )

    assert response.status_code == 404
    assert str(foreign.id) in response.json()["detail"]
    db_session.expire_all()
    assert db_session.query(MediaDownload).count() == 2


# ============================================
# ✅ EXCEPTION HANDLERS
# ============================================

def test_unknown_plan_is_configuration_error(client, auth_headers, db_session, test_user):
    db_session.add(Subscription(user_id=test_user.id, plan_type="platinum", status="active"))
    db_session.commit()

    response = client.get("/me/usage", headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "configuration_error"


def test_ledger_outage_on_usage_summary_is_503(client, auth_headers):
    with patch.object(quota_ledger, "get_period_usage", side_effect=StorageUnavailable("get_period_usage")):
        response = client.get("/me/usage", headers=auth_headers)

    assert response.status_code == 503
    assert response.json()["detail"] == {"error": "storage_unavailable", "operation": "get_period_usage"}


def test_metered_routes_document_quota_responses(client):
    paths = client.get("/openapi.json").json()["paths"]

    assert "429" in paths["/downloads/request"]["post"]["responses"]
    assert "429" in paths["/ai/generate"]["post"]["responses"]
