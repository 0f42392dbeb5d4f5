"""
Billing endpoints: plans, subscription state, checkout and portal sessions.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db, get_settings
from app.core.config import Settings
from app.core.plan_limits import list_plans
from app.db.models.user import User
from app.schemas.billing import (
    CreateCheckoutSessionRequest,
    CreateCheckoutSessionResponse,
    CreatePortalSessionRequest,
    CreatePortalSessionResponse,
    PlanResponse,
    SubscriptionResponse,
)
from app.services import billing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/billing", tags=["Billing"])


@router.get("/plans", response_model=List[PlanResponse])
def get_plans():
    return list_plans()


@router.get("/subscription", response_model=SubscriptionResponse)
def get_subscription(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return billing_service.get_subscription_view(db, user.id)


@router.post("/checkout", response_model=CreateCheckoutSessionResponse)
def create_checkout(
    request: CreateCheckoutSessionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Start a Stripe checkout for a paid plan."""
    try:
        session = billing_service.create_checkout_session(
            settings, db, user, request.plan, request.success_url, request.cancel_url
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"checkout_url": session.url, "session_id": session.id}


@router.post("/portal", response_model=CreatePortalSessionResponse)
def create_portal(
    request: CreatePortalSessionRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        session = billing_service.create_portal_session(settings, db, user, request.return_url)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return {"url": session.url}
