"""
Pydantic schemas for billing endpoints.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class PlanResponse(BaseModel):
    id: str
    name: str
    description: str
    price_cents: int
    interval: str
    storage_gb: int
    features: List[str]
    limits: Dict[str, int]


class SubscriptionResponse(BaseModel):
    plan: str = Field(..., description="Plan whose limits currently apply")
    status: str
    is_active: bool
    current_period_end: Optional[datetime] = None
    limits: Dict[str, int]


class CreateCheckoutSessionRequest(BaseModel):
    """Request schema for creating checkout session."""
    plan: str = Field(..., description="Plan type: 'pro' or 'enterprise'", pattern="^(pro|enterprise)$")
    success_url: Optional[str] = Field(None, description="URL to redirect after successful payment")
    cancel_url: Optional[str] = Field(None, description="URL to redirect if payment is canceled")

    class Config:
        json_schema_extra = {
            "example": {
                "plan": "pro",
                "success_url": "https://kapture.app/dashboard?success=true",
                "cancel_url": "https://kapture.app/pricing?canceled=true"
            }
        }


class CreateCheckoutSessionResponse(BaseModel):
    checkout_url: str = Field(..., description="Stripe checkout session URL")
    session_id: str = Field(..., description="Stripe checkout session ID")


class CreatePortalSessionRequest(BaseModel):
    return_url: Optional[str] = Field(None, description="URL to return to after portal session")


class CreatePortalSessionResponse(BaseModel):
    url: str = Field(..., description="Stripe customer portal URL")
