"""
Pydantic schemas for usage and entitlement endpoints.
"""
from datetime import datetime
from typing import Dict
from pydantic import BaseModel, Field


class ActionUsageDetail(BaseModel):
    """Usage details for a single action kind."""
    current: int = Field(..., description="Usage in the current period")
    limit: int = Field(..., description="Monthly limit for the plan")
    remaining: int = Field(..., description="Remaining quota (0 when exhausted)")


class UsageSummaryResponse(BaseModel):
    """Response schema for GET /me/usage."""
    plan: str = Field(..., description="Plan whose limits apply (free, pro, enterprise)")
    period_key: str = Field(..., description="Current period in YYYY-MM format")
    period_start: datetime = Field(..., description="First instant of the period (UTC)")
    period_end: datetime = Field(..., description="Last instant of the period (UTC)")
    actions: Dict[str, ActionUsageDetail] = Field(..., description="Per-action usage")

    class Config:
        json_schema_extra = {
            "example": {
                "plan": "free",
                "period_key": "2026-10",
                "period_start": "2026-10-01T00:00:00",
                "period_end": "2026-10-31T23:59:59.999999",
                "actions": {
                    "scrape": {"current": 3, "limit": 10, "remaining": 7},
                    "download": {"current": 5, "limit": 5, "remaining": 0},
                    "ai_generation": {"current": 0, "limit": 10, "remaining": 10},
                },
            }
        }


class EntitlementResponse(BaseModel):
    """Response schema for GET /me/entitlements/{action_kind}."""
    allowed: bool
    remaining: int
    current: int
    limit: int
    plan: str
    action_kind: str
    period_key: str


class QuotaExceededResponse(BaseModel):
    """Error detail for 429 quota exceeded."""
    error: str = Field("quota_exceeded", description="Error code")
    action_kind: str = Field(..., description="Action that exceeded quota")
    plan: str = Field(..., description="User's current plan")
    limit: int = Field(..., description="Monthly limit for this action")
    used: int = Field(..., description="Current period usage")
    remaining: int = Field(..., description="Remaining quota (0 if exceeded)")
    period: str = Field(..., description="Period in YYYY-MM format")
    message: str = Field(..., description="Human-readable error message")


class QuotaExceededError(BaseModel):
    """Body of a 429 response from a metered route."""
    detail: QuotaExceededResponse


# OpenAPI responses shared by every route behind require_entitlement()
QUOTA_RESPONSES = {
    429: {"model": QuotaExceededError, "description": "Monthly quota exhausted for this action"},
    503: {"description": "Usage ledger unreachable and quota checks fail closed"},
}


class UsageRetentionResponse(BaseModel):
    """Response schema for POST /cron/usage-retention."""
    deleted_records: int
    cutoff: datetime
