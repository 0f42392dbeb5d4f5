"""
Plan-based usage limits configuration.

Single source of truth for monthly quota limits per plan, plus the display
data used by the plans endpoint.
"""
from enum import Enum
from typing import Dict, List

from app.core.exceptions import ConfigurationError


class ActionKind(str, Enum):
    """Metered action categories."""
    SCRAPE = "scrape"
    DOWNLOAD = "download"
    AI_GENERATION = "ai_generation"


# Metered actions, in display order
SUPPORTED_ACTIONS: List[str] = [kind.value for kind in ActionKind]

DEFAULT_PLAN = "free"

# Subscription statuses that grant the subscribed plan's limits
ENTITLING_STATUSES = {"active", "trialing"}

# Plan limits (per calendar month)
PLAN_LIMITS: Dict[str, Dict[str, int]] = {
    "free": {
        "scrape": 10,
        "download": 5,
        "ai_generation": 10,
    },
    "pro": {
        "scrape": 1000,
        "download": 500,
        "ai_generation": 500,
    },
    "enterprise": {
        "scrape": 10000,
        "download": 5000,
        "ai_generation": 2000,
    },
}

PLAN_CATALOG: Dict[str, Dict] = {
    "free": {
        "name": "Free",
        "description": "Perfect for getting started",
        "price_cents": 0,
        "interval": "month",
        "storage_gb": 1,
        "features": [
            "Basic trend scraping",
            "Limited downloads",
            "Basic AI assistance",
            "1GB storage",
        ],
    },
    "pro": {
        "name": "Pro",
        "description": "For serious content creators",
        "price_cents": 2999,
        "interval": "month",
        "storage_gb": 50,
        "features": [
            "High-volume trend scraping",
            "High-volume downloads",
            "Advanced AI features",
            "50GB storage",
            "Priority support",
        ],
    },
    "enterprise": {
        "name": "Enterprise",
        "description": "For teams and agencies",
        "price_cents": 9999,
        "interval": "month",
        "storage_gb": 500,
        "features": [
            "Everything in Pro",
            "Team collaboration",
            "API access",
            "500GB storage",
            "Custom integrations",
            "Dedicated support",
        ],
    },
}


def normalize_action_kind(action_kind) -> str:
    """Accept an ActionKind or its string value; reject anything else."""
    value = action_kind.value if isinstance(action_kind, ActionKind) else action_kind
    if value not in SUPPORTED_ACTIONS:
        raise ConfigurationError(f"Unknown action kind: {action_kind!r}")
    return value


def get_plan_limit(plan_type: str, action_kind) -> int:
    """
    Get the monthly limit for an action kind in a given plan.

    Args:
        plan_type: Plan tier (free, pro, enterprise)
        action_kind: Action kind (scrape, download, ai_generation)

    Returns:
        Monthly limit

    Raises:
        ConfigurationError: Unknown plan or action kind
    """
    kind = normalize_action_kind(action_kind)
    limits = PLAN_LIMITS.get(plan_type)
    if limits is None:
        raise ConfigurationError(f"No limits configured for plan {plan_type!r}")
    return limits[kind]


def get_all_plan_limits(plan_type: str) -> Dict[str, int]:
    """Get all limits for a plan tier."""
    if plan_type not in PLAN_LIMITS:
        raise ConfigurationError(f"No limits configured for plan {plan_type!r}")
    return dict(PLAN_LIMITS[plan_type])


def list_plans() -> List[Dict]:
    """Plan catalog with limits, in tier order."""
    return [
        {"id": plan_id, **PLAN_CATALOG[plan_id], "limits": dict(PLAN_LIMITS[plan_id])}
        for plan_id in PLAN_LIMITS
    ]
