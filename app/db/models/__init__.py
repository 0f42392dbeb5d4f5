"""
Database models module.

Imports all models so they are registered with Base.metadata before table
creation and migrations.
"""
from app.db.models.user import User
from app.db.models.subscription import Subscription
from app.db.models.usage import UsageRecord
from app.db.models.media import MediaDownload, MediaTag
from app.db.models.ai_generation import AIGeneration
from app.db.models.trend import Trend

__all__ = [
    "User",
    "Subscription",
    "UsageRecord",
    "MediaDownload",
    "MediaTag",
    "AIGeneration",
    "Trend",
]
