"""
Pydantic schemas for identity sync.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class UserSyncRequest(BaseModel):
    email: Optional[str] = Field(None, description="Falls back to the token's email claim")
    name: Optional[str] = Field(None, max_length=200)


class UserResponse(BaseModel):
    id: int
    external_id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
