"""
Identity sync endpoints.

Users are created on first sign-in from the identity provider's token and
deleted (with everything they own) on account deletion.
"""
import logging
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db, get_token_claims, get_usage_cache
from app.db.models.user import User
from app.schemas.auth import UserResponse, UserSyncRequest
from app.services import identity_service
from app.services.usage_cache import UsageCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post("/auth/sync", response_model=UserResponse)
def sync_user(
    request: UserSyncRequest,
    claims: Dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
):
    email = request.email or claims.get("email")
    if not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is required"
        )
    return identity_service.sync_user(db, claims["sub"], email, request.name or claims.get("name"))


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    return user


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_me(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: UsageCache = Depends(get_usage_cache),
):
    identity_service.delete_user(db, cache, user.external_id)
