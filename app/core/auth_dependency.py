"""
Request-scoped dependencies: settings, database session, cache, current user.

Everything is read from request.app.state, which create_app() populates
once at startup.
"""
from typing import Dict, Iterator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.db.models.user import User
from app.services.usage_cache import UsageCache

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    """Database session dependency."""
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_usage_cache(request: Request) -> UsageCache:
    return request.app.state.usage_cache


def get_openai_client(request: Request):
    return request.app.state.openai_client


def get_trend_scraper(request: Request):
    return request.app.state.trend_scraper


def get_token_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> Dict:
    """Verify the identity-provider JWT and return its claims."""
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        claims = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    if not claims.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return claims


def get_current_user(
    claims: Dict = Depends(get_token_claims),
    db: Session = Depends(get_db),
) -> User:
    """Get current User object from the token subject."""
    user = db.query(User).filter(User.external_id == claims["sub"]).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found. Call POST /auth/sync first."
        )
    return user
