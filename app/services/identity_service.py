"""
User records synced from the external identity provider.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError
from app.db.models.user import User
from app.services.usage_cache import UsageCache

logger = logging.getLogger(__name__)


def get_user_by_external_id(db: Session, external_id: str) -> User:
    """Fetch User by identity-provider subject."""
    user = db.query(User).filter(User.external_id == external_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def sync_user(db: Session, external_id: str, email: str, name: Optional[str] = None) -> User:
    """
    Create or update the local User for an identity-provider account.

    An existing row with the same email but no matching subject is relinked
    to the new subject.
    """
    email = email.strip().lower()
    user = db.query(User).filter(User.external_id == external_id).first()
    if not user:
        user = db.query(User).filter(User.email == email).first()
        if user:
            logger.info(f"Relinking user_id={user.id} to new identity subject")
            user.external_id = external_id

    if not user:
        user = User(external_id=external_id, email=email, name=name)
        db.add(user)
        logger.info(f"Creating user for identity subject: email={email}")
    else:
        if user.email != email:
            owner = db.query(User).filter(User.email == email, User.id != user.id).first()
            if owner:
                logger.warning(f"Email change rejected for user_id={user.id}: address belongs to user_id={owner.id}")
                raise ConflictError(f"Email {email} is already linked to another account")
        user.email = email
        if name:
            user.name = name

    try:
        db.commit()
    except IntegrityError as e:
        # Concurrent sign-in created the same subject or email first
        db.rollback()
        raise ConflictError(f"Account for {email} could not be synced: it already exists") from e
    db.refresh(user)
    return user


def delete_user(db: Session, cache: UsageCache, external_id: str) -> None:
    """
    Delete a user with their subscription, usage records and library.
    """
    user = get_user_by_external_id(db, external_id)
    user_id = user.id
    db.delete(user)
    db.commit()

    cache.invalidate_user(user_id)
    logger.info(f"User deleted: user_id={user_id}")
