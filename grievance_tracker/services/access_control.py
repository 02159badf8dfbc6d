"""
Authentication and authorization checks.

Three independent checks, composed per route by the API layer:
  - authenticate: bearer token -> subject re-resolved from the users table
  - require_role: subject role must be in an allowed set
  - require_owner_or_admin: grievance must exist; admins and the owner pass

Role scoping (list/stats) and ownership scoping (read one, delete, file fetch)
are deliberately separate rules.
"""

import logging
from collections.abc import Iterable

import jwt
from sqlalchemy.orm import Session

from grievance_tracker.core.errors import (
    Forbidden,
    InvalidSignature,
    MissingToken,
    NotFound,
    TokenExpired,
    Unauthorized,
    UnknownSubject,
)
from grievance_tracker.core.security import decode_access_token
from grievance_tracker.models import Grievance, User
from grievance_tracker.schemas.auth import ROLE_ADMIN, CurrentUser

logger = logging.getLogger(__name__)


def verify_token(db: Session, token: str | None) -> CurrentUser:
    """
    Verify a bearer token and re-resolve its subject.

    Raises MissingToken, TokenExpired, InvalidSignature or UnknownSubject (all 401).
    A token for a user that no longer exists is rejected even before expiry.
    """
    if not token or not token.strip():
        raise MissingToken()
    try:
        payload = decode_access_token(token.strip())
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired() from e
    except jwt.PyJWTError as e:
        raise InvalidSignature() from e

    sub = payload.get("sub")
    try:
        user_id = int(sub)
    except (TypeError, ValueError) as e:
        raise InvalidSignature("Invalid token payload") from e

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        logger.info("Token subject no longer exists", extra={"user_id": user_id})
        raise UnknownSubject()
    return CurrentUser(id=user.id, email=user.email, name=user.name, role=user.role)


def require_role(subject: CurrentUser | None, allowed: Iterable[str]) -> CurrentUser:
    """Pass iff subject's role is in allowed. No subject -> Unauthorized, wrong role -> Forbidden."""
    if subject is None:
        raise Unauthorized()
    if subject.role not in set(allowed):
        raise Forbidden("Access denied. Insufficient permissions.")
    return subject


def is_owner_or_admin(subject: CurrentUser, owner_id: int) -> bool:
    """Admins may access any grievance; users only their own."""
    return subject.role == ROLE_ADMIN or owner_id == subject.id


def require_owner_or_admin(
    db: Session,
    subject: CurrentUser | None,
    grievance_id: int,
) -> Grievance:
    """
    Load the grievance and check access. Returns the loaded grievance.

    NotFound when the id does not exist (regardless of role); Forbidden for a
    non-owning, non-admin subject.
    """
    if subject is None:
        raise Unauthorized()
    grievance = db.get(Grievance, grievance_id)
    if grievance is None:
        raise NotFound("Grievance not found")
    if not is_owner_or_admin(subject, grievance.created_by):
        raise Forbidden()
    return grievance
