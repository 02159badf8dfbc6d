"""User accounts: registration, credential checks and idempotent admin bootstrap."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from grievance_tracker.core.errors import BadRequest, Conflict, Unauthorized
from grievance_tracker.core.security import (
    create_access_token,
    hash_password,
    verify_password,
)
from grievance_tracker.models import User
from grievance_tracker.schemas.auth import ROLE_ADMIN, ROLE_USER, ROLES, LoginResponse, UserOut

if TYPE_CHECKING:
    from grievance_tracker.core.config import Settings

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password"


def _require_credentials(email: str | None, password: str | None) -> None:
    if not email or not email.strip() or not password:
        raise BadRequest("Email and password required")


def register_user(
    db: Session,
    email: str | None,
    password: str | None,
    name: str | None = None,
) -> UserOut:
    """Create a 'user' account. Email is matched exactly; duplicates raise Conflict."""
    _require_credentials(email, password)
    if db.query(User).filter(User.email == email).first() is not None:
        raise Conflict("User already exists")
    user = User(
        email=email,
        password_hash=hash_password(password),
        name=(name or "").strip() or None,
        role=ROLE_USER,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise Conflict("User already exists") from e
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id})
    return UserOut.model_validate(user)


def login(db: Session, email: str | None, password: str | None) -> LoginResponse:
    """Check credentials and issue a bearer token. Unknown email and wrong password look the same."""
    _require_credentials(email, password)
    user = db.query(User).filter(User.email == email).first()
    if user is None or not verify_password(password, user.password_hash):
        raise Unauthorized(_INVALID_CREDENTIALS)
    token = create_access_token(sub=user.id, email=user.email, role=user.role)
    return LoginResponse(token=token, user=UserOut.model_validate(user))


def ensure_account(
    db: Session,
    email: str,
    password: str,
    name: str | None = None,
    role: str = ROLE_USER,
    reset_password: bool = False,
) -> tuple[User, bool]:
    """
    Create the account if missing, otherwise make sure it has the given role.

    Returns (user, created). Safe to run repeatedly; the password of an existing
    account is only replaced when reset_password is True.
    """
    if role not in ROLES:
        raise BadRequest(f"Invalid role: {role!r}")
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        user = User(
            email=email,
            password_hash=hash_password(password),
            name=name,
            role=role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user, True
    changed = False
    if user.role != role:
        user.role = role
        changed = True
    if reset_password:
        user.password_hash = hash_password(password)
        changed = True
    if changed:
        db.commit()
        db.refresh(user)
    return user, False


def bootstrap_admin(db: Session, settings: "Settings") -> User | None:
    """Ensure the configured admin account exists. No-op unless email and password are set."""
    if not settings.BOOTSTRAP_ADMIN_EMAIL or settings.BOOTSTRAP_ADMIN_PASSWORD is None:
        logger.info("Admin bootstrap not configured; skipping.")
        return None
    password = settings.BOOTSTRAP_ADMIN_PASSWORD.get_secret_value()
    if not password:
        logger.warning("BOOTSTRAP_ADMIN_PASSWORD is empty; skipping admin bootstrap.")
        return None
    user, created = ensure_account(
        db,
        email=settings.BOOTSTRAP_ADMIN_EMAIL,
        password=password,
        name=settings.BOOTSTRAP_ADMIN_NAME,
        role=ROLE_ADMIN,
    )
    logger.info(
        "Admin bootstrap completed",
        extra={"user_id": user.id, "account_created": created},
    )
    return user
