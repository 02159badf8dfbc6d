"""FastAPI dependencies: current subject, role gate and attachment storage."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from grievance_tracker.core.config import get_settings
from grievance_tracker.core.database import get_db
from grievance_tracker.schemas.auth import ROLE_ADMIN, CurrentUser
from grievance_tracker.services.access_control import require_role, verify_token
from grievance_tracker.services.storage import LocalFileStorage

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> CurrentUser:
    """Dependency: require a valid Bearer JWT whose subject still exists. Raises 401 otherwise."""
    token = credentials.credentials if credentials is not None else None
    return verify_token(db, token)


def require_admin(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: require authenticated user with role 'admin'. Raises 403 for non-admin."""
    return require_role(current_user, {ROLE_ADMIN})


def get_storage() -> LocalFileStorage:
    """Dependency: attachment storage rooted at UPLOAD_DIR."""
    return LocalFileStorage(get_settings().UPLOAD_DIR)
