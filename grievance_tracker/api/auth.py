"""Registration, login and current-user endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from grievance_tracker.api.deps import get_current_user
from grievance_tracker.core.database import get_db
from grievance_tracker.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
)
from grievance_tracker.schemas.errors import ErrorResponse
from grievance_tracker.services import accounts

router = APIRouter()


@router.post(
    "/register",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Create a regular user account. Email must be unused (exact, case-sensitive match)."""
    return accounts.register_user(db, body.email, body.password, body.name)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
) -> LoginResponse:
    """
    Authenticate with email and password; returns a JWT valid for 7 days plus the user.
    Include the token in the Authorization header as: Bearer <token>
    """
    return accounts.login(db, body.email, body.password)


@router.get("/me", response_model=UserOut, responses={401: {"model": ErrorResponse}})
def me(current_user: Annotated[CurrentUser, Depends(get_current_user)]) -> UserOut:
    """Return the authenticated user."""
    return UserOut.model_validate(current_user)
