"""Request/response schemas for auth endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "admin"]

ROLE_USER: Role = "user"
ROLE_ADMIN: Role = "admin"
ROLES: frozenset[str] = frozenset({ROLE_USER, ROLE_ADMIN})


class RegisterRequest(BaseModel):
    """New account details. Missing fields are reported as 400 by the route."""

    email: str = Field(default="", max_length=255, description="Email (exact match)")
    password: str = Field(default="", max_length=128, description="Password")
    name: str | None = Field(default=None, max_length=255, description="Display name")


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: str = Field(default="", max_length=255, description="Email")
    password: str = Field(default="", max_length=128, description="Password")


class UserOut(BaseModel):
    """Public user fields (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    role: Role


class LoginResponse(BaseModel):
    """JWT bearer token plus the authenticated user."""

    token: str = Field(..., description="JWT access token; send as Authorization: Bearer <token>")
    user: UserOut


class CurrentUser(BaseModel):
    """Authenticated subject (id, email, name, role) for dependency injection."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str | None = None
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
