"""Pydantic request/response schemas."""

from grievance_tracker.schemas.auth import (
    CurrentUser,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
)
from grievance_tracker.schemas.errors import ErrorResponse
from grievance_tracker.schemas.grievance import (
    GRIEVANCE_STATUSES,
    DeleteResponse,
    FileOut,
    GrievanceListResponse,
    GrievanceOut,
    GrievanceStats,
    GrievanceStatus,
    OwnerOut,
    StatusUpdateRequest,
)
from grievance_tracker.schemas.health import HealthResponse

__all__ = [
    "CurrentUser",
    "DeleteResponse",
    "ErrorResponse",
    "FileOut",
    "GRIEVANCE_STATUSES",
    "GrievanceListResponse",
    "GrievanceOut",
    "GrievanceStats",
    "GrievanceStatus",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "OwnerOut",
    "RegisterRequest",
    "StatusUpdateRequest",
    "UserOut",
]
