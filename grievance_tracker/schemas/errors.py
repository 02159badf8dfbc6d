"""Error response body shared by every endpoint."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Short machine-readable failure reason."""

    error: str = Field(..., description="Reason string, e.g. 'Grievance not found'")
