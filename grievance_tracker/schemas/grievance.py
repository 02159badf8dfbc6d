"""Pydantic schemas for grievances, attachments, listing and stats. JSON keys are camelCase."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

GrievanceStatus = Literal["open", "pending", "resolved", "rejected"]

# Closed status set, in lifecycle order.
GRIEVANCE_STATUSES: tuple[str, ...] = ("open", "pending", "resolved", "rejected")

DEFAULT_STATUS: GrievanceStatus = "open"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class FileOut(_CamelModel):
    """Attachment metadata; bytes are served by GET /grievances/files/{filename}."""

    filename: str
    original_name: str
    path: str
    size: int
    mimetype: str
    uploaded_at: datetime


class OwnerOut(_CamelModel):
    id: int
    name: str | None = None
    email: str


class GrievanceOut(_CamelModel):
    """Grievance record with owner resolved and files in upload order."""

    id: int
    title: str
    description: str
    status: str | None = None
    files: list[FileOut] = Field(default_factory=list)
    created_by: OwnerOut | None = None
    created_at: datetime
    updated_at: datetime


class GrievanceListResponse(BaseModel):
    """One page of grievances plus the total matching the same filter."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[GrievanceOut] = Field(default_factory=list, alias="list")
    total: int = Field(..., ge=0, description="Count of all matching grievances, ignoring pagination")
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1, le=200)


class GrievanceStats(_CamelModel):
    """Counts per normalized status; total equals the sum of by_status."""

    total: int = Field(..., ge=0)
    by_status: dict[str, int] = Field(default_factory=dict)


class StatusUpdateRequest(BaseModel):
    """New status; validated against the closed set by the service."""

    status: str = Field(default="", max_length=32)


class DeleteResponse(BaseModel):
    ok: bool = True
