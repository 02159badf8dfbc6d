"""
Grievance endpoints. Each route states its access checks explicitly:

  list, stats, create      -> authenticated (visibility scoped by role in the service)
  read one, delete         -> authenticated + owner-or-admin
  change status            -> authenticated + admin
  download attachment      -> authenticated + owner-or-admin of the owning grievance
"""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from grievance_tracker.api.deps import get_current_user, get_storage, require_admin
from grievance_tracker.core.config import get_settings
from grievance_tracker.core.database import get_db
from grievance_tracker.schemas.auth import CurrentUser
from grievance_tracker.schemas.errors import ErrorResponse
from grievance_tracker.schemas.grievance import (
    DeleteResponse,
    GrievanceListResponse,
    GrievanceOut,
    GrievanceStats,
    StatusUpdateRequest,
)
from grievance_tracker.services import grievances as service
from grievance_tracker.services.access_control import require_owner_or_admin
from grievance_tracker.services.storage import LocalFileStorage

router = APIRouter()

_AUTH_ERRORS = {401: {"model": ErrorResponse}}
_OWNED_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}


@router.get("", response_model=GrievanceListResponse, responses=_AUTH_ERRORS)
def list_grievances(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    status_filter: Annotated[
        str | None,
        Query(
            alias="status",
            description="Comma-separated statuses, case-insensitive. 'open' also matches pending and unset.",
        ),
    ] = None,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    limit: Annotated[int, Query(description="Page size, clamped to 1..200")] = service.DEFAULT_PAGE_SIZE,
) -> GrievanceListResponse:
    """
    List grievances newest first. Users see only their own; admins see all.

    Examples: ?status=resolved, ?status=resolved,rejected, ?status=open
    """
    return service.list_grievances(db, current_user, status_filter, page, limit)


@router.post(
    "",
    response_model=GrievanceOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
)
def create_grievance(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalFileStorage, Depends(get_storage)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    title: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    files: Annotated[list[UploadFile] | None, File(description="Up to 5 attachments")] = None,
) -> GrievanceOut:
    """File a grievance as multipart/form-data with title, description and optional files."""
    incoming = [
        service.IncomingFile(
            original_name=f.filename or "",
            content_type=f.content_type or "application/octet-stream",
            stream=f.file,
        )
        for f in files or []
    ]
    return service.create_grievance(
        db,
        storage,
        current_user,
        title,
        description,
        incoming,
        get_settings(),
    )


# Fixed paths must be registered before /{grievance_id}.
@router.get("/stats", response_model=GrievanceStats, responses=_AUTH_ERRORS)
def get_stats(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> GrievanceStats:
    """Counts per status over the grievances visible to the caller."""
    return service.grievance_stats(db, current_user)


@router.get(
    "/files/{filename}",
    response_class=FileResponse,
    responses=_OWNED_ERRORS,
)
def download_file(
    filename: str,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalFileStorage, Depends(get_storage)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> FileResponse:
    """Stream an attachment to its grievance's owner or an admin."""
    found = service.fetch_file(db, storage, current_user, filename)
    return FileResponse(
        found.location,
        media_type=found.mimetype,
        filename=found.original_name,
        content_disposition_type="inline",
    )


@router.get("/{grievance_id}", response_model=GrievanceOut, responses=_OWNED_ERRORS)
def get_grievance(
    grievance_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> GrievanceOut:
    """Track a single grievance by id."""
    grievance = require_owner_or_admin(db, current_user, grievance_id)
    return service.to_grievance_out(grievance)


@router.patch(
    "/{grievance_id}/status",
    response_model=GrievanceOut,
    responses={400: {"model": ErrorResponse}, **_OWNED_ERRORS},
)
def patch_status(
    grievance_id: int,
    body: StatusUpdateRequest,
    db: Annotated[Session, Depends(get_db)],
    _admin: Annotated[CurrentUser, Depends(require_admin)],
) -> GrievanceOut:
    """Change status (admin only). Allowed values: open, pending, resolved, rejected."""
    return service.update_status(db, grievance_id, body.status)


@router.delete("/{grievance_id}", response_model=DeleteResponse, responses=_OWNED_ERRORS)
def delete_grievance(
    grievance_id: int,
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[LocalFileStorage, Depends(get_storage)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> DeleteResponse:
    """Delete a grievance and its attachments (owner or admin)."""
    require_owner_or_admin(db, current_user, grievance_id)
    service.delete_grievance(db, storage, grievance_id)
    return DeleteResponse(ok=True)
