"""
Grievance store operations: visibility-scoped listing and stats, create with
attachments, status updates, delete, and attachment lookup.

Visibility: admins see every grievance; users see only grievances they created.
Status NULL on legacy rows is read as 'open'.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from sqlalchemy import func, literal_column, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from grievance_tracker.core.errors import (
    BadRequest,
    Forbidden,
    Internal,
    InvalidStatus,
    NotFound,
)
from grievance_tracker.models import Grievance, GrievanceFile
from grievance_tracker.models.base import utcnow
from grievance_tracker.schemas.auth import ROLE_ADMIN, CurrentUser
from grievance_tracker.schemas.grievance import (
    DEFAULT_STATUS,
    GRIEVANCE_STATUSES,
    FileOut,
    GrievanceListResponse,
    GrievanceOut,
    GrievanceStats,
    OwnerOut,
)
from grievance_tracker.services.access_control import is_owner_or_admin
from grievance_tracker.services.storage import (
    FileTooLargeError,
    LocalFileStorage,
    StorageError,
    StoredFile,
)

if TYPE_CHECKING:
    from grievance_tracker.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 200

# 'open' in a status filter also matches these stored values (plus NULL).
_OPEN_EQUIVALENTS = ("open", "pending")


@dataclass(frozen=True)
class IncomingFile:
    """An uploaded file not yet written to storage."""

    original_name: str
    content_type: str
    stream: BinaryIO


@dataclass(frozen=True)
class FileLocation:
    """Where an attachment's bytes live, plus what to send as filename/media type."""

    location: Path
    original_name: str
    mimetype: str


def to_grievance_out(grievance: Grievance) -> GrievanceOut:
    """Build the API representation with owner name/email resolved."""
    owner = grievance.owner
    return GrievanceOut(
        id=grievance.id,
        title=grievance.title,
        description=grievance.description,
        status=grievance.status,
        files=[FileOut.model_validate(f) for f in grievance.files],
        created_by=(
            OwnerOut(id=owner.id, name=owner.name, email=owner.email) if owner else None
        ),
        created_at=grievance.created_at,
        updated_at=grievance.updated_at,
    )


def parse_status_filter(raw: str | None) -> list[str]:
    """Split a comma-separated status filter into unique lowercase tokens, keeping order."""
    if not raw:
        return []
    tokens: list[str] = []
    for part in raw.split(","):
        token = part.strip().lower()
        if token and token not in tokens:
            tokens.append(token)
    return tokens


def _status_condition(tokens: list[str]):
    """
    SQL predicate for a status token set, or None for no filtering.

    'open' expands to open, pending or NULL; other tokens match exactly (case-insensitive).
    """
    if not tokens:
        return None
    lowered = func.lower(Grievance.status)
    if DEFAULT_STATUS not in tokens:
        return lowered.in_(tokens)
    conditions = [lowered.in_(_OPEN_EQUIVALENTS), Grievance.status.is_(None)]
    others = [t for t in tokens if t != DEFAULT_STATUS]
    if others:
        conditions.append(lowered.in_(others))
    return or_(*conditions)


def _visibility_conditions(subject: CurrentUser) -> list:
    if subject.role == ROLE_ADMIN:
        return []
    return [Grievance.created_by == subject.id]


def clamp_page(page: int | None, limit: int | None) -> tuple[int, int]:
    """Page >= 1; limit within [1, MAX_PAGE_SIZE], defaulting to DEFAULT_PAGE_SIZE."""
    page = max(1, page or 1)
    limit = DEFAULT_PAGE_SIZE if limit is None else limit
    limit = max(1, min(MAX_PAGE_SIZE, limit))
    return page, limit


def list_grievances(
    db: Session,
    subject: CurrentUser,
    status: str | None = None,
    page: int | None = 1,
    limit: int | None = DEFAULT_PAGE_SIZE,
) -> GrievanceListResponse:
    """
    Return one page of visible grievances, newest first, plus the total count.

    The total is a separate COUNT over the same predicate, not the page length.
    """
    page, limit = clamp_page(page, limit)
    conditions = _visibility_conditions(subject)
    status_condition = _status_condition(parse_status_filter(status))
    if status_condition is not None:
        conditions.append(status_condition)

    total = db.query(func.count(Grievance.id)).filter(*conditions).scalar() or 0
    rows = (
        db.query(Grievance)
        .options(selectinload(Grievance.files))
        .filter(*conditions)
        .order_by(Grievance.created_at.desc(), Grievance.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return GrievanceListResponse(
        items=[to_grievance_out(g) for g in rows],
        total=total,
        page=page,
        limit=limit,
    )


def grievance_stats(db: Session, subject: CurrentUser) -> GrievanceStats:
    """Count visible grievances per lowercased status (NULL counted as 'open')."""
    label = func.lower(func.coalesce(Grievance.status, literal_column(f"'{DEFAULT_STATUS}'")))
    rows = (
        db.query(label, func.count(Grievance.id))
        .filter(*_visibility_conditions(subject))
        .group_by(label)
        .all()
    )
    by_status = {status: count for status, count in rows}
    return GrievanceStats(total=sum(by_status.values()), by_status=by_status)


def coerce_status(value: str | None) -> str:
    """Normalize a requested status and check it against the closed set."""
    status = (value or "").strip().lower()
    if status not in GRIEVANCE_STATUSES:
        raise InvalidStatus(
            f"Invalid status. Must be one of: {', '.join(GRIEVANCE_STATUSES)}"
        )
    return status


def _validate_uploads(files: list[IncomingFile], settings: Settings) -> None:
    if len(files) > settings.UPLOAD_MAX_FILES:
        raise BadRequest(f"At most {settings.UPLOAD_MAX_FILES} files per grievance.")
    allowed = set(settings.UPLOAD_ALLOWED_EXTENSIONS)
    for f in files:
        ext = Path(f.original_name or "").suffix.lower()
        if ext not in allowed:
            raise BadRequest(f"File type not allowed: {f.original_name or '(unnamed)'}")


def _discard_staged(storage: LocalFileStorage, staged: list[StoredFile]) -> None:
    """Compensating action for a failed create: remove every file written so far."""
    for stored in staged:
        try:
            storage.delete(stored.filename)
        except StorageError as e:
            logger.warning(
                "Could not remove staged upload",
                extra={"stored_filename": stored.filename, "reason": e.message[:200]},
            )


def create_grievance(
    db: Session,
    storage: LocalFileStorage,
    subject: CurrentUser,
    title: str | None,
    description: str | None,
    files: list[IncomingFile] | None,
    settings: Settings,
) -> GrievanceOut:
    """
    Persist a new grievance owned by subject, with up to UPLOAD_MAX_FILES attachments.

    Input is validated before anything is written. If storing a file or committing
    the record fails, files already written for this submission are removed before
    the error is raised.
    """
    title = (title or "").strip()
    description = (description or "").strip()
    if not title or not description:
        raise BadRequest("Title and description are required.")
    files = files or []
    _validate_uploads(files, settings)

    staged: list[StoredFile] = []
    try:
        attachments: list[GrievanceFile] = []
        for position, incoming in enumerate(files):
            stored = storage.save(
                incoming.stream,
                incoming.original_name,
                max_bytes=settings.UPLOAD_MAX_FILE_BYTES,
            )
            staged.append(stored)
            attachments.append(
                GrievanceFile(
                    position=position,
                    filename=stored.filename,
                    original_name=incoming.original_name or stored.filename,
                    path=f"{settings.API_PREFIX}/grievances/files/{stored.filename}",
                    size=stored.size,
                    mimetype=incoming.content_type or "application/octet-stream",
                )
            )
        now = utcnow()
        grievance = Grievance(
            title=title,
            description=description,
            status=DEFAULT_STATUS,
            created_by=subject.id,
            created_at=now,
            updated_at=now,
            files=attachments,
        )
        db.add(grievance)
        db.commit()
    except Exception as e:
        db.rollback()
        _discard_staged(storage, staged)
        if isinstance(e, FileTooLargeError):
            raise BadRequest(e.message) from e
        if not isinstance(e, (StorageError, SQLAlchemyError)):
            raise
        logger.error(
            "Grievance create failed",
            extra={"user_id": subject.id, "staged_files": len(staged), "reason": str(e)[:500]},
        )
        raise Internal("Could not save grievance") from e

    db.refresh(grievance)
    logger.info(
        "Grievance created",
        extra={"grievance_id": grievance.id, "user_id": subject.id, "file_count": len(staged)},
    )
    return to_grievance_out(grievance)


def update_status(db: Session, grievance_id: int, new_status: str | None) -> GrievanceOut:
    """
    Set status and updated_at in one UPDATE statement. Role is checked by the caller.

    Concurrent updates are last-write-wins.
    """
    status = coerce_status(new_status)
    updated = (
        db.query(Grievance)
        .filter(Grievance.id == grievance_id)
        .update(
            {Grievance.status: status, Grievance.updated_at: utcnow()},
            synchronize_session=False,
        )
    )
    db.commit()
    if not updated:
        raise NotFound("Grievance not found")
    grievance = db.get(Grievance, grievance_id)
    if grievance is None:
        raise NotFound("Grievance not found")
    db.refresh(grievance)
    logger.info(
        "Grievance status updated",
        extra={"grievance_id": grievance_id, "status": status},
    )
    return to_grievance_out(grievance)


def delete_grievance(db: Session, storage: LocalFileStorage, grievance_id: int) -> None:
    """
    Remove attachments (best-effort) then the record. Ownership is checked by the caller.

    NotFound if the record disappeared after the ownership check.
    """
    grievance = db.get(Grievance, grievance_id)
    if grievance is None:
        raise NotFound("Grievance not found")
    for attachment in grievance.files:
        try:
            storage.delete(attachment.filename)
        except StorageError as e:
            logger.warning(
                "Could not remove attachment",
                extra={
                    "grievance_id": grievance_id,
                    "stored_filename": attachment.filename,
                    "reason": e.message[:200],
                },
            )
    db.delete(grievance)
    db.commit()
    logger.info("Grievance deleted", extra={"grievance_id": grievance_id})


def fetch_file(
    db: Session,
    storage: LocalFileStorage,
    subject: CurrentUser,
    filename: str,
) -> FileLocation:
    """
    Resolve an attachment by stored filename and apply the owner-or-admin rule.

    NotFound when no grievance has such an attachment or its bytes are gone.
    """
    attachment = (
        db.query(GrievanceFile).filter(GrievanceFile.filename == filename).first()
    )
    if attachment is None:
        raise NotFound("File not found")
    if not is_owner_or_admin(subject, attachment.grievance.created_by):
        raise Forbidden()
    if not storage.exists(filename):
        logger.warning(
            "Attachment row without stored bytes",
            extra={"grievance_id": attachment.grievance_id, "stored_filename": filename},
        )
        raise NotFound("File not found")
    return FileLocation(
        location=storage.locate(filename),
        original_name=attachment.original_name,
        mimetype=attachment.mimetype,
    )
