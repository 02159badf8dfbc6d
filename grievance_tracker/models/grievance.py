"""ORM models for grievances and their attached files."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from grievance_tracker.models.base import Base, utcnow


class Grievance(Base):
    """
    A filed complaint owned by the user who created it.

    status is one of open/pending/resolved/rejected. NULL appears on legacy rows
    and is read as 'open'.
    """

    __tablename__ = "grievances"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(32), nullable=True, default="open", index=True)
    created_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    owner = relationship("User", lazy="joined")
    files = relationship(
        "GrievanceFile",
        back_populates="grievance",
        order_by="GrievanceFile.position",
        cascade="all, delete-orphan",
    )


class GrievanceFile(Base):
    """File attached to a grievance; bytes live in file storage under filename."""

    __tablename__ = "grievance_files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    grievance_id = Column(
        Integer,
        ForeignKey("grievances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)
    filename = Column(String(64), nullable=False, unique=True, index=True)
    original_name = Column(String(512), nullable=False, default="")
    path = Column(String(1024), nullable=False)
    size = Column(Integer, nullable=False)
    mimetype = Column(String(255), nullable=False, default="application/octet-stream")
    uploaded_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )

    grievance = relationship("Grievance", back_populates="files")
