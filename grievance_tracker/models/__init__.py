"""SQLAlchemy ORM models."""

from grievance_tracker.models.base import Base
from grievance_tracker.models.grievance import Grievance, GrievanceFile
from grievance_tracker.models.user import User

__all__ = ["Base", "Grievance", "GrievanceFile", "User"]
