"""Core app configuration and database."""

from grievance_tracker.core.config import get_settings, settings
from grievance_tracker.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
