"""Grievance Tracker: grievance submission, tracking and triage API."""

__version__ = "0.1.0"
