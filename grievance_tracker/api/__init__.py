"""API routes."""

from fastapi import APIRouter

from grievance_tracker.api import auth, grievances, health

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(grievances.router, prefix="/grievances", tags=["grievances"])
