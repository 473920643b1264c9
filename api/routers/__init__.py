"""
Router package for the Class Scheduler API.

This package contains all API routers organized by domain:
- health: Health check endpoints
- schedule: Auto-schedule catch-up, toggle and quick-add endpoints
"""

from api.routers.health import router as health_router
from api.routers.schedule import router as schedule_router

__all__ = [
    "health_router",
    "schedule_router",
]
