"""
API v1 endpoints package.

This package contains all the API endpoints for version 1 of the application.
Endpoints are organized by resource type and functionality.
"""

from vtype.api.v1.endpoints.admin import router as admin_router
from vtype.api.v1.endpoints.auth import router as auth_router
from vtype.api.v1.endpoints.chat import router as chat_router
from vtype.api.v1.endpoints.health import router as health_router
from vtype.api.v1.endpoints.realtime import router as realtime_router
from vtype.api.v1.endpoints.user import router as user_router

__all__ = [
    "admin_router",
    "auth_router",
    "chat_router",
    "health_router",
    "realtime_router",
    "user_router"
]
