"""
Main router for API v1.

This module aggregates all endpoint routers and configures their prefixes and tags.
The websocket router is mounted by the application itself at ``/ws``.
"""

from fastapi import APIRouter

from vtype.api.v1.endpoints import (
    admin_router,
    auth_router,
    chat_router,
    health_router,
    user_router
)

api_router = APIRouter()

# Include all route modules with their prefixes and tags
api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])
api_router.include_router(chat_router, prefix="/chat", tags=["chat"])
api_router.include_router(user_router, prefix="/users", tags=["users"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])
api_router.include_router(health_router, prefix="/health", tags=["health"])
