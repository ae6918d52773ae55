"""
Schema package for VType application.

This package defines all Pydantic models used for:
- Data validation
- API request/response models
- Websocket frames
"""

# Authentication schemas
from vtype.schemas.auth import (
    UserCreate,
    UserLogin,
    TokenBundle,
    TokenRefreshRequest,
    AuthUser,
    AuthResponse,
    RefreshResponse,
    MessageResponse
)

# User profile schemas
from vtype.schemas.user import (
    UserProfile,
    ProfileEnvelope,
    PublicUser,
    UserSearchResponse,
    ProfileUpdate,
    PasswordChange
)

# Chat history schemas
from vtype.schemas.chat import (
    MessageSender,
    ChatMessage,
    Pagination,
    ChatHistoryResponse,
    LastMessage,
    Contact,
    ContactsResponse
)

# Maintenance schemas
from vtype.schemas.admin import (
    StoreStats,
    StoreStatsResponse,
    CleanupReport,
    CleanupResponse,
    SweepResponse
)

__all__ = [
    # Auth schemas
    "UserCreate", "UserLogin", "TokenBundle", "TokenRefreshRequest",
    "AuthUser", "AuthResponse", "RefreshResponse", "MessageResponse",

    # User schemas
    "UserProfile", "ProfileEnvelope", "PublicUser", "UserSearchResponse",
    "ProfileUpdate", "PasswordChange",

    # Chat schemas
    "MessageSender", "ChatMessage", "Pagination", "ChatHistoryResponse",
    "LastMessage", "Contact", "ContactsResponse",

    # Admin schemas
    "StoreStats", "StoreStatsResponse", "CleanupReport", "CleanupResponse",
    "SweepResponse"
]
