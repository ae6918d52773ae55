"""
Enumeration classes for VType application.

This module defines strongly-typed enums for:
- Message content types
- User roles
"""

from enum import Enum
from typing import List

class MessageType(str, Enum):
    """Kinds of content a direct message can carry."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"
    AUDIO = "audio"

    @classmethod
    def get_values(cls) -> List[str]:
        """Return list of enum values."""
        return [e.value for e in cls]

class UserRole(str, Enum):
    """Roles granted to an account."""

    USER = "user"
    ADMIN = "admin"
    MODERATOR = "moderator"

    @classmethod
    def get_values(cls) -> List[str]:
        """Return list of enum values."""
        return [e.value for e in cls]
