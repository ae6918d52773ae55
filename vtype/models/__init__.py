"""
Public API for models package.
All models should be imported from here rather than directly from their modules.
"""

from .user import User
from .chat import Message
from .enums import MessageType, UserRole

__all__ = [
    # User and Authentication
    "User",
    "UserRole",

    # Direct messages
    "Message",
    "MessageType",
]
