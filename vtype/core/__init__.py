"""
Core functionality package.

This package contains core application components including:
- Configuration management
- Logging
- Exceptions and error handlers
- Token lifecycle and authentication
"""

from vtype.core.config import settings

__all__ = [
    # Config
    "settings",
]
