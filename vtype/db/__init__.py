"""
Database package initialization.
Exports core database functionality.
"""

from vtype.db.base_class import EntityBase
from vtype.db.init_db import init_db, dispose_db
from vtype.db.session import (
    DatabaseSessionManager,
    sessionmanager,
    get_db,
    create_all,
    drop_all
)

__all__ = [
    # Base class and registry
    "EntityBase",

    # Database initialization and cleanup
    "init_db",
    "dispose_db",

    # Session management
    "DatabaseSessionManager",
    "sessionmanager",
    "get_db",
    "create_all",
    "drop_all"
]
