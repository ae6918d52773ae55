"""
Database initialization and cleanup utilities.
"""

from vtype.db.session import sessionmanager
from vtype.db.base_class import EntityBase
from vtype.core.logging import logger

async def init_db() -> None:
    """
    Initialize database tables and register models.
    This should be called during application startup.
    """
    # Importing the models registers their tables on the shared metadata
    import vtype.models  # noqa: F401

    logger.info("Initializing database")
    async with sessionmanager.engine.begin() as conn:
        await conn.run_sync(EntityBase.metadata.create_all)
    logger.info(
        "Database initialization complete",
        extra={"tables": sorted(EntityBase.metadata.tables.keys())}
    )

async def dispose_db() -> None:
    """
    Clean up database connections.
    This should be called during application shutdown.
    """
    try:
        logger.info("Disposing database connections")
        await sessionmanager.close()
        logger.info("Database connections disposed")
    except Exception as e:
        logger.error("Error during database disposal", extra={"error": str(e)})
        raise
