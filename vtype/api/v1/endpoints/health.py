"""Health check endpoints for monitoring application status."""
from typing import Dict

from fastapi import APIRouter, Depends, Request
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from vtype.core.logging import logger
from vtype.db.session import get_db

router = APIRouter()


@router.get("/", response_model=Dict[str, str])
async def health_check(request: Request) -> Dict[str, str]:
    """Liveness plus token store availability."""
    store = "connected"
    try:
        await request.app.state.redis.ping()
    except (RedisError, OSError) as e:
        logger.warning(
            "Token store health check failed",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        store = "unavailable"
    return {"status": "healthy", "store": store}


@router.get("/db", response_model=Dict[str, str])
async def db_health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, str]:
    """Check database connection health."""
    try:
        await db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        logger.error(
            "Database health check failed",
            extra={
                "error": str(e),
                "error_type": type(e).__name__
            }
        )
        return {"status": "unhealthy", "database": "disconnected"}
