"""
Token store maintenance endpoints.

Every route requires the admin role. Sweeps here run the same code as the
scheduled tasks, on demand.
"""

from fastapi import APIRouter, Depends, Request

from vtype.core.auth import get_current_admin
from vtype.core.error_handlers import get_error_responses
from vtype.core.exceptions import ServiceUnavailable
from vtype.core.logging import logger
from vtype.models import User
from vtype.schemas.admin import (
    CleanupResponse,
    StoreStatsResponse,
    SweepResponse,
)
from vtype.services.maintenance import CleanupScheduler, TokenCleanupService

router = APIRouter()


def get_cleanup_service(request: Request) -> TokenCleanupService:
    return request.app.state.cleanup


def get_scheduler(request: Request) -> CleanupScheduler:
    return request.app.state.scheduler


@router.get(
    "/redis/stats",
    response_model=StoreStatsResponse,
    responses=get_error_responses("admin_stats")
)
async def get_store_stats(
    admin: User = Depends(get_current_admin),
    cleanup: TokenCleanupService = Depends(get_cleanup_service)
) -> StoreStatsResponse:
    """Key counts per token store category."""
    stats = await cleanup.get_store_stats()
    if stats is None:
        raise ServiceUnavailable(detail="Failed to get Redis statistics")
    return StoreStatsResponse(success=True, stats=stats)


@router.post(
    "/cleanup/all",
    response_model=CleanupResponse,
    responses=get_error_responses("admin_cleanup")
)
async def cleanup_all(
    admin: User = Depends(get_current_admin),
    scheduler: CleanupScheduler = Depends(get_scheduler)
) -> CleanupResponse:
    logger.info("Manual cleanup requested", extra={"admin_id": str(admin.id)})
    report = await scheduler.trigger_manual_cleanup()
    return CleanupResponse(success=True, message="Manual cleanup completed", result=report)


@router.post(
    "/cleanup/access-tokens",
    response_model=SweepResponse,
    responses=get_error_responses("admin_cleanup")
)
async def cleanup_access_tokens(
    admin: User = Depends(get_current_admin),
    cleanup: TokenCleanupService = Depends(get_cleanup_service)
) -> SweepResponse:
    cleaned = await cleanup.cleanup_expired_access_tokens()
    return SweepResponse(
        success=True,
        message="Access token cleanup completed",
        cleaned_count=cleaned
    )


@router.post(
    "/cleanup/refresh-tokens",
    response_model=SweepResponse,
    responses=get_error_responses("admin_cleanup")
)
async def cleanup_refresh_tokens(
    admin: User = Depends(get_current_admin),
    cleanup: TokenCleanupService = Depends(get_cleanup_service)
) -> SweepResponse:
    cleaned = await cleanup.cleanup_expired_refresh_tokens()
    return SweepResponse(
        success=True,
        message="Refresh token cleanup completed",
        cleaned_count=cleaned
    )


@router.post(
    "/cleanup/sessions",
    response_model=SweepResponse,
    responses=get_error_responses("admin_cleanup")
)
async def cleanup_sessions(
    admin: User = Depends(get_current_admin),
    cleanup: TokenCleanupService = Depends(get_cleanup_service)
) -> SweepResponse:
    cleaned = await cleanup.cleanup_inactive_sessions()
    return SweepResponse(
        success=True,
        message="Session cleanup completed",
        cleaned_count=cleaned
    )
