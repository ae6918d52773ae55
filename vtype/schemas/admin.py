"""
Maintenance and store statistics schemas.
"""

from typing import Optional

from vtype.schemas.base import CamelModel


class StoreStats(CamelModel):
    """Key counts per category in the token store."""
    access_token_count: int = 0
    refresh_token_count: int = 0
    blacklist_count: int = 0
    session_count: int = 0
    user_status_count: int = 0
    total_keys: int = 0


class StoreStatsResponse(CamelModel):
    success: bool
    stats: Optional[StoreStats] = None


class CleanupReport(CamelModel):
    """Result of running every sweep at once."""
    access_tokens_cleaned: int
    refresh_tokens_cleaned: int
    sessions_cleaned: int
    before_stats: Optional[StoreStats] = None
    after_stats: Optional[StoreStats] = None


class CleanupResponse(CamelModel):
    success: bool
    message: str
    result: CleanupReport


class SweepResponse(CamelModel):
    success: bool
    message: str
    cleaned_count: int
