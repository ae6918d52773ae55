from vtype.services.maintenance.token_cleanup import TokenCleanupService
from vtype.services.maintenance.scheduler import CleanupScheduler, seconds_until_next_run

__all__ = ["TokenCleanupService", "CleanupScheduler", "seconds_until_next_run"]
