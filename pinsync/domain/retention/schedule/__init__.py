from pinsync.domain.retention.schedule.cleanup import CleanupSchedule

__all__ = ["CleanupSchedule"]
