from pinsync.domain.sync.schedule.refresh import RefreshSchedule

__all__ = ["RefreshSchedule"]
