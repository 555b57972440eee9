from pinsync.domain.retention.service.monitor import RetentionMonitor

__all__ = ["RetentionMonitor"]
