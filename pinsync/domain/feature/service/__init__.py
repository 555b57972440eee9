from .processor import RecordProcessor

__all__ = ["RecordProcessor"]
