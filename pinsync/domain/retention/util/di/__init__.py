from pinsync.domain.retention.util.di.provider import RetentionProvider

__all__ = ["RetentionProvider"]
