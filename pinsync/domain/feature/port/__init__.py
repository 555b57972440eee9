from pinsync.domain.feature.port.data_source import DataSource

__all__ = ["DataSource"]
