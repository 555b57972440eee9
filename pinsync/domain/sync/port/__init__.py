from pinsync.domain.sync.port.watermark import WatermarkStore

__all__ = ["WatermarkStore"]
