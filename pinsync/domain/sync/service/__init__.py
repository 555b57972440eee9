from pinsync.domain.sync.service.coordinator import SyncCoordinator, cache_key
from pinsync.domain.sync.service.single_flight import CacheEntry, SingleFlight

__all__ = ["CacheEntry", "SingleFlight", "SyncCoordinator", "cache_key"]
