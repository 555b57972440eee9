from .snapshot import SnapshotStore

__all__ = ["SnapshotStore"]
