from pinsync.domain.snapshot.port.blob_store import BlobStore

__all__ = ["BlobStore"]
