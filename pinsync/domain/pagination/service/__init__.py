from pinsync.domain.pagination.service.paginator import ChunkPaginator, Page

__all__ = ["ChunkPaginator", "Page"]
