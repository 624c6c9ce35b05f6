from .range_result import ChunkResult
from .batch_fetcher import BatchFetcher

__all__ = [
    "ChunkResult",
    "BatchFetcher",
]
