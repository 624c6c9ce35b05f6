from .block_range import Chunk
from .range_planner import RangePlanner, plan

__all__ = [
    "Chunk",
    "RangePlanner",
    "plan",
]
