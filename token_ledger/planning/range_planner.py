from typing import Iterator
from .block_range import Chunk

# -------------------------
# Bounded, sequential chunk generation
# knows nothing about fetch results
# no retry
# -------------------------
class RangePlanner:
    """
    Backfill planner over an inclusive block range.

    - fixed range_size, last chunk clipped to end_block
    - contiguous, no gaps, no overlaps
    - restartable: every iteration starts again from start_block
    """

    def __init__(self, start_block: int, end_block: int, range_size: int):
        if range_size < 1:
            raise ValueError(f"range_size must be >= 1, got {range_size}")

        self.start_block = start_block
        self.end_block = end_block
        self.range_size = range_size

    def __iter__(self) -> Iterator[Chunk]:
        next_block = self.start_block
        range_id = 0

        while next_block <= self.end_block:
            end = min(next_block + self.range_size - 1, self.end_block)
            yield Chunk(range_id=range_id, from_block=next_block, to_block=end)

            next_block = end + 1
            range_id += 1

    def __len__(self) -> int:
        if self.start_block > self.end_block:
            return 0
        return -(-(self.end_block - self.start_block + 1) // self.range_size)

    def __repr__(self) -> str:
        return (
            f"RangePlanner(start_block={self.start_block}, "
            f"end_block={self.end_block}, range_size={self.range_size})"
        )


def plan(from_block: int, to_block: int, chunk_size: int) -> RangePlanner:
    return RangePlanner(from_block, to_block, chunk_size)
