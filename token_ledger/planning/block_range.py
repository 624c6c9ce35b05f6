from dataclasses import dataclass


# One eth_getLogs query window, both ends inclusive
@dataclass(frozen=True)
class Chunk:
    range_id: int
    from_block: int
    to_block: int

    @property
    def size(self) -> int:
        return self.to_block - self.from_block + 1
