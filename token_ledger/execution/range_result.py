from dataclasses import dataclass, field

from token_ledger.models import RawLog
from token_ledger.planning import Chunk


# Fetched logs for one chunk (event source -> normalizer)
@dataclass
class ChunkResult:
    chunk: Chunk
    logs: list[RawLog] = field(default_factory=list)
    cost_sec: float | None = None
