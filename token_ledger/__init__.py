from token_ledger.config import JobConfig, TokenStandard
from token_ledger.errors import (
    ConfigurationError,
    InvariantViolation,
    LedgerJobError,
    NormalizationError,
    TransportError,
)
from token_ledger.event_source import EventSource, Web3EventSource
from token_ledger.execution import BatchFetcher, ChunkResult
from token_ledger.ledger import Ledger, replay
from token_ledger.models import ZERO_ADDRESS, RawLog, Transfer
from token_ledger.normalizer import normalizer_for, normalize_all
from token_ledger.pipeline import build_snapshot
from token_ledger.planning import Chunk, RangePlanner, plan
from token_ledger.sequencer import sequence

__all__ = [
    "JobConfig",
    "TokenStandard",
    "ConfigurationError",
    "InvariantViolation",
    "LedgerJobError",
    "NormalizationError",
    "TransportError",
    "EventSource",
    "Web3EventSource",
    "BatchFetcher",
    "ChunkResult",
    "Ledger",
    "replay",
    "ZERO_ADDRESS",
    "RawLog",
    "Transfer",
    "normalizer_for",
    "normalize_all",
    "build_snapshot",
    "Chunk",
    "RangePlanner",
    "plan",
    "sequence",
]
