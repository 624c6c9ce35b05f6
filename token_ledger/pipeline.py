import time

from token_ledger.config import JobConfig
from token_ledger.event_source import EventSource
from token_ledger.execution import BatchFetcher
from token_ledger.ledger import Ledger, replay
from token_ledger.logging import log
from token_ledger.metrics import LEDGER_OWNERS, TRANSFERS_NORMALIZED, TRANSFERS_REPLAYED
from token_ledger.normalizer import normalize_all, normalizer_for
from token_ledger.planning import plan
from token_ledger.sequencer import check_order, sequence


def transfer_summary(records) -> dict:
    return {
        "transfers": len(records),
        "mints": sum(1 for r in records if r.is_mint),
        "burns": sum(1 for r in records if r.is_burn),
    }


def build_snapshot(config: JobConfig, source: EventSource) -> Ledger:
    """
    plan -> fetch -> normalize -> sequence -> replay

    Raises on the first failure of any stage; a failed run produces nothing.
    """
    started = time.perf_counter()
    chunks = plan(config.from_block, config.to_block, config.chunk_size)
    normalizer = normalizer_for(config.standard)

    log.info(
        "🚀 job_start",
        extra={
            "chain": config.chain,
            "contract": config.contract,
            "standard": config.standard.name,
            "range_start": config.from_block,
            "range_end": config.to_block,
            "chunk_size": config.chunk_size,
            "chunks": len(chunks),
            "fan_out": config.fan_out,
        },
    )

    # -----------------------------
    # fetch everything before normalizing
    # -----------------------------
    fetcher = BatchFetcher(
        source,
        config.contract,
        config.standard,
        fan_out=config.fan_out,
        chain=config.chain,
    )
    results = list(fetcher.fetch(chunks))

    log.info(
        "fetch_done",
        extra={
            "chain": config.chain,
            "chunks": len(results),
            "logs": sum(len(r.logs) for r in results),
        },
    )

    records = normalize_all(normalizer, results)
    TRANSFERS_NORMALIZED.labels(chain=config.chain, standard=config.standard.name).inc(len(records))

    ordered = sequence(records)
    check_order(ordered)

    ledger = replay(ordered)
    TRANSFERS_REPLAYED.labels(chain=config.chain, standard=config.standard.name).inc(len(ordered))
    LEDGER_OWNERS.labels(chain=config.chain, contract=config.contract).set(len(ledger))

    log.info(
        "ledger_replayed",
        extra={
            "chain": config.chain,
            "contract": config.contract,
            **transfer_summary(ordered),
            "owners": len(ledger),
            "cost_sec": round(time.perf_counter() - started, 2),
        },
    )
    return ledger
