import time
from itertools import islice
from typing import Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor, wait

from token_ledger.config import TokenStandard, DEFAULT_FAN_OUT
from token_ledger.errors import TransportError
from token_ledger.event_source import EventSource
from token_ledger.execution.range_result import ChunkResult
from token_ledger.logging import log
from token_ledger.metrics import (
    LOGS_FETCHED,
    RANGE_FETCH_LATENCY,
    RANGES_FAILED,
    RANGES_FETCHED,
)
from token_ledger.normalizer import count_events, normalizer_for
from token_ledger.planning import Chunk


def fetch_range_timed(source: EventSource, address, topics, chunk: Chunk) -> ChunkResult:
    task_start = time.perf_counter()
    logs = source.query_logs(address, topics, chunk.from_block, chunk.to_block)
    return ChunkResult(
        chunk=chunk,
        logs=logs,
        cost_sec=time.perf_counter() - task_start,
    )


class BatchFetcher:
    """
    Fetch chunk logs in groups of `fan_out` concurrent queries.

    Each group is a hard barrier: every query of the group settles before the
    next group is planned, so at most `fan_out` requests are ever in flight.
    The first failing chunk of a group aborts the whole fetch; nothing of that
    group is yielded.
    """

    def __init__(
        self,
        source: EventSource,
        address: str,
        standard: TokenStandard,
        fan_out: int = DEFAULT_FAN_OUT,
        chain: str = "eth",
    ):
        if fan_out < 1:
            raise ValueError(f"fan_out must be >= 1, got {fan_out}")

        self.source = source
        self.address = address
        self.standard = standard
        self.topics = normalizer_for(standard).topics
        self.fan_out = fan_out
        self.chain = chain

    def fetch(self, chunks: Iterable[Chunk]) -> Iterator[ChunkResult]:
        chunk_iter = iter(chunks)

        with ThreadPoolExecutor(
            max_workers=self.fan_out,
            thread_name_prefix="range-fetch",
        ) as pool:
            while True:
                group = list(islice(chunk_iter, self.fan_out))
                if not group:
                    return

                yield from self._fetch_group(pool, group)

    def _fetch_group(self, pool: ThreadPoolExecutor, group: list[Chunk]) -> list[ChunkResult]:
        futures = [
            pool.submit(
                fetch_range_timed,
                self.source,
                self.address,
                self.topics,
                chunk,
            )
            for chunk in group
        ]

        # -----------------------------
        # barrier: the whole group settles
        # -----------------------------
        wait(futures)

        results = []
        failure = None

        for chunk, future in zip(group, futures):
            exc = future.exception()
            if exc is not None:
                RANGES_FAILED.labels(chain=self.chain).inc()
                log.error(
                    "❌range_fetch_failed",
                    extra={
                        "chain": self.chain,
                        "range_id": chunk.range_id,
                        "range_start": chunk.from_block,
                        "range_end": chunk.to_block,
                        "error_type": type(exc).__name__,
                        "error": str(exc)[:200],
                    },
                )
                if failure is None:
                    failure = (chunk, exc)
                continue

            result = future.result()
            RANGES_FETCHED.labels(chain=self.chain).inc()
            RANGE_FETCH_LATENCY.labels(chain=self.chain).observe(result.cost_sec)
            LOGS_FETCHED.labels(chain=self.chain).inc(len(result.logs))

            log.info(
                "range_fetch_done",
                extra={
                    "chain": self.chain,
                    "range_id": chunk.range_id,
                    "range_start": chunk.from_block,
                    "range_end": chunk.to_block,
                    "cost_sec": round(result.cost_sec, 2),
                    "logs": len(result.logs),
                    "events": count_events(result.logs),
                },
            )
            results.append(result)

        if failure is not None:
            chunk, exc = failure
            raise TransportError(chunk, exc) from exc

        return results
