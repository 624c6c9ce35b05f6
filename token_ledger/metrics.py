from prometheus_client import Counter, Gauge, Histogram

# -----------------------------
# RPC
# -----------------------------
RPC_REQUESTS = Counter(
    "rpc_requests_total",
    "RPC requests by provider",
    ["chain", "rpc"],
)
RPC_ERRORS = Counter(
    "rpc_errors_total",
    "RPC errors by provider",
    ["chain", "rpc"],
)

# -----------------------------
# Fetch
# -----------------------------
RANGE_FETCH_LATENCY = Histogram(
    "ledger_range_fetch_sec",
    "Latency of one chunk log query",
    ["chain"],
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30),
)
RANGES_FETCHED = Counter(
    "ledger_ranges_fetched_total",
    "Chunks fetched successfully",
    ["chain"],
)
RANGES_FAILED = Counter(
    "ledger_ranges_failed_total",
    "Chunks whose log query failed",
    ["chain"],
)
LOGS_FETCHED = Counter(
    "ledger_logs_fetched_total",
    "Raw transfer logs returned by the event source",
    ["chain"],
)

# -----------------------------
# Replay
# -----------------------------
TRANSFERS_NORMALIZED = Counter(
    "ledger_transfers_normalized_total",
    "Canonical transfer records produced by normalization",
    ["chain", "standard"],
)
TRANSFERS_REPLAYED = Counter(
    "ledger_transfers_replayed_total",
    "Transfer records folded into the ledger",
    ["chain", "standard"],
)
LEDGER_OWNERS = Gauge(
    "ledger_owners",
    "Owners present in the last replayed ledger",
    ["chain", "contract"],
)
