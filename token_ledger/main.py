# -----------------------------
# Token ledger snapshot job
#
# TOKEN_CONTRACT=0x... TOKEN_STANDARD=721 BLOCK_FROM=1000 BLOCK_TO=2000 \
#   ETHEREUM_NODE_ENDPOINT=https://... python -m token_ledger.main
# -----------------------------
import json
import sys

from prometheus_client import start_http_server

from token_ledger.config import JobConfig
from token_ledger.errors import ConfigurationError, LedgerJobError
from token_ledger.event_source import Web3EventSource
from token_ledger.logging import log
from token_ledger.pipeline import build_snapshot
from token_ledger.rpc_provider import RpcPool, Web3Router
from token_ledger.snapshot import write_snapshot
from token_ledger.web3_utils import current_utctime


def build_rpc_pool(config: JobConfig) -> RpcPool:
    if config.node_endpoint:
        return RpcPool.from_endpoint(config.node_endpoint)

    try:
        with open(config.rpc_config_path) as f:
            rpc_configs = json.load(f)
        return RpcPool.from_config(rpc_configs, config.chain)
    except (OSError, ValueError, KeyError, TypeError, AttributeError, RuntimeError) as e:
        raise ConfigurationError(f"cannot build RPC pool from {config.rpc_config_path}: {e}") from e


def run(config: JobConfig) -> str:
    web3_router = Web3Router(
        rpc_pool=build_rpc_pool(config),
        chain=config.chain,
        timeout=config.rpc_timeout,
        penalize_seconds=15,
    )
    source = Web3EventSource(web3_router)

    ledger = build_snapshot(config, source)
    return write_snapshot(ledger, config.output_dir, config.contract, config.to_block)


def main(environ=None) -> int:
    try:
        config = JobConfig.from_env(environ)
    except LedgerJobError as e:
        log.error("invalid_configuration", extra={"error": str(e)})
        return e.exit_code

    if config.metrics_port:
        start_http_server(config.metrics_port)

    try:
        path = run(config)

    except LedgerJobError as e:
        log.exception(
            "fatal_job_error",
            extra={
                "chain": config.chain,
                "contract": config.contract,
                "error_type": type(e).__name__,
                "range_start": getattr(getattr(e, "chunk", None), "from_block", None),
                "range_end": getattr(getattr(e, "chunk", None), "to_block", None),
            },
        )
        return e.exit_code

    log.info(
        "job_done",
        extra={
            "chain": config.chain,
            "contract": config.contract,
            "path": path,
            "finished_at": current_utctime(),
        },
    )
    return 0


def main_entry():
    sys.exit(main())


# Entrypoint
if __name__ == "__main__":
    main_entry()
