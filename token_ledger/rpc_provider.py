import os
import time
import random
import threading
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware
from token_ledger.metrics import RPC_REQUESTS, RPC_ERRORS
from token_ledger.logging import log

REQUIRED_PROVIDER_KEYS = ("name", "base_url")


class RpcTemporarilyUnavailable(Exception):
    pass


# -----------------------------
# One node endpoint, shared by every fetch worker
# weight / cooldown updates happen under the provider lock
# -----------------------------
class RpcProvider:
    def __init__(self, name, base_url, weight=1, key_env=None):
        self.name = name
        self.base_url = base_url
        self.key_env = key_env
        self.base_weight = weight
        self.current_weight = weight
        self.cooldown_until = 0.0
        self._lock = threading.Lock()

    def available(self) -> bool:
        with self._lock:
            return time.time() >= self.cooldown_until

    def penalize(self, seconds=15):
        with self._lock:
            before = self.current_weight
            self.current_weight = max(1, self.current_weight - 1)
            self.cooldown_until = time.time() + seconds
            after = self.current_weight

        log.warning(
            "rpc_penalized",
            extra={
                "rpc": self.name,
                "weight_before": before,
                "weight_after": after,
                "cooldown_seconds": seconds,
            },
        )

    def reward(self):
        with self._lock:
            self.current_weight = min(self.base_weight, self.current_weight + 1)

    def build_url(self) -> str:
        if not self.key_env:
            return self.base_url

        api_key = os.getenv(self.key_env)
        if not api_key:
            raise RuntimeError(
                f"Missing env var for RPC provider {self.name}: {self.key_env}"
            )
        return f"{self.base_url}/{api_key}"


class RpcPool:
    def __init__(self, providers):
        if not providers:
            raise RuntimeError("No RPC providers configured")
        self.providers = list(providers)

    def candidates(self) -> list[RpcProvider]:
        """
        Available providers, each once, in weighted random order
        (heavier providers tend to come first).
        """
        available = [p for p in self.providers if p.available()]
        return sorted(
            available,
            key=lambda p: random.random() ** (1.0 / max(1, p.current_weight)),
            reverse=True,
        )

    @classmethod
    def from_config(cls, rpc_configs: dict, chain: str) -> "RpcPool":
        chain_cfg = rpc_configs.get("chains", {}).get(chain)
        if not chain_cfg:
            raise RuntimeError(f"Chain config not found: {chain}")

        providers = []
        for position, cfg in enumerate(chain_cfg.get("providers", [])):
            if not cfg.get("enabled", True):
                continue

            missing = [k for k in REQUIRED_PROVIDER_KEYS if not cfg.get(k)]
            if missing:
                raise RuntimeError(
                    f"RPC provider #{position} for chain {chain} is missing {', '.join(missing)}"
                )

            key_env = cfg.get("api_key_env")
            if isinstance(key_env, list):
                key_env = random.choice(key_env)

            providers.append(
                RpcProvider(
                    name=cfg["name"],
                    base_url=cfg["base_url"],
                    weight=int(cfg.get("weight", 1)),
                    key_env=key_env,
                )
            )

        if not providers:
            raise RuntimeError(f"No RPC providers enabled for chain: {chain}")

        for p in providers:
            log.info(
                "rpc_enabled",
                extra={
                    "chain": chain,
                    "rpc": p.name,
                    "key_env": p.key_env,
                    "weight": p.base_weight,
                },
            )
        return cls(providers)

    @classmethod
    def from_endpoint(cls, url: str, name: str = "node") -> "RpcPool":
        """Single node, e.g. ETHEREUM_NODE_ENDPOINT."""
        return cls([RpcProvider(name=name, base_url=url)])


class Web3Router:
    """
    eth_getLogs with failover across the pool.

    One round tries every available provider once; a failed round backs off
    and raises RpcTemporarilyUnavailable. The router never retries a round on
    its own, the caller decides whether the run survives.
    """

    def __init__(
        self,
        rpc_pool: RpcPool,
        chain: str,
        timeout=10,
        penalize_seconds=15,
        max_backoff=30,
    ):
        self.rpc_pool = rpc_pool
        self.chain = chain
        self.timeout = timeout
        self.penalize_seconds = penalize_seconds
        self.max_backoff = max_backoff

        self._failures_lock = threading.Lock()
        self.consecutive_failures = 0

    def _web3(self, provider: RpcProvider) -> Web3:
        w3 = Web3(
            Web3.HTTPProvider(
                provider.build_url(),
                request_kwargs={"timeout": self.timeout},
            )
        )
        w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return w3

    def get_logs(self, log_filter: dict) -> list:
        last_exc = None
        attempted = []

        for provider in self.rpc_pool.candidates():
            attempted.append(provider.name)
            RPC_REQUESTS.labels(chain=self.chain, rpc=provider.name).inc()

            try:
                logs = self._web3(provider).eth.get_logs(log_filter)
            except Exception as e:
                log.warning(
                    "rpc_failover",
                    extra={
                        "chain": self.chain,
                        "rpc": provider.name,
                        "range_start": log_filter.get("fromBlock"),
                        "range_end": log_filter.get("toBlock"),
                        "error": str(e)[:200],
                    },
                )
                RPC_ERRORS.labels(chain=self.chain, rpc=provider.name).inc()
                provider.penalize(self.penalize_seconds)
                last_exc = e
                continue

            provider.reward()
            with self._failures_lock:
                self.consecutive_failures = 0
            return logs

        with self._failures_lock:
            self.consecutive_failures += 1
            failures = self.consecutive_failures
        backoff = min(5 * failures, self.max_backoff)

        log.error(
            "rpc_round_failed",
            extra={
                "chain": self.chain,
                "attempted": attempted,
                "consecutive_failures": failures,
                "backoff_seconds": backoff,
            },
        )

        if backoff > 0:
            time.sleep(backoff)

        raise RpcTemporarilyUnavailable(
            f"RPC temporarily unavailable for chain={self.chain}"
        ) from last_exc
