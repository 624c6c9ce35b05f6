import threading

import pytest

from token_ledger.rpc_provider import (
    RpcPool,
    RpcProvider,
    RpcTemporarilyUnavailable,
    Web3Router,
)


class StubEth:
    def __init__(self, behaviour):
        self.behaviour = behaviour

    def get_logs(self, log_filter):
        result = self.behaviour(log_filter)
        if isinstance(result, Exception):
            raise result
        return result


def stub_router(providers, behaviour_by_name, **kwargs):
    """Router whose web3 calls are answered per provider name, no network."""
    router = Web3Router(RpcPool(providers), chain="eth", max_backoff=0, **kwargs)

    class Stub:
        def __init__(self, provider):
            self.eth = StubEth(behaviour_by_name[provider.name])

    router._web3 = Stub
    return router


def test_failover_to_next_provider():
    bad = RpcProvider("bad", "http://bad.invalid")
    good = RpcProvider("good", "http://good.invalid")
    router = stub_router(
        [bad, good],
        {"bad": lambda f: ConnectionError("boom"), "good": lambda f: ["log"]},
    )

    assert router.get_logs({"fromBlock": 1, "toBlock": 2}) == ["log"]
    assert router.consecutive_failures == 0


def test_round_failure_raises_temporarily_unavailable():
    router = stub_router(
        [RpcProvider("a", "http://a.invalid"), RpcProvider("b", "http://b.invalid")],
        {"a": lambda f: TimeoutError("slow node"), "b": lambda f: TimeoutError("slow node")},
    )

    with pytest.raises(RpcTemporarilyUnavailable) as exc_info:
        router.get_logs({"fromBlock": 1, "toBlock": 2})

    assert isinstance(exc_info.value.__cause__, TimeoutError)
    assert router.consecutive_failures == 1
    assert not any(p.available() for p in router.rpc_pool.providers)
    assert router.rpc_pool.candidates() == []


def test_concurrent_failed_rounds_are_all_counted():
    calls = 40
    router = stub_router(
        [RpcProvider("a", "http://a.invalid")],
        {"a": lambda f: ConnectionError("down")},
        penalize_seconds=0,
    )
    start = threading.Barrier(calls)

    def worker():
        start.wait()
        with pytest.raises(RpcTemporarilyUnavailable):
            router.get_logs({"fromBlock": 0, "toBlock": 0})

    threads = [threading.Thread(target=worker) for _ in range(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert router.consecutive_failures == calls


def test_concurrent_penalize_and_reward_stay_in_bounds():
    provider = RpcProvider("p", "http://p.invalid", weight=5)

    def churn():
        for _ in range(200):
            provider.penalize(0)
            provider.reward()

    threads = [threading.Thread(target=churn) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert 1 <= provider.current_weight <= provider.base_weight


def test_penalize_and_reward_weights():
    provider = RpcProvider("p", "http://p.invalid", weight=3)
    provider.penalize(0)
    assert provider.current_weight == 2
    provider.reward()
    provider.reward()
    assert provider.current_weight == 3


def test_candidates_lists_each_available_provider_once():
    heavy = RpcProvider("heavy", "http://h.invalid", weight=5)
    light = RpcProvider("light", "http://l.invalid", weight=1)
    cooling = RpcProvider("cooling", "http://c.invalid")
    cooling.penalize(60)

    names = [p.name for p in RpcPool([heavy, light, cooling]).candidates()]
    assert sorted(names) == ["heavy", "light"]


def test_build_url_with_key_env(monkeypatch):
    monkeypatch.setenv("NODE_KEY", "secret")
    assert RpcProvider("p", "https://node.example/v2", key_env="NODE_KEY").build_url() == (
        "https://node.example/v2/secret"
    )

    monkeypatch.delenv("NODE_KEY")
    with pytest.raises(RuntimeError):
        RpcProvider("p", "https://node.example/v2", key_env="NODE_KEY").build_url()


def test_pool_from_config_skips_disabled():
    pool = RpcPool.from_config(
        {
            "chains": {
                "eth": {
                    "providers": [
                        {"name": "alchemy", "base_url": "https://a.example", "weight": 3, "api_key_env": ["K1", "K2"]},
                        {"name": "public", "base_url": "https://p.example"},
                        {"name": "off", "base_url": "https://o.example", "enabled": False},
                    ]
                }
            }
        },
        "eth",
    )

    assert [p.name for p in pool.providers] == ["alchemy", "public"]
    assert pool.providers[0].key_env in ("K1", "K2")
    assert pool.providers[0].base_weight == 3


def test_pool_from_config_requires_name_and_url():
    with pytest.raises(RuntimeError, match="base_url"):
        RpcPool.from_config({"chains": {"eth": {"providers": [{"name": "x"}]}}}, "eth")


def test_pool_from_config_unknown_chain():
    with pytest.raises(RuntimeError):
        RpcPool.from_config({"chains": {}}, "eth")


def test_pool_from_endpoint():
    pool = RpcPool.from_endpoint("http://localhost:8545")
    assert pool.providers[0].build_url() == "http://localhost:8545"
