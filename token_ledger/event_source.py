from abc import ABC, abstractmethod
from typing import Sequence

from token_ledger.models import RawLog
from token_ledger.rpc_provider import Web3Router
from token_ledger.web3_utils import to_raw_log


class EventSource(ABC):
    """
    Read-only access to a contract's event log.

    Implementations are shared by every fetch worker and must be safe for
    concurrent use. Retry and timeout policy, if any, lives here.
    """

    @abstractmethod
    def query_logs(
        self,
        address: str,
        topics: Sequence[str],
        from_block: int,
        to_block: int,
    ) -> list[RawLog]:
        """Logs emitted by `address` whose topic0 is any of `topics`, both block bounds inclusive."""


class Web3EventSource(EventSource):
    def __init__(self, web3_router: Web3Router):
        self.web3_router = web3_router

    def query_logs(self, address, topics, from_block, to_block):
        log_filter = {
            "address": address,
            "topics": [list(topics)],
            "fromBlock": from_block,
            "toBlock": to_block,
        }
        logs = self.web3_router.get_logs(log_filter)
        return [to_raw_log(entry) for entry in logs]
