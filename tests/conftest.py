"""
conftest.py - Shared fixtures for token ledger tests

- addresses and raw log builders (ERC-721 Transfer, ERC-1155 single/batch)
- an in-memory EventSource that records concurrency and can fail on demand
"""

import threading
import time

import pytest
from eth_abi import encode as abi_encode
from eth_utils import to_checksum_address, to_hex

from token_ledger.event_source import EventSource
from token_ledger.models import RawLog
from token_ledger.normalizer import (
    ERC721_TRANSFER,
    ERC1155_TRANSFER_BATCH,
    ERC1155_TRANSFER_SINGLE,
)

CONTRACT = to_checksum_address("0x" + "c0" * 20)
OPERATOR = to_checksum_address("0x" + "0e" * 20)
ALICE = to_checksum_address("0x" + "a1" * 20)
BOB = to_checksum_address("0x" + "b2" * 20)
CAROL = to_checksum_address("0x" + "c3" * 20)


def address_topic(address: str) -> str:
    return "0x" + "0" * 24 + address[2:].lower()


def uint_topic(value: int) -> str:
    return "0x%064x" % value


def erc721_log(block, tx, idx, from_address, to_address, token_id) -> RawLog:
    return RawLog(
        address=CONTRACT,
        topics=(
            ERC721_TRANSFER,
            address_topic(from_address),
            address_topic(to_address),
            uint_topic(token_id),
        ),
        data="0x",
        block_number=block,
        transaction_index=tx,
        log_index=idx,
    )


def erc1155_single_log(block, tx, idx, from_address, to_address, asset_id, amount) -> RawLog:
    return RawLog(
        address=CONTRACT,
        topics=(
            ERC1155_TRANSFER_SINGLE,
            address_topic(OPERATOR),
            address_topic(from_address),
            address_topic(to_address),
        ),
        data=to_hex(abi_encode(["uint256", "uint256"], [asset_id, amount])),
        block_number=block,
        transaction_index=tx,
        log_index=idx,
    )


def erc1155_batch_log(block, tx, idx, from_address, to_address, ids, amounts) -> RawLog:
    return RawLog(
        address=CONTRACT,
        topics=(
            ERC1155_TRANSFER_BATCH,
            address_topic(OPERATOR),
            address_topic(from_address),
            address_topic(to_address),
        ),
        data=to_hex(abi_encode(["uint256[]", "uint256[]"], [ids, amounts])),
        block_number=block,
        transaction_index=tx,
        log_index=idx,
    )


class FakeEventSource(EventSource):
    """
    Serves logs from memory by block range and topic0.

    Records every query plus start/end events so tests can check the
    fan-out bound and the group barrier.
    """

    def __init__(self, logs=(), fail_from_blocks=(), delay=0.0):
        self.logs = list(logs)
        self.fail_from_blocks = set(fail_from_blocks)
        self.delay = delay

        self.queries = []
        self.events = []
        self.inflight = 0
        self.max_inflight = 0
        self._lock = threading.Lock()

    def query_logs(self, address, topics, from_block, to_block):
        with self._lock:
            self.queries.append((address, tuple(topics), from_block, to_block))
            self.events.append(("start", from_block))
            self.inflight += 1
            self.max_inflight = max(self.max_inflight, self.inflight)

        try:
            if self.delay:
                time.sleep(self.delay)
            if from_block in self.fail_from_blocks:
                raise ConnectionError(f"node unavailable for {from_block}-{to_block}")

            return [
                raw for raw in self.logs
                if from_block <= raw.block_number <= to_block
                and raw.topics[0] in topics
            ]
        finally:
            with self._lock:
                self.inflight -= 1
                self.events.append(("end", from_block))


@pytest.fixture
def fake_source():
    return FakeEventSource
