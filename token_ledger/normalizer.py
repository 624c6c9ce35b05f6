"""
Raw log -> canonical Transfer records.

One normalizer per token standard; the standard is chosen once per run and
normalization is a pure function of (standard, raw log).
"""
from abc import ABC, abstractmethod
from collections import Counter
from typing import Iterable

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, to_checksum_address

from token_ledger.config import TokenStandard
from token_ledger.errors import ConfigurationError, NormalizationError
from token_ledger.models import RawLog, Transfer
from token_ledger.web3_utils import event_topic

ERC721_TRANSFER = event_topic("Transfer(address,address,uint256)")
ERC1155_TRANSFER_SINGLE = event_topic("TransferSingle(address,address,address,uint256,uint256)")
ERC1155_TRANSFER_BATCH = event_topic("TransferBatch(address,address,address,uint256[],uint256[])")

EVENT_NAMES = {
    ERC721_TRANSFER: "Transfer",
    ERC1155_TRANSFER_SINGLE: "TransferSingle",
    ERC1155_TRANSFER_BATCH: "TransferBatch",
}


def count_events(logs: Iterable[RawLog]) -> dict[str, int]:
    """Logs per event name, e.g. {"TransferSingle": 3, "TransferBatch": 1}."""
    return dict(Counter(
        EVENT_NAMES.get(raw.topics[0] if raw.topics else None, "unknown") for raw in logs
    ))


def topic_to_address(topic: str) -> str:
    return to_checksum_address("0x" + topic[-40:])


def _decode_data(raw: RawLog, types: list[str]) -> tuple:
    try:
        return abi_decode(types, decode_hex(raw.data))
    except (DecodingError, ValueError) as e:
        raise NormalizationError(
            f"cannot decode {types} from log {raw.block_number}/{raw.log_index}: {e}"
        ) from e


def _expect_topics(raw: RawLog, count: int, event: str):
    if len(raw.topics) != count:
        raise NormalizationError(
            f"{event} log at block {raw.block_number} log {raw.log_index} "
            f"has {len(raw.topics)} topics, expected {count}"
        )


class EventNormalizer(ABC):
    standard: TokenStandard

    @property
    @abstractmethod
    def topics(self) -> tuple[str, ...]:
        """topic0 values to query for."""

    @abstractmethod
    def normalize(self, raw: RawLog) -> list[Transfer]:
        pass

    def _record(self, raw: RawLog, from_address, to_address, asset_id, amount) -> Transfer:
        return Transfer(
            block_number=raw.block_number,
            transaction_index=raw.transaction_index,
            log_index=raw.log_index,
            from_address=from_address,
            to_address=to_address,
            asset_id=str(asset_id),
            amount=int(amount),
        )

    def _unexpected(self, raw: RawLog):
        topic0 = raw.topics[0] if raw.topics else None
        return NormalizationError(
            f"unexpected {self.standard.name} log topic {topic0} "
            f"at block {raw.block_number} log {raw.log_index}"
        )


class Erc721Normalizer(EventNormalizer):
    """Transfer(from, to, tokenId), all indexed; every token is its own asset."""

    standard = TokenStandard.ERC721

    @property
    def topics(self):
        return (ERC721_TRANSFER,)

    def normalize(self, raw):
        if not raw.topics or raw.topics[0] != ERC721_TRANSFER:
            raise self._unexpected(raw)

        # ERC-20 Transfer shares topic0 but carries the value in data
        _expect_topics(raw, 4, "Transfer")
        return [
            self._record(
                raw,
                topic_to_address(raw.topics[1]),
                topic_to_address(raw.topics[2]),
                int(raw.topics[3], 16),
                1,
            )
        ]


class Erc1155Normalizer(EventNormalizer):
    """
    TransferSingle(operator, from, to, id, value)
    TransferBatch(operator, from, to, ids[], values[])

    A batch log expands to one record per array index, in array order, all
    sharing the log's ordering key.
    """

    standard = TokenStandard.ERC1155

    @property
    def topics(self):
        return (ERC1155_TRANSFER_SINGLE, ERC1155_TRANSFER_BATCH)

    def normalize(self, raw):
        topic0 = raw.topics[0] if raw.topics else None

        if topic0 == ERC1155_TRANSFER_SINGLE:
            _expect_topics(raw, 4, "TransferSingle")
            asset_id, amount = _decode_data(raw, ["uint256", "uint256"])
            return [
                self._record(
                    raw,
                    topic_to_address(raw.topics[2]),
                    topic_to_address(raw.topics[3]),
                    asset_id,
                    amount,
                )
            ]

        if topic0 == ERC1155_TRANSFER_BATCH:
            _expect_topics(raw, 4, "TransferBatch")
            ids, amounts = _decode_data(raw, ["uint256[]", "uint256[]"])
            if len(ids) != len(amounts):
                raise NormalizationError(
                    f"TransferBatch at block {raw.block_number} log {raw.log_index} "
                    f"has {len(ids)} ids and {len(amounts)} values"
                )

            from_address = topic_to_address(raw.topics[2])
            to_address = topic_to_address(raw.topics[3])
            return [
                self._record(raw, from_address, to_address, asset_id, amount)
                for asset_id, amount in zip(ids, amounts)
            ]

        raise self._unexpected(raw)


_NORMALIZERS = {
    TokenStandard.ERC721: Erc721Normalizer,
    TokenStandard.ERC1155: Erc1155Normalizer,
}


def normalizer_for(standard: TokenStandard) -> EventNormalizer:
    try:
        return _NORMALIZERS[standard]()
    except KeyError:
        raise ConfigurationError(f"Token standard ERC-{standard.value} is not currently supported") from None


def normalize_all(normalizer: EventNormalizer, results: Iterable) -> list[Transfer]:
    """Flatten fetched chunk results into transfer records, chunk order then log order."""
    records = []
    for result in results:
        for raw in result.logs:
            records.extend(normalizer.normalize(raw))
    return records
