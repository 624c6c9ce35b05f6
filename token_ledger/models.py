from dataclasses import dataclass

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


# -----------------------------
# Raw log as returned by eth_getLogs, hex fields 0x-prefixed
# -----------------------------
@dataclass(frozen=True)
class RawLog:
    address: str
    topics: tuple[str, ...]
    data: str
    block_number: int
    transaction_index: int
    log_index: int


# -----------------------------
# Canonical transfer record, standard agnostic
# -----------------------------
@dataclass(frozen=True)
class Transfer:
    block_number: int
    transaction_index: int
    log_index: int
    from_address: str
    to_address: str
    asset_id: str
    amount: int

    @property
    def ordering_key(self) -> tuple[int, int, int]:
        return (self.block_number, self.transaction_index, self.log_index)

    @property
    def is_mint(self) -> bool:
        return self.from_address == ZERO_ADDRESS

    @property
    def is_burn(self) -> bool:
        return self.to_address == ZERO_ADDRESS
