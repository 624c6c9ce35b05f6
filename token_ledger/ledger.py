from collections import defaultdict
from typing import Iterable, Iterator

from token_ledger.models import Transfer


class Ledger:
    """
    owner -> asset_id -> signed balance.

    Owners and assets iterate in first-reference order, so serialization of
    a replayed ledger is reproducible. Missing entries read as zero; balances
    may go negative since history before the replayed range is unknown.
    """

    def __init__(self):
        self._balances: dict[str, dict[str, int]] = {}

    def apply(self, transfer: Transfer):
        self._adjust(transfer.from_address, transfer.asset_id, -transfer.amount)
        self._adjust(transfer.to_address, transfer.asset_id, transfer.amount)

    def _adjust(self, owner: str, asset_id: str, delta: int):
        holdings = self._balances.setdefault(owner, {})
        holdings[asset_id] = holdings.get(asset_id, 0) + delta

    def balance(self, owner: str, asset_id: str) -> int:
        return self._balances.get(owner, {}).get(asset_id, 0)

    def holdings(self, owner: str) -> dict[str, int]:
        return dict(self._balances.get(owner, {}))

    def owners(self) -> list[str]:
        return list(self._balances)

    def asset_totals(self) -> dict[str, int]:
        totals = defaultdict(int)
        for holdings in self._balances.values():
            for asset_id, amount in holdings.items():
                totals[asset_id] += amount
        return dict(totals)

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {owner: dict(holdings) for owner, holdings in self._balances.items()}

    @classmethod
    def from_dict(cls, data: dict) -> "Ledger":
        ledger = cls()
        for owner, holdings in data.items():
            ledger._balances[owner] = {str(k): int(v) for k, v in holdings.items()}
        return ledger

    def __iter__(self) -> Iterator[str]:
        return iter(self._balances)

    def __len__(self) -> int:
        return len(self._balances)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self._balances == other._balances

    def __repr__(self) -> str:
        return f"Ledger(owners={len(self._balances)})"


def replay(records: Iterable[Transfer]) -> Ledger:
    """Fold ordered transfer records into a fresh ledger, strictly in input order."""
    ledger = Ledger()
    for record in records:
        ledger.apply(record)
    return ledger
