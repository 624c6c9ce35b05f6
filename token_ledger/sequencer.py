from typing import Iterable

from token_ledger.errors import InvariantViolation
from token_ledger.models import Transfer


def sequence(records: Iterable[Transfer]) -> list[Transfer]:
    """
    Order records by (block_number, transaction_index, log_index).

    The sort is stable: records sharing a key (a batch log expanded into one
    record per asset) keep the order the normalizer emitted them in.
    """
    return sorted(records, key=lambda r: r.ordering_key)


def check_order(records: list[Transfer]):
    for i in range(1, len(records)):
        prev, cur = records[i - 1], records[i]
        if cur.ordering_key < prev.ordering_key:
            raise InvariantViolation(
                f"transfer {cur.ordering_key} follows {prev.ordering_key} "
                f"at position {i}"
            )
