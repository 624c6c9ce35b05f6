from datetime import datetime, timezone
from hexbytes import HexBytes
from web3.datastructures import AttributeDict
from eth_utils import keccak, to_hex

from token_ledger.models import RawLog

# -----------------------------
# JSON safe serialization
# -----------------------------
def to_json_safe(obj):
    if isinstance(obj, (HexBytes, bytes)):
        return to_hex(obj)
    elif isinstance(obj, (AttributeDict, dict)):
        return {k: to_json_safe(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [to_json_safe(v) for v in obj]
    else:
        return obj


def _as_int(value) -> int:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


def to_raw_log(entry) -> RawLog:
    """
    Convert one eth_getLogs entry (web3 AttributeDict or plain JSON-RPC dict)
    into a RawLog with lowercase 0x-prefixed hex fields.
    """
    item = to_json_safe(entry)
    return RawLog(
        address=item["address"],
        topics=tuple(t.lower() for t in item.get("topics", [])),
        data=item.get("data") or "0x",
        block_number=_as_int(item["blockNumber"]),
        transaction_index=_as_int(item["transactionIndex"]),
        log_index=_as_int(item["logIndex"]),
    )


def event_topic(signature: str) -> str:
    """Transfer(address,address,uint256) -> 0xddf252ad..."""
    return to_hex(keccak(text=signature))


# -----------------------------
# create current_utctime
# -----------------------------
def current_utctime():
    """Return the current UTC time string in ISO-8601 format with millisecond precision"""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
