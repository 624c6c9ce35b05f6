import os
import json

from token_ledger.ledger import Ledger
from token_ledger.logging import log


def snapshot_path(output_dir: str, contract: str, to_block: int) -> str:
    return os.path.join(output_dir, f"{contract}-{to_block}.json")


def write_snapshot(ledger: Ledger, output_dir: str, contract: str, to_block: int) -> str:
    os.makedirs(output_dir, exist_ok=True)
    path = snapshot_path(output_dir, contract, to_block)

    # write-then-rename, a failed run never leaves a truncated snapshot
    tmp_path = path + ".tmp"
    try:
        with open(tmp_path, "w") as f:
            json.dump(ledger.to_dict(), f, indent=4)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    log.info(
        "snapshot_written",
        extra={
            "path": path,
            "contract": contract,
            "to_block": to_block,
            "owners": len(ledger),
        },
    )
    return path


def read_snapshot(path: str) -> Ledger:
    with open(path) as f:
        return Ledger.from_dict(json.load(f))
