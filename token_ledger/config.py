import os
from enum import Enum
from dataclasses import dataclass

from eth_utils import is_hex_address, to_checksum_address

from token_ledger.errors import ConfigurationError

DEFAULT_CHUNK_SIZE = 250
DEFAULT_FAN_OUT = 11
DEFAULT_RPC_CONFIG_PATH = "/etc/ingestion/rpc_providers.json"


class TokenStandard(str, Enum):
    ERC20 = "20"
    ERC721 = "721"
    ERC1155 = "1155"

    @property
    def supported(self) -> bool:
        return self is not TokenStandard.ERC20


def parse_standard(value) -> TokenStandard:
    raw = str(value).strip().upper().removeprefix("ERC").removeprefix("-")
    try:
        standard = TokenStandard(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid token standard: {value!r}") from None

    if not standard.supported:
        raise ConfigurationError(f"Token standard ERC-{standard.value} is not currently supported")
    return standard


def parse_address(value) -> str:
    if not value or len(value) != 42 or not is_hex_address(value):
        raise ConfigurationError(f"Invalid token contract address: {value!r}")
    return to_checksum_address(value)


def _int_setting(name: str, value, minimum: int | None = None) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None

    if minimum is not None and parsed < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {parsed}")
    return parsed


@dataclass(frozen=True)
class JobConfig:
    contract: str
    standard: TokenStandard
    from_block: int
    to_block: int

    chunk_size: int = DEFAULT_CHUNK_SIZE
    fan_out: int = DEFAULT_FAN_OUT

    chain: str = "eth"
    rpc_config_path: str = DEFAULT_RPC_CONFIG_PATH
    node_endpoint: str | None = None
    rpc_timeout: int = 10
    output_dir: str = "output"
    metrics_port: int = 0

    @classmethod
    def build(
        cls,
        *,
        contract,
        standard,
        from_block,
        to_block,
        chunk_size=DEFAULT_CHUNK_SIZE,
        fan_out=DEFAULT_FAN_OUT,
        **settings,
    ) -> "JobConfig":
        """
        Validate raw settings; every error surfaces here, before any fetch.
        """
        return cls(
            contract=parse_address(contract),
            standard=parse_standard(standard),
            from_block=_int_setting("BLOCK_FROM", from_block, minimum=0),
            to_block=_int_setting("BLOCK_TO", to_block, minimum=0),
            chunk_size=_int_setting("CHUNK_SIZE", chunk_size, minimum=1),
            fan_out=_int_setting("FAN_OUT", fan_out, minimum=1),
            **settings,
        )

    @classmethod
    def from_env(cls, environ=None) -> "JobConfig":
        env = os.environ if environ is None else environ
        return cls.build(
            contract=env.get("TOKEN_CONTRACT"),
            standard=env.get("TOKEN_STANDARD", ""),
            from_block=env.get("BLOCK_FROM"),
            to_block=env.get("BLOCK_TO"),
            chunk_size=env.get("CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)),
            fan_out=env.get("FAN_OUT", str(DEFAULT_FAN_OUT)),
            chain=env.get("CHAIN", "eth").lower(),
            rpc_config_path=env.get("RPC_CONFIG_PATH", DEFAULT_RPC_CONFIG_PATH),
            node_endpoint=env.get("ETHEREUM_NODE_ENDPOINT") or None,
            rpc_timeout=_int_setting("RPC_TIMEOUT", env.get("RPC_TIMEOUT", "10"), minimum=1),
            output_dir=env.get("OUTPUT_DIR", "output"),
            metrics_port=_int_setting("METRICS_PORT", env.get("METRICS_PORT", "0"), minimum=0),
        )
