"""Pydantic models for everything agent-wallet persists or prints.

Field names are snake_case in Python and camelCase on disk and in CLI
output (``private_key`` ↔ ``privateKey``). Amounts and block numbers are
strings to preserve precision.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        """Dump using the camelCase aliases, ready for ``json.dumps``."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Registry records
# ---------------------------------------------------------------------------


class TokenInfo(_CamelModel):
    """An ERC-20 token contract on one chain."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    address: str
    decimals: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Wallet file
# ---------------------------------------------------------------------------


class WalletData(_CamelModel):
    """Contents of the wallet file: one keypair per file."""

    model_config = ConfigDict(strict=True)

    address: str
    private_key: str
    created_at: str


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


class TokenBalance(_CamelModel):
    symbol: str
    address: str
    balance: str
    raw: str


class WalletBalance(_CamelModel):
    """Native balance plus every registered token balance on one chain."""

    address: str
    chain: str
    native_symbol: str
    native: str
    native_raw: str
    tokens: list[TokenBalance] = Field(default_factory=list)


class TokenScan(_CamelModel):
    address: str
    chain: str
    tokens: list[TokenBalance] = Field(default_factory=list)


class Direction(str, Enum):
    IN = "in"
    OUT = "out"


class TxRecord(_CamelModel):
    """A single ERC-20 transfer touching the wallet.

    ``token`` is the symbol for registered contracts and the lower-cased
    contract address otherwise; ``registered`` says which.
    """

    tx_hash: str
    block_number: str
    sender: str = Field(alias="from")
    recipient: str = Field(alias="to")
    token: str
    token_address: str
    registered: bool
    amount: str
    direction: Direction


class SendResult(_CamelModel):
    tx_hash: str
    sender: str = Field(alias="from")
    recipient: str = Field(alias="to")
    amount: str
    token: str
    chain: str
