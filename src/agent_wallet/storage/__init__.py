"""AgentWallet storage layer -- Pydantic models for wallet files and query results."""

from agent_wallet.storage.models import (
    Direction,
    SendResult,
    TokenBalance,
    TokenInfo,
    TokenScan,
    TxRecord,
    WalletBalance,
    WalletData,
)

__all__ = [
    "Direction",
    "SendResult",
    "TokenBalance",
    "TokenInfo",
    "TokenScan",
    "TxRecord",
    "WalletBalance",
    "WalletData",
]
