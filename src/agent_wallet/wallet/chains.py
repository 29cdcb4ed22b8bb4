"""Chain definitions for supported EVM networks."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Mapping, Optional

from agent_wallet.errors import UnknownChainError
from agent_wallet.storage.models import TokenInfo

if TYPE_CHECKING:
    from agent_wallet.wallet.token_registry import TokenStore

logger = logging.getLogger("agent_wallet.wallet.chains")

ADDRESS_PREFIX = "0x"
DEFAULT_CHAIN = "base-sepolia"


@dataclass(frozen=True)
class ChainConfig:
    """An EVM-compatible blockchain network and its known tokens."""

    name: str
    chain_id: int
    rpc_url: str
    native_symbol: str
    explorer_url: str
    tokens: dict[str, TokenInfo] = field(default_factory=dict)


def _tokens(*items: tuple[str, str, int]) -> dict[str, TokenInfo]:
    return {
        symbol: TokenInfo(symbol=symbol, address=address, decimals=decimals)
        for symbol, address, decimals in items
    }


BUILTIN_CHAINS: dict[str, ChainConfig] = {
    "base-sepolia": ChainConfig(
        name="base-sepolia",
        chain_id=84532,
        rpc_url="https://sepolia.base.org",
        native_symbol="ETH",
        explorer_url="https://sepolia.basescan.org",
        tokens=_tokens(
            ("USDC", "0x036CbD53842c5426634e7929541eC2318f3dCF7e", 6),
            ("WETH", "0x4200000000000000000000000000000000000006", 18),
        ),
    ),
    "base": ChainConfig(
        name="base",
        chain_id=8453,
        rpc_url="https://mainnet.base.org",
        native_symbol="ETH",
        explorer_url="https://basescan.org",
        tokens=_tokens(
            ("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
            ("WETH", "0x4200000000000000000000000000000000000006", 18),
        ),
    ),
    "ethereum": ChainConfig(
        name="ethereum",
        chain_id=1,
        rpc_url="https://eth.llamarpc.com",
        native_symbol="ETH",
        explorer_url="https://etherscan.io",
        tokens=_tokens(
            ("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", 6),
            ("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", 18),
        ),
    ),
    "ethereum-sepolia": ChainConfig(
        name="ethereum-sepolia",
        chain_id=11155111,
        rpc_url="https://rpc.sepolia.org",
        native_symbol="ETH",
        explorer_url="https://sepolia.etherscan.io",
        tokens=_tokens(
            ("USDC", "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238", 6),
            ("WETH", "0x7b79995e5f793A07Bc00c21412e50Ecae098E7f9", 18),
        ),
    ),
}


class ChainRegistry:
    """Built-in chains overlaid with user-registered tokens.

    Built once per process and handed to everything that needs chain or
    token lookups. The built-in table is never mutated; custom tokens are
    read from *token_store* on each :meth:`resolve`.
    """

    def __init__(
        self,
        chains: Mapping[str, ChainConfig] = BUILTIN_CHAINS,
        token_store: Optional[TokenStore] = None,
        rpc_urls: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._chains = dict(chains)
        self._token_store = token_store
        self._rpc_urls = dict(rpc_urls or {})

        for name in self._rpc_urls:
            if name not in self._chains:
                logger.warning(f"RPC override for unknown chain '{name}' ignored")

    def resolve(self, name: str) -> ChainConfig:
        """Get a chain by name with custom tokens merged over the built-ins.

        Raises :class:`UnknownChainError` if the chain is not supported.
        """
        if name not in self._chains:
            raise UnknownChainError(
                f"Unknown chain: \"{name}\". "
                f"Available chains: {', '.join(self.list_chains())}"
            )
        config = self._chains[name]

        overrides: dict = {}
        if name in self._rpc_urls:
            overrides["rpc_url"] = self._rpc_urls[name]
        if self._token_store is not None:
            custom = self._token_store.load().get(name)
            if custom:
                overrides["tokens"] = {**config.tokens, **custom}

        if overrides:
            return dataclasses.replace(config, **overrides)
        return config

    def list_chains(self) -> list[str]:
        """Return the names of all supported chains."""
        return list(self._chains.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._chains
