"""High-level wallet manager used by the CLI."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from agent_wallet.config import (
    WalletSettings,
    get_settings_path,
    get_tokens_path,
    get_wallet_path,
    load_settings,
)
from agent_wallet.core import balance, history, send
from agent_wallet.storage.models import (
    SendResult,
    TokenInfo,
    TokenScan,
    TxRecord,
    WalletBalance,
    WalletData,
)
from agent_wallet.wallet import keystore
from agent_wallet.wallet.chains import ChainConfig, ChainRegistry
from agent_wallet.wallet.provider import Web3Provider
from agent_wallet.wallet.token_registry import TokenRegistry, TokenStore

logger = logging.getLogger("agent_wallet.wallet.manager")

NATIVE_ALIASES = {"ETH", "NATIVE"}


class WalletManager:
    """Orchestrates keystore, token registry, chain registry and provider.

    One instance per process: the :class:`ChainRegistry` built here is the
    one every query and transfer is resolved against.
    """

    def __init__(
        self,
        wallet_path: Optional[Path | str] = None,
        settings: Optional[WalletSettings] = None,
        provider: Optional[Web3Provider] = None,
    ) -> None:
        self.wallet_path = get_wallet_path(wallet_path)
        self.settings = settings or load_settings(get_settings_path(self.wallet_path))
        self.token_store = TokenStore(
            get_tokens_path(self.wallet_path),
            strict=self.settings.strict_token_registry,
        )
        self.registry = ChainRegistry(
            token_store=self.token_store, rpc_urls=self.settings.rpc_urls
        )
        self.provider = provider or Web3Provider()

    def _chain(self, chain_name: Optional[str]) -> str:
        return chain_name or self.settings.default_chain

    # ------------------------------------------------------------------
    # Wallet lifecycle
    # ------------------------------------------------------------------

    def create(self) -> WalletData:
        """Create a new wallet. Fails if one already exists."""
        return keystore.create_wallet(self.wallet_path)

    def import_key(self, private_key: str) -> WalletData:
        return keystore.import_wallet(private_key, self.wallet_path)

    def load(self) -> WalletData:
        return keystore.load_wallet(self.wallet_path)

    @property
    def address(self) -> str:
        """The wallet address. Raises if no wallet exists."""
        return self.load().address

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------

    def chains(self) -> list[ChainConfig]:
        return [self.registry.resolve(name) for name in self.registry.list_chains()]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_balance(self, chain_name: Optional[str] = None) -> WalletBalance:
        return await balance.get_balance(
            self.provider, self.registry, self.address, self._chain(chain_name)
        )

    async def scan_tokens(self, chain_name: Optional[str] = None) -> TokenScan:
        return await balance.scan_tokens(
            self.provider, self.registry, self.address, self._chain(chain_name)
        )

    async def get_history(
        self, chain_name: Optional[str] = None, block_range: Optional[int] = None
    ) -> list[TxRecord]:
        if block_range is None:
            block_range = self.settings.history_block_range
        return await history.get_history(
            self.provider,
            self.registry,
            self.address,
            self._chain(chain_name),
            block_range,
        )

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    def is_native(self, token: Optional[str], chain_name: Optional[str] = None) -> bool:
        """Whether *token* designates the chain's native currency."""
        if not token:
            return True
        upper = token.upper()
        if upper in NATIVE_ALIASES:
            return True
        return upper == self.registry.resolve(self._chain(chain_name)).native_symbol

    async def send(
        self,
        amount: str,
        to: str,
        token: Optional[str] = None,
        chain_name: Optional[str] = None,
    ) -> SendResult:
        """Send native currency or an ERC-20 token from the wallet."""
        chain = self._chain(chain_name)
        wallet = self.load()
        if self.is_native(token, chain):
            return await send.send_native(
                self.provider, self.registry, wallet.private_key, to, amount, chain
            )
        return await send.send_token(
            self.provider, self.registry, wallet.private_key, to, amount, token, chain
        )

    # ------------------------------------------------------------------
    # Custom tokens
    # ------------------------------------------------------------------

    def add_token(
        self,
        symbol: str,
        address: str,
        decimals: int = 18,
        chain_name: Optional[str] = None,
    ) -> TokenInfo:
        chain = self.registry.resolve(self._chain(chain_name))
        return self.token_store.add(chain.name, symbol, address, decimals)

    def remove_token(self, symbol: str, chain_name: Optional[str] = None) -> bool:
        return self.token_store.remove(self._chain(chain_name), symbol)

    def list_tokens(self, chain_name: Optional[str] = None) -> TokenRegistry:
        return self.token_store.list(self._chain(chain_name))
