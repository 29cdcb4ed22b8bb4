"""Native and ERC-20 balance lookups for a single chain."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from agent_wallet.storage.models import TokenBalance, TokenInfo, TokenScan, WalletBalance
from agent_wallet.units import format_units

if TYPE_CHECKING:
    from agent_wallet.wallet.chains import ChainConfig, ChainRegistry
    from agent_wallet.wallet.provider import Web3Provider

logger = logging.getLogger("agent_wallet.core.balance")

NATIVE_DECIMALS = 18


async def _read_token_balance(
    provider: Web3Provider, chain: ChainConfig, token: TokenInfo, address: str
) -> int:
    """``balanceOf`` for one token; any failure counts as a zero balance."""
    try:
        return await provider.get_token_balance(chain, token.address, address)
    except Exception as e:
        logger.warning(
            f"Failed to read {token.symbol} balance on {chain.name}: {e}"
        )
        return 0


async def get_balance(
    provider: Web3Provider,
    registry: ChainRegistry,
    address: str,
    chain_name: str,
) -> WalletBalance:
    """Query the native balance and every known token balance.

    All RPC reads run concurrently. A single token read failing reports
    that token as ``0``; a failing native read fails the whole call.
    """
    chain = registry.resolve(chain_name)
    tokens = list(chain.tokens.values())

    native_raw, *token_raws = await asyncio.gather(
        provider.get_native_balance(chain, address),
        *(_read_token_balance(provider, chain, token, address) for token in tokens),
    )

    return WalletBalance(
        address=address,
        chain=chain_name,
        native_symbol=chain.native_symbol,
        native=format_units(native_raw, NATIVE_DECIMALS),
        native_raw=str(native_raw),
        tokens=[
            TokenBalance(
                symbol=token.symbol,
                address=token.address,
                balance=format_units(raw, token.decimals),
                raw=str(raw),
            )
            for token, raw in zip(tokens, token_raws)
        ],
    )


async def scan_tokens(
    provider: Web3Provider,
    registry: ChainRegistry,
    address: str,
    chain_name: str,
) -> TokenScan:
    """Token-only view of :func:`get_balance`."""
    balance = await get_balance(provider, registry, address, chain_name)
    return TokenScan(address=address, chain=chain_name, tokens=balance.tokens)
