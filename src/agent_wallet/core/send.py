"""Native-currency and ERC-20 transfers.

These are thin pass-throughs: web3.py signs, fills gas and nonce, and
submits. Nothing here retries, and every RPC failure reaches the caller.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from eth_account import Account

from agent_wallet.errors import UnknownTokenError
from agent_wallet.storage.models import SendResult
from agent_wallet.units import parse_units
from agent_wallet.wallet.chains import ADDRESS_PREFIX

if TYPE_CHECKING:
    from agent_wallet.wallet.chains import ChainRegistry
    from agent_wallet.wallet.provider import Web3Provider

logger = logging.getLogger("agent_wallet.core.send")

NATIVE_TOKEN_LABEL = "NATIVE"
NATIVE_DECIMALS = 18
RAW_ADDRESS_DECIMALS = 18


async def send_native(
    provider: Web3Provider,
    registry: ChainRegistry,
    private_key: str,
    to: str,
    amount: str,
    chain_name: str,
) -> SendResult:
    """Send the chain's native currency.

    *amount* is a human-readable decimal string (e.g. ``"0.1"``).
    """
    chain = registry.resolve(chain_name)
    account = Account.from_key(private_key)
    value = parse_units(amount, NATIVE_DECIMALS)

    tx_hash = await provider.send_native(chain, account, to, value)
    logger.info(f"Sent {amount} {chain.native_symbol} to {to} on {chain_name}: {tx_hash}")

    return SendResult(
        tx_hash=tx_hash,
        sender=account.address,
        recipient=to,
        amount=amount,
        token=NATIVE_TOKEN_LABEL,
        chain=chain_name,
    )


async def send_token(
    provider: Web3Provider,
    registry: ChainRegistry,
    private_key: str,
    to: str,
    amount: str,
    token_symbol_or_address: str,
    chain_name: str,
) -> SendResult:
    """Send ERC-20 tokens.

    *token_symbol_or_address* is either a known symbol (case-insensitive),
    e.g. ``"usdc"``, or a raw ``0x`` contract address, which is assumed to
    use 18 decimals.

    Raises
    ------
    UnknownTokenError
        If the symbol is not registered on the chain.
    """
    chain = registry.resolve(chain_name)

    if token_symbol_or_address.startswith(ADDRESS_PREFIX):
        token_address = token_symbol_or_address
        decimals = RAW_ADDRESS_DECIMALS
        label = token_symbol_or_address
    else:
        token = chain.tokens.get(token_symbol_or_address.upper())
        if token is None:
            raise UnknownTokenError(
                f"Unknown token \"{token_symbol_or_address}\" on {chain_name}. "
                f"Valid tokens: {', '.join(chain.tokens)}"
            )
        token_address = token.address
        decimals = token.decimals
        label = token.symbol

    account = Account.from_key(private_key)
    raw_amount = parse_units(amount, decimals)

    tx_hash = await provider.send_token(chain, account, token_address, to, raw_amount)
    logger.info(f"Sent {amount} {label} to {to} on {chain_name}: {tx_hash}")

    return SendResult(
        tx_hash=tx_hash,
        sender=account.address,
        recipient=to,
        amount=amount,
        token=label,
        chain=chain_name,
    )
