"""Recent ERC-20 transfer history reconstructed from ``Transfer`` logs."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from agent_wallet.storage.models import Direction, TxRecord
from agent_wallet.units import format_units

if TYPE_CHECKING:
    from agent_wallet.wallet.chains import ChainRegistry
    from agent_wallet.wallet.provider import TransferEvent, Web3Provider

logger = logging.getLogger("agent_wallet.core.history")

DEFAULT_BLOCK_RANGE = 5000
UNKNOWN_TOKEN_DECIMALS = 18


def _to_record(
    event: TransferEvent,
    direction: Direction,
    lookup: dict[str, tuple[str, int]],
) -> TxRecord:
    contract = event.contract.lower()
    known = lookup.get(contract)
    symbol, decimals = known if known else (contract, UNKNOWN_TOKEN_DECIMALS)
    return TxRecord(
        tx_hash=event.tx_hash,
        block_number=str(event.block_number),
        sender=event.sender,
        recipient=event.recipient,
        token=symbol,
        token_address=event.contract,
        registered=known is not None,
        amount=format_units(event.value, decimals),
        direction=direction,
    )


async def get_history(
    provider: Web3Provider,
    registry: ChainRegistry,
    address: str,
    chain_name: str,
    block_range: int = DEFAULT_BLOCK_RANGE,
) -> list[TxRecord]:
    """Query recent ERC-20 transfers involving *address*.

    Scans the last *block_range* blocks (up to and including the head) for
    outgoing and incoming transfers concurrently. Transfers of unregistered
    tokens are kept, labelled by contract address. Results are ordered by
    block number, most recent first.
    """
    if block_range < 0:
        raise ValueError(f"block_range must be non-negative, got {block_range}")

    chain = registry.resolve(chain_name)
    head = await provider.get_block_number(chain)
    from_block = max(0, head - block_range)

    lookup = {
        token.address.lower(): (token.symbol, token.decimals)
        for token in chain.tokens.values()
    }

    outgoing, incoming = await asyncio.gather(
        provider.get_transfer_logs(chain, from_block, head, sender=address),
        provider.get_transfer_logs(chain, from_block, head, recipient=address),
    )
    logger.debug(
        f"{chain_name}: {len(outgoing)} outgoing, {len(incoming)} incoming "
        f"transfers in blocks {from_block}-{head}"
    )

    records = [_to_record(event, Direction.OUT, lookup) for event in outgoing]
    records += [_to_record(event, Direction.IN, lookup) for event in incoming]
    records.sort(key=lambda record: int(record.block_number), reverse=True)
    return records
