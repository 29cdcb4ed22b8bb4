"""Web3 multi-chain provider for Ethereum-compatible networks."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.middleware import ExtraDataToPOAMiddleware, SignAndSendRawMiddlewareBuilder
from web3.providers.async_base import AsyncBaseProvider

from agent_wallet.wallet.chains import ChainConfig

logger = logging.getLogger("agent_wallet.wallet.provider")

# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

ERC20_ABI = [
    {
        "name": "balanceOf",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "transfer",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]


@dataclass(frozen=True)
class TransferEvent:
    """A decoded ERC-20 ``Transfer`` log."""

    contract: str
    tx_hash: str
    block_number: int
    sender: str
    recipient: str
    value: int


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte indexed-topic value."""
    return "0x" + "0" * 24 + Web3.to_checksum_address(address)[2:].lower()


def decode_transfer_log(log: Mapping[str, Any]) -> Optional[TransferEvent]:
    """Decode a Transfer event log.

    Returns ``None`` for logs that share the topic but are not ERC-20
    transfers (ERC-721 indexes the token id as a fourth topic).
    """
    topics = log.get("topics") or []
    if len(topics) != 3:
        return None

    data = bytes(log.get("data") or b"")
    block_number = log.get("blockNumber")
    return TransferEvent(
        contract=Web3.to_checksum_address(log["address"]),
        tx_hash=Web3.to_hex(log["transactionHash"]),
        block_number=int(block_number) if block_number is not None else 0,
        sender=Web3.to_checksum_address(bytes(topics[1])[-20:]),
        recipient=Web3.to_checksum_address(bytes(topics[2])[-20:]),
        value=int.from_bytes(data, "big") if data else 0,
    )


class Web3Provider:
    """Manages AsyncWeb3 connections across multiple EVM chains.

    Every method takes a resolved :class:`ChainConfig`. Errors from web3.py
    (connection failures, reverts, bad input) propagate unchanged.
    """

    def __init__(self) -> None:
        self._instances: dict[str, AsyncWeb3] = {}

    def _transport(self, chain: ChainConfig) -> AsyncBaseProvider:
        return AsyncWeb3.AsyncHTTPProvider(chain.rpc_url)

    def _connect(self, chain: ChainConfig) -> AsyncWeb3:
        w3 = AsyncWeb3(self._transport(chain))

        # Inject POA middleware for non-mainnet chains
        if chain.chain_id != 1:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        return w3

    def get_web3(self, chain: ChainConfig) -> AsyncWeb3:
        """Return a (cached) AsyncWeb3 instance for the given chain."""
        key = f"{chain.name}:{chain.rpc_url}"
        if key not in self._instances:
            self._instances[key] = self._connect(chain)
        return self._instances[key]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_native_balance(self, chain: ChainConfig, address: str) -> int:
        """Native balance in wei."""
        w3 = self.get_web3(chain)
        return await w3.eth.get_balance(Web3.to_checksum_address(address))

    async def get_token_balance(
        self, chain: ChainConfig, token_address: str, address: str
    ) -> int:
        """ERC-20 ``balanceOf`` in the token's smallest unit."""
        w3 = self.get_web3(chain)
        contract = w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        return await contract.functions.balanceOf(
            Web3.to_checksum_address(address)
        ).call()

    async def get_block_number(self, chain: ChainConfig) -> int:
        w3 = self.get_web3(chain)
        return await w3.eth.block_number

    async def get_transfer_logs(
        self,
        chain: ChainConfig,
        from_block: int,
        to_block: int,
        sender: Optional[str] = None,
        recipient: Optional[str] = None,
    ) -> list[TransferEvent]:
        """ERC-20 transfers in ``[from_block, to_block]`` from any contract."""
        w3 = self.get_web3(chain)
        topics = [
            TRANSFER_TOPIC,
            address_topic(sender) if sender else None,
            address_topic(recipient) if recipient else None,
        ]
        logs = await w3.eth.get_logs(
            {"fromBlock": from_block, "toBlock": to_block, "topics": topics}
        )
        events = [decode_transfer_log(log) for log in logs]
        decoded = [event for event in events if event is not None]
        logger.debug(
            f"{chain.name}: {len(decoded)}/{len(logs)} transfer logs in "
            f"blocks {from_block}-{to_block}"
        )
        return decoded

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _signing_web3(self, chain: ChainConfig, account: LocalAccount) -> AsyncWeb3:
        """A fresh connection that signs locally with *account*.

        web3.py fills nonce, gas and fee fields before signing.
        """
        w3 = self._connect(chain)
        w3.middleware_onion.inject(
            SignAndSendRawMiddlewareBuilder.build(account), layer=0
        )
        w3.eth.default_account = account.address
        return w3

    async def send_native(
        self, chain: ChainConfig, account: LocalAccount, to: str, value: int
    ) -> str:
        """Send *value* wei to *to*. Returns the transaction hash."""
        w3 = self._signing_web3(chain, account)
        tx_hash = await w3.eth.send_transaction(
            {
                "from": account.address,
                "to": Web3.to_checksum_address(to),
                "value": value,
                "chainId": chain.chain_id,
            }
        )
        return Web3.to_hex(tx_hash)

    async def send_token(
        self,
        chain: ChainConfig,
        account: LocalAccount,
        token_address: str,
        to: str,
        amount: int,
    ) -> str:
        """Call ``transfer(to, amount)`` on an ERC-20 contract."""
        w3 = self._signing_web3(chain, account)
        contract = w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        tx_hash = await contract.functions.transfer(
            Web3.to_checksum_address(to), amount
        ).transact({"from": account.address, "chainId": chain.chain_id})
        return Web3.to_hex(tx_hash)
