"""Shared fixtures: an isolated working directory and an in-memory RPC provider."""

from __future__ import annotations

import pytest

from agent_wallet.wallet.chains import ChainRegistry
from agent_wallet.wallet.provider import TransferEvent
from agent_wallet.wallet.token_registry import TokenStore

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
TEST_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
RECIPIENT = "0x000000000000000000000000000000000000dEaD"
FAKE_TX_HASH = "0x" + "ab" * 32


class FakeProvider:
    """Stands in for :class:`Web3Provider` without touching the network."""

    def __init__(
        self,
        native: int = 0,
        token_balances: dict[str, int] | None = None,
        failing_tokens: tuple[str, ...] = (),
        native_error: Exception | None = None,
        head: int = 10_000,
        outgoing: list[TransferEvent] | None = None,
        incoming: list[TransferEvent] | None = None,
    ) -> None:
        self.native = native
        self.token_balances = {k.lower(): v for k, v in (token_balances or {}).items()}
        self.failing_tokens = {t.lower() for t in failing_tokens}
        self.native_error = native_error
        self.head = head
        self.outgoing = outgoing or []
        self.incoming = incoming or []
        self.token_reads: list[str] = []
        self.log_queries: list[dict] = []
        self.sent: list[dict] = []

    async def get_native_balance(self, chain, address):
        if self.native_error is not None:
            raise self.native_error
        return self.native

    async def get_token_balance(self, chain, token_address, address):
        self.token_reads.append(token_address)
        if token_address.lower() in self.failing_tokens:
            raise RuntimeError("execution reverted")
        return self.token_balances.get(token_address.lower(), 0)

    async def get_block_number(self, chain):
        return self.head

    async def get_transfer_logs(self, chain, from_block, to_block, sender=None, recipient=None):
        self.log_queries.append(
            {"from_block": from_block, "to_block": to_block, "sender": sender, "recipient": recipient}
        )
        return list(self.outgoing if sender else self.incoming)

    async def send_native(self, chain, account, to, value):
        self.sent.append({"kind": "native", "chain": chain.name, "from": account.address, "to": to, "value": value})
        return FAKE_TX_HASH

    async def send_token(self, chain, account, token_address, to, amount):
        self.sent.append({
            "kind": "token", "chain": chain.name, "from": account.address,
            "token": token_address, "to": to, "amount": amount,
        })
        return FAKE_TX_HASH


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every test in an empty directory with no WALLET_PATH set."""
    monkeypatch.delenv("WALLET_PATH", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def wallet_path(tmp_path):
    return tmp_path / "wallet" / "wallet.json"


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(tmp_path / "wallet" / "tokens.json")


@pytest.fixture
def registry(token_store):
    return ChainRegistry(token_store=token_store)


@pytest.fixture
def provider():
    return FakeProvider()
