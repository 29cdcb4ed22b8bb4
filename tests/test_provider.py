"""Tests for the web3 provider: log decoding helpers and the JSON-RPC calls it makes."""

import asyncio

import pytest
from eth_account import Account
from web3 import Web3
from web3.exceptions import Web3Exception
from web3.providers.async_base import AsyncBaseProvider

from agent_wallet.core.balance import get_balance
from agent_wallet.core.history import get_history
from agent_wallet.core.send import send_native, send_token
from agent_wallet.storage.models import Direction
from agent_wallet.wallet.chains import BUILTIN_CHAINS
from agent_wallet.wallet.provider import (
    TRANSFER_TOPIC,
    Web3Provider,
    address_topic,
    decode_transfer_log,
)

from conftest import FAKE_TX_HASH, TEST_KEY

SENDER = Web3.to_checksum_address("0x2c7536e3605d9c16a7a3d7b1898e529396a65c23")
RECIPIENT = Web3.to_checksum_address("0x000000000000000000000000000000000000dead")
TOKEN = Web3.to_checksum_address("0x036cbd53842c5426634e7929541ec2318f3dcf7e")


def _topic(address):
    return bytes(12) + bytes.fromhex(address[2:])


def test_address_topic():
    topic = address_topic(RECIPIENT)
    assert len(topic) == 66
    assert topic.endswith("000000000000000000000000000000000000dead")


def test_transfer_topic_matches_signature():
    assert Web3.to_hex(Web3.keccak(text="Transfer(address,address,uint256)")) == TRANSFER_TOPIC


def test_decode_erc20_transfer():
    log = {
        "address": TOKEN,
        "topics": [bytes.fromhex(TRANSFER_TOPIC[2:]), _topic(SENDER), _topic(RECIPIENT)],
        "data": (1_500_000).to_bytes(32, "big"),
        "blockNumber": 42,
        "transactionHash": bytes.fromhex("ab" * 32),
    }
    event = decode_transfer_log(log)
    assert event.contract == TOKEN
    assert event.sender == SENDER
    assert event.recipient == RECIPIENT
    assert event.value == 1_500_000
    assert event.block_number == 42
    assert event.tx_hash == "0x" + "ab" * 32


def test_decode_skips_erc721_transfers():
    log = {
        "address": TOKEN,
        "topics": [bytes.fromhex(TRANSFER_TOPIC[2:]), _topic(SENDER), _topic(RECIPIENT), bytes(32)],
        "data": b"",
        "blockNumber": 1,
        "transactionHash": bytes(32),
    }
    assert decode_transfer_log(log) is None


def test_web3_instances_are_cached_per_chain():
    provider = Web3Provider()
    base = BUILTIN_CHAINS["base"]
    assert provider.get_web3(base) is provider.get_web3(base)
    assert provider.get_web3(base) is not provider.get_web3(BUILTIN_CHAINS["ethereum"])


# ---------------------------------------------------------------------------
# JSON-RPC traffic against an in-process node
# ---------------------------------------------------------------------------

CHAIN = BUILTIN_CHAINS["base-sepolia"]
WETH = CHAIN.tokens["WETH"].address
ME = Account.from_key(TEST_KEY).address
HEAD = 10_000


class StubRPC(AsyncBaseProvider):
    """Answers JSON-RPC requests from a table and records each one."""

    def __init__(self, results=None, errors=None):
        super().__init__()
        self.calls = []
        self.results = {
            "eth_chainId": hex(CHAIN.chain_id),
            "eth_blockNumber": hex(HEAD),
            "eth_getBalance": hex(2 * 10**18),
            "eth_call": "0x" + format(1_500_000, "064x"),
            "eth_getLogs": [],
            "eth_estimateGas": hex(60_000),
            "eth_maxPriorityFeePerGas": hex(10**9),
            "eth_getBlockByNumber": {
                "number": hex(HEAD),
                "baseFeePerGas": hex(10**9),
                "gasLimit": hex(30_000_000),
            },
            "eth_getTransactionCount": "0x7",
            "eth_sendRawTransaction": FAKE_TX_HASH,
        }
        self.results.update(results or {})
        self.errors = errors or {}

    async def make_request(self, method, params):
        self.calls.append((method, params))
        response = {"jsonrpc": "2.0", "id": len(self.calls)}
        error = self.errors.get(method)
        if callable(error):
            error = error(params)
        if error is not None:
            response["error"] = error
            return response
        result = self.results[method]
        response["result"] = result(params) if callable(result) else result
        return response

    async def is_connected(self, show_traceback=False):
        return True

    def params_for(self, method):
        return [params for name, params in self.calls if name == method]


class StubbedProvider(Web3Provider):
    def __init__(self, rpc):
        super().__init__()
        self.rpc = rpc

    def _transport(self, chain):
        return self.rpc


REVERT = {"code": 3, "message": "execution reverted", "data": "0x"}


def _log(sender, recipient, value, block):
    return {
        "address": TOKEN,
        "topics": [TRANSFER_TOPIC, address_topic(sender), address_topic(recipient)],
        "data": "0x" + format(value, "064x"),
        "blockNumber": hex(block),
        "blockHash": "0x" + "11" * 32,
        "transactionHash": "0x" + format(block, "064x"),
        "transactionIndex": "0x0",
        "logIndex": "0x0",
        "removed": False,
    }


def _logs_by_topic(params):
    """Outgoing filters carry the wallet in topic 1, incoming ones in topic 2."""
    _, sender_topic, recipient_topic = params[0]["topics"]
    if sender_topic == address_topic(ME):
        return [_log(ME, RECIPIENT, 2_000_000, 9_990)]
    if recipient_topic == address_topic(ME):
        return [_log(SENDER, ME, 1_500_000, 9_995)]
    return []


def test_transfer_log_filters_place_wallet_in_sender_or_recipient_topic():
    rpc = StubRPC()
    provider = StubbedProvider(rpc)

    async def scan():
        await provider.get_transfer_logs(CHAIN, 100, 200, sender=ME)
        await provider.get_transfer_logs(CHAIN, 100, 200, recipient=ME)

    asyncio.run(scan())
    filters = [params[0] for params in rpc.params_for("eth_getLogs")]
    assert [f["topics"] for f in filters] == [
        [TRANSFER_TOPIC, address_topic(ME), None],
        [TRANSFER_TOPIC, None, address_topic(ME)],
    ]
    assert filters[0]["fromBlock"] == hex(100)
    assert filters[0]["toBlock"] == hex(200)


def test_history_directions_follow_the_log_topics(registry):
    provider = StubbedProvider(StubRPC(results={"eth_getLogs": _logs_by_topic}))
    records = asyncio.run(get_history(provider, registry, ME, "base-sepolia", 50))

    assert [(r.direction, r.sender, r.recipient) for r in records] == [
        (Direction.IN, SENDER, ME),
        (Direction.OUT, ME, RECIPIENT),
    ]
    assert [r.amount for r in records] == ["1.5", "2"]
    assert {r.token for r in records} == {"USDC"}


def test_native_and_token_balance_reads():
    rpc = StubRPC()
    provider = StubbedProvider(rpc)

    async def read():
        return (
            await provider.get_native_balance(CHAIN, ME),
            await provider.get_token_balance(CHAIN, TOKEN, ME),
            await provider.get_block_number(CHAIN),
        )

    assert asyncio.run(read()) == (2 * 10**18, 1_500_000, HEAD)
    (call,) = rpc.params_for("eth_call")
    assert call[0]["to"].lower() == TOKEN.lower()
    assert call[0]["data"].startswith("0x70a08231")  # balanceOf(address)
    assert call[0]["data"].endswith(ME[2:].lower())


def test_reverting_balance_call_raises():
    provider = StubbedProvider(StubRPC(errors={"eth_call": REVERT}))
    with pytest.raises(Web3Exception):
        asyncio.run(provider.get_token_balance(CHAIN, TOKEN, ME))


def test_reverting_token_counts_as_zero_in_balance(registry):
    def revert_usdc(params):
        return REVERT if params[0]["to"].lower() == TOKEN.lower() else None

    provider = StubbedProvider(StubRPC(errors={"eth_call": revert_usdc}))
    result = asyncio.run(get_balance(provider, registry, ME, "base-sepolia"))

    assert result.native == "2"
    assert [(t.symbol, t.raw) for t in result.tokens] == [("USDC", "0"), ("WETH", "1500000")]


def test_native_send_is_signed_locally(registry):
    rpc = StubRPC()
    provider = StubbedProvider(rpc)
    result = asyncio.run(
        send_native(provider, registry, TEST_KEY, RECIPIENT, "0.25", "base-sepolia")
    )

    assert result.tx_hash == FAKE_TX_HASH
    assert not rpc.params_for("eth_sendTransaction")
    (raw,) = [params[0] for params in rpc.params_for("eth_sendRawTransaction")]
    assert Account.recover_transaction(raw) == ME
    assert RECIPIENT[2:].lower() in raw.lower()


def test_token_send_calls_transfer_on_the_contract(registry):
    rpc = StubRPC()
    provider = StubbedProvider(rpc)
    result = asyncio.run(
        send_token(provider, registry, TEST_KEY, RECIPIENT, "1", "WETH", "base-sepolia")
    )

    assert result.tx_hash == FAKE_TX_HASH
    (raw,) = [params[0] for params in rpc.params_for("eth_sendRawTransaction")]
    assert Account.recover_transaction(raw) == ME
    assert "a9059cbb" in raw.lower()  # transfer(address,uint256)
    assert WETH[2:].lower() in raw.lower()
    assert format(10**18, "064x") in raw.lower()
