"""Tests for the chain registry and custom-token overlay."""

import pytest
from web3 import Web3

from agent_wallet.errors import UnknownChainError
from agent_wallet.wallet.chains import BUILTIN_CHAINS, DEFAULT_CHAIN, ChainRegistry

DAI = "0x6B175474E89094C44Da98b954EedeAC495271d0F"


def test_list_chains():
    registry = ChainRegistry()
    assert set(registry.list_chains()) == {"base-sepolia", "base", "ethereum", "ethereum-sepolia"}
    assert DEFAULT_CHAIN in registry


@pytest.mark.parametrize("name", list(BUILTIN_CHAINS))
def test_every_chain_has_usdc_and_weth(name):
    config = ChainRegistry().resolve(name)
    assert config.name == name
    for symbol in ("USDC", "WETH"):
        token = config.tokens[symbol]
        assert token.symbol == symbol
        assert Web3.is_address(token.address)
        assert len(Web3.to_bytes(hexstr=token.address)) == 20


def test_unknown_chain():
    with pytest.raises(UnknownChainError, match="Available chains"):
        ChainRegistry().resolve("unknown-chain")


def test_custom_tokens_overlay(registry, token_store):
    token_store.add("base", "dai", DAI, 18)
    config = registry.resolve("base")
    assert list(config.tokens) == ["USDC", "WETH", "DAI"]
    # other chains are untouched
    assert "DAI" not in registry.resolve("ethereum").tokens


def test_custom_token_shadows_builtin(registry, token_store):
    token_store.add("base", "USDC", DAI, 18)
    config = registry.resolve("base")
    assert config.tokens["USDC"].address == DAI
    assert config.tokens["USDC"].decimals == 18
    assert BUILTIN_CHAINS["base"].tokens["USDC"].decimals == 6


def test_rpc_override():
    registry = ChainRegistry(rpc_urls={"base": "http://localhost:8545"})
    assert registry.resolve("base").rpc_url == "http://localhost:8545"
    assert registry.resolve("ethereum").rpc_url == BUILTIN_CHAINS["ethereum"].rpc_url
