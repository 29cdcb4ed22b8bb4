"""Ethereum-compatible wallet for Agent Wallet.

Provides a plain-JSON keystore, a registry of supported EVM chains
(Base, Base Sepolia, Ethereum, Ethereum Sepolia) with user-defined token
overlays, and an async web3.py provider for reads and transfers.
"""
