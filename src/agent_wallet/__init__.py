"""Agent Wallet - a JSON-speaking Ethereum-compatible wallet for the terminal."""

__version__ = "0.1.0"
