"""User-defined ERC-20 tokens, persisted as ``tokens.json`` next to the wallet."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError
from web3 import Web3

from agent_wallet.errors import TokenRegistryCorruptError
from agent_wallet.storage.models import TokenInfo

logger = logging.getLogger("agent_wallet.wallet.token_registry")

# chain -> SYMBOL -> token
TokenRegistry = dict[str, dict[str, TokenInfo]]

_REGISTRY_ADAPTER = TypeAdapter(TokenRegistry)


class TokenStore:
    """Read/modify/write access to the custom token file.

    Parameters
    ----------
    path:
        Location of ``tokens.json``.
    strict:
        When *True* a corrupt file raises :class:`TokenRegistryCorruptError`;
        otherwise it is logged and treated as empty.
    """

    def __init__(self, path: Path, strict: bool = False) -> None:
        self.path = path
        self.strict = strict

    # ------------------------------------------------------------------
    # File operations
    # ------------------------------------------------------------------

    def load(self) -> TokenRegistry:
        """Load custom tokens from disk. Missing file -> empty registry."""
        if not self.path.exists():
            return {}

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return _REGISTRY_ADAPTER.validate_python(raw)
        except (json.JSONDecodeError, ValidationError, UnicodeDecodeError) as exc:
            if self.strict:
                raise TokenRegistryCorruptError(
                    f"Token registry is corrupt: {self.path}"
                ) from exc
            logger.warning(f"Ignoring unreadable token registry {self.path}: {exc}")
            return {}

    def _save(self, registry: TokenRegistry) -> None:
        """Persist the whole registry, replacing the file in one step."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            chain: {symbol: token.to_json_dict() for symbol, token in tokens.items()}
            for chain, tokens in registry.items()
        }
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        tmp_path.replace(self.path)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, chain: str, symbol: str, address: str, decimals: int) -> TokenInfo:
        """Add a custom token for a chain. Overwrites if the symbol exists.

        Raises ``ValueError`` for a malformed contract address or negative
        decimals.
        """
        if not Web3.is_address(address):
            raise ValueError(f"Invalid token address: {address}")
        if decimals < 0:
            raise ValueError(f"Token decimals must be non-negative, got {decimals}")

        upper = symbol.upper()
        token = TokenInfo(
            symbol=upper,
            address=Web3.to_checksum_address(address),
            decimals=decimals,
        )

        registry = self.load()
        registry.setdefault(chain, {})[upper] = token
        self._save(registry)
        logger.info(f"Token {upper} registered on {chain} at {token.address}")
        return token

    def remove(self, chain: str, symbol: str) -> bool:
        """Remove a custom token by symbol.

        Returns *True* if it was found and removed. An emptied chain entry
        is dropped from the file.
        """
        registry = self.load()
        upper = symbol.upper()

        if upper not in registry.get(chain, {}):
            return False

        del registry[chain][upper]
        if not registry[chain]:
            del registry[chain]
        self._save(registry)
        logger.info(f"Token {upper} removed from {chain}")
        return True

    def list(self, chain: Optional[str] = None) -> TokenRegistry:
        """List all custom tokens, optionally filtered by chain."""
        registry = self.load()
        if chain is None:
            return registry
        return {chain: registry[chain]} if chain in registry else {}
