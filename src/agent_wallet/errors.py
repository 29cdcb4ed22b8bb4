"""Exception hierarchy for agent-wallet.

Network failures and contract reverts are not wrapped: they surface as the
web3.py exceptions raised by the RPC layer.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for every error raised by agent-wallet itself."""


class ConfigError(WalletError):
    """The settings file could not be parsed or validated."""


class UnknownChainError(WalletError):
    """The requested chain is not in the built-in registry."""


class UnknownTokenError(WalletError):
    """A token symbol could not be resolved on the requested chain."""


class WalletAlreadyExistsError(WalletError):
    """A wallet file is already present at the target path."""


class WalletNotFoundError(WalletError):
    """No wallet file exists at the resolved path."""


class WalletFileCorruptError(WalletError):
    """The wallet file is not valid JSON."""


class WalletFileMalformedError(WalletError):
    """The wallet file is valid JSON but lacks required string fields."""


class InvalidPrivateKeyError(WalletError):
    """An imported private key could not be turned into an account."""


class TokenRegistryCorruptError(WalletError):
    """The custom token file is unreadable and strict mode is enabled."""
