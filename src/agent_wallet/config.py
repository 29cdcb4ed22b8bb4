"""Configuration system for Agent Wallet.

Resolves the wallet file location (``--wallet`` > ``WALLET_PATH`` >
``.wallet/wallet.json`` under the working directory) and loads optional
settings from a ``config.yaml`` placed next to the wallet file. Environment
variable placeholders in the YAML are expanded before validation.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from agent_wallet.errors import ConfigError

WALLET_PATH_ENV = "WALLET_PATH"
DEFAULT_WALLET_RELPATH = Path(".wallet") / "wallet.json"
SETTINGS_FILENAME = "config.yaml"
TOKENS_FILENAME = "tokens.json"


# ---------------------------------------------------------------------------
# Environment-variable expansion helper
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)\}")


def _expand_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with their environment values.

    If the variable is not set the placeholder is left as-is so that
    validation can catch it later.
    """

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        return os.environ.get(var_name, match.group(0))

    return _ENV_VAR_RE.sub(_replace, value)


def _expand_env_recursive(obj: object) -> object:
    """Walk an arbitrary nested structure and expand env vars in strings."""
    if isinstance(obj, str):
        return _expand_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _expand_env_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_recursive(item) for item in obj]
    return obj


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class WalletSettings(BaseModel):
    """User-tunable behaviour of the wallet CLI."""

    default_chain: str = "base-sepolia"
    rpc_urls: dict[str, str] = Field(default_factory=dict)  # chain -> RPC URL override
    strict_token_registry: bool = False  # raise on a corrupt tokens.json
    history_block_range: int = Field(default=5000, ge=0)
    # stderr log level when --verbose is not given
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "ERROR"


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def get_wallet_path(path: Optional[Path | str] = None) -> Path:
    """Return the wallet file path.

    An explicit *path* wins, then the ``WALLET_PATH`` environment variable,
    then ``.wallet/wallet.json`` in the current working directory. Running
    each agent from its own workspace therefore gives each its own wallet.
    """
    if path:
        return Path(path)
    env_path = os.environ.get(WALLET_PATH_ENV)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_WALLET_RELPATH


def get_tokens_path(wallet_path: Optional[Path | str] = None) -> Path:
    """The custom token file always sits next to the wallet file."""
    return get_wallet_path(wallet_path).parent / TOKENS_FILENAME


def get_settings_path(wallet_path: Optional[Path | str] = None) -> Path:
    return get_wallet_path(wallet_path).parent / SETTINGS_FILENAME


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------


def load_settings(path: Path) -> WalletSettings:
    """Load and validate settings from a YAML file.

    A missing file yields the defaults. Raises :class:`ConfigError` when
    the file is not valid YAML or fails validation.
    """
    if not path.exists():
        return WalletSettings()

    try:
        raw_data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Settings file is not valid YAML: {path}") from exc

    if not isinstance(raw_data, dict):
        raise ConfigError(f"Settings file must contain a mapping: {path}")

    expanded = _expand_env_recursive(raw_data)
    try:
        return WalletSettings.model_validate(expanded)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings in {path}: {exc}") from exc
