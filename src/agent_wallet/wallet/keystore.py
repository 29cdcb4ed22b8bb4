"""Plain-JSON keystore management using eth-account."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from eth_account import Account
from pydantic import ValidationError
from web3 import Web3

from agent_wallet.config import get_wallet_path
from agent_wallet.errors import (
    InvalidPrivateKeyError,
    WalletAlreadyExistsError,
    WalletFileCorruptError,
    WalletFileMalformedError,
    WalletNotFoundError,
)
from agent_wallet.storage.models import WalletData

logger = logging.getLogger("agent_wallet.wallet.keystore")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def wallet_exists(path: Optional[Path | str] = None) -> bool:
    """Check whether a wallet file exists at the given path."""
    try:
        return get_wallet_path(path).is_file()
    except OSError:
        return False


def load_wallet(path: Optional[Path | str] = None) -> WalletData:
    """Load and parse the wallet JSON from disk.

    Raises
    ------
    WalletNotFoundError
        If the file is missing.
    WalletFileCorruptError
        If the file is not valid JSON.
    WalletFileMalformedError
        If ``address``, ``privateKey`` or ``createdAt`` is missing or not a
        string.
    """
    wallet_path = get_wallet_path(path)
    if not wallet_path.is_file():
        raise WalletNotFoundError(f"Wallet file not found: {wallet_path}")

    try:
        raw = json.loads(wallet_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise WalletFileCorruptError(
            f"Wallet file is not valid JSON: {wallet_path}"
        ) from exc

    if not isinstance(raw, dict):
        raise WalletFileMalformedError(f"Wallet file is malformed: {wallet_path}")
    try:
        return WalletData.model_validate(raw)
    except ValidationError as exc:
        raise WalletFileMalformedError(
            f"Wallet file is malformed: {wallet_path}"
        ) from exc


def save_wallet(data: WalletData, path: Optional[Path | str] = None) -> Path:
    """Persist wallet data as JSON. Creates parent directories if needed."""
    wallet_path = get_wallet_path(path)
    wallet_path.parent.mkdir(parents=True, exist_ok=True)
    wallet_path.write_text(
        json.dumps(data.to_json_dict(), indent=2) + "\n", encoding="utf-8"
    )
    return wallet_path


def create_wallet(path: Optional[Path | str] = None) -> WalletData:
    """Generate a new Ethereum keypair and save it.

    Raises
    ------
    WalletAlreadyExistsError
        If a wallet already exists at the target path.
    """
    wallet_path = get_wallet_path(path)
    if wallet_exists(wallet_path):
        raise WalletAlreadyExistsError(f"Wallet already exists at {wallet_path}")

    acct = Account.create()
    data = WalletData(
        address=acct.address,
        private_key=Web3.to_hex(acct.key),
        created_at=_now_iso(),
    )
    save_wallet(data, wallet_path)
    logger.info(f"Wallet {data.address} created at {wallet_path}")
    return data


def import_wallet(private_key: str, path: Optional[Path | str] = None) -> WalletData:
    """Import a private key (with or without ``0x``) and save the wallet.

    An existing wallet file at the target path is replaced.
    """
    key = private_key.strip()
    if key[:2].lower() == "0x":
        key = key[2:]
    key = "0x" + key

    try:
        acct = Account.from_key(key)
    except Exception as exc:
        raise InvalidPrivateKeyError(f"Invalid private key: {exc}") from exc

    wallet_path = get_wallet_path(path)
    if wallet_exists(wallet_path):
        logger.warning(f"Overwriting existing wallet at {wallet_path}")

    data = WalletData(address=acct.address, private_key=key, created_at=_now_iso())
    save_wallet(data, wallet_path)
    logger.info(f"Wallet {data.address} imported to {wallet_path}")
    return data
