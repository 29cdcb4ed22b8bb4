"""CLI for Agent Wallet - an EVM wallet that speaks JSON.

Every successful command prints exactly one JSON document on stdout. Every
failure prints ``{"error": "..."}`` on stderr and exits with status 1.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from agent_wallet.wallet.chains import BUILTIN_CHAINS, DEFAULT_CHAIN

app = typer.Typer(
    name="agent-wallet",
    help="Create a wallet, check balances, send tokens and read history on EVM chains.",
    add_completion=False,
)
console = Console(soft_wrap=True)
err_console = Console(stderr=True)

logger = logging.getLogger("agent_wallet.cli")

_wallet_path: Optional[str] = None
_verbose: bool = False


HELP_TEXT = f"""Usage: agent-wallet <command> [options]

Commands:
  create                          Generate a new wallet
  import <private-key>            Import wallet from private key
  address                         Show wallet address
  balance [--chain <chain>]       Show native + token balances
  send <amount> <to> [options]    Send native currency or tokens
  tokens [--chain <chain>]        List token balances
  history [--chain <chain>]       Show recent token transfers
  token add <symbol> <address>    Register a custom token
  token remove <symbol>           Remove a custom token
  token list                      List custom tokens
  chains                          List supported chains
  export                          Print the private key
  help                            Show this help

Send options:
  --token <symbol|address>        Token to send (default: native currency)
  --chain <chain>                 Chain (default: {DEFAULT_CHAIN})

History options:
  --blocks <n>                    Blocks to scan back from head (default: 5000)

Token options:
  --decimals <n>                  Token decimals (default: 18)
  --chain <chain>                 Chain (default: {DEFAULT_CHAIN})
  --all                           (list) Show custom tokens on every chain

Global options:
  --wallet <path>                 Wallet file (overrides WALLET_PATH)
  --verbose                       Debug logging on stderr

Chains: {', '.join(BUILTIN_CHAINS)}

Environment:
  WALLET_PATH                     Custom wallet file path (default: .wallet/wallet.json in cwd)"""


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"agent-wallet {version('agent-wallet')}")
        raise typer.Exit()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _out(data: object) -> None:
    """Print one JSON document on stdout."""
    typer.echo(json.dumps(data, indent=2, default=str))


def _error(message: str) -> None:
    typer.echo(json.dumps({"error": message}), err=True)


def _fail(message: str):
    """Print a JSON error on stderr and exit with status 1."""
    _error(message)
    raise typer.Exit(1)


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn any exception raised by a command into the JSON error contract."""
    try:
        yield
    except (typer.Exit, typer.Abort):
        raise
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        _fail(str(e) or e.__class__.__name__)


def _get_manager():
    from agent_wallet.wallet.manager import WalletManager

    manager = WalletManager(wallet_path=_wallet_path)
    _configure_logging("DEBUG" if _verbose else manager.settings.log_level)
    return manager


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    wallet: Optional[str] = typer.Option(
        None, "--wallet", "-w", help="Wallet file path (overrides WALLET_PATH)"
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log debug output to stderr"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Create a wallet, check balances, send tokens and read history on EVM chains."""
    global _wallet_path, _verbose
    _wallet_path = wallet
    _verbose = verbose
    if ctx.invoked_subcommand is None:
        console.print(HELP_TEXT, markup=False, highlight=False)


# ------------------------------------------------------------------
# Wallet lifecycle
# ------------------------------------------------------------------


@app.command("create")
def create_cmd():
    """Generate a new wallet."""
    with _handle_errors():
        wallet = _get_manager().create()
    _out({"status": "created", "address": wallet.address})


@app.command("import")
def import_cmd(
    private_key: Optional[str] = typer.Argument(None, help="Hex private key, with or without 0x"),
):
    """Import a wallet from a private key (replaces any existing wallet)."""
    if not private_key:
        _fail("Usage: agent-wallet import <private-key>")
    with _handle_errors():
        wallet = _get_manager().import_key(private_key)
    _out({"status": "imported", "address": wallet.address})


@app.command("address")
def address_cmd():
    """Show the wallet address."""
    with _handle_errors():
        address = _get_manager().address
    _out({"address": address})


@app.command("export")
def export_cmd():
    """Print the wallet's private key."""
    with _handle_errors():
        wallet = _get_manager().load()
    _out({
        "warning": "NEVER share your private key with anyone!",
        "privateKey": wallet.private_key,
    })


# ------------------------------------------------------------------
# Queries
# ------------------------------------------------------------------


@app.command("balance")
def balance_cmd(
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain name"),
):
    """Show native and token balances."""
    with _handle_errors():
        manager = _get_manager()
        result = _run(manager.get_balance(chain))
    _out(result.to_json_dict())


@app.command("tokens")
def tokens_cmd(
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain name"),
):
    """List token balances."""
    with _handle_errors():
        manager = _get_manager()
        result = _run(manager.scan_tokens(chain))
    _out(result.to_json_dict())


@app.command("history")
def history_cmd(
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain name"),
    blocks: Optional[int] = typer.Option(
        None, "--blocks", "-b", help="Blocks to scan back from the head"
    ),
):
    """Show recent ERC-20 transfers in and out of the wallet."""
    with _handle_errors():
        manager = _get_manager()
        chain_name = chain or manager.settings.default_chain
        records = _run(manager.get_history(chain_name, blocks))
        address = manager.address
    _out({
        "address": address,
        "chain": chain_name,
        "transactions": [record.to_json_dict() for record in records],
    })


@app.command("chains")
def chains_cmd():
    """List supported chains."""
    with _handle_errors():
        chains = _get_manager().chains()
    _out([
        {
            "name": chain.name,
            "chainId": chain.chain_id,
            "nativeSymbol": chain.native_symbol,
            "explorerUrl": chain.explorer_url,
        }
        for chain in chains
    ])


# ------------------------------------------------------------------
# Transfers
# ------------------------------------------------------------------


@app.command("send")
def send_cmd(
    amount: Optional[str] = typer.Argument(None, help="Amount to send (e.g. 0.01)"),
    to: Optional[str] = typer.Argument(None, help="Recipient address (0x...)"),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Token symbol or contract address"),
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain to send on"),
):
    """Send native currency or ERC-20 tokens."""
    if not amount or not to:
        _fail("Usage: agent-wallet send <amount> <to> [--token <token>] [--chain <chain>]")
    with _handle_errors():
        manager = _get_manager()
        result = _run(manager.send(amount, to, token=token, chain_name=chain))
    _out(result.to_json_dict())


# ------------------------------------------------------------------
# token sub-commands
# ------------------------------------------------------------------

token_app = typer.Typer(
    name="token",
    help="Manage custom ERC-20 tokens.",
    no_args_is_help=True,
)
app.add_typer(token_app, name="token")


@token_app.command("add")
def token_add(
    symbol: Optional[str] = typer.Argument(None, help="Token symbol (stored upper-case)"),
    address: Optional[str] = typer.Argument(None, help="Token contract address"),
    decimals: int = typer.Option(18, "--decimals", "-d", help="Token decimals"),
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain name"),
):
    """Register a custom token (overwrites an existing symbol)."""
    if not symbol or not address:
        _fail("Usage: agent-wallet token add <symbol> <address> [--decimals <n>] [--chain <chain>]")
    with _handle_errors():
        manager = _get_manager()
        chain_name = chain or manager.settings.default_chain
        token = manager.add_token(symbol, address, decimals, chain_name)
    _out({"status": "added", "chain": chain_name, "token": token.to_json_dict()})


@token_app.command("remove")
def token_remove(
    symbol: Optional[str] = typer.Argument(None, help="Token symbol"),
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain name"),
):
    """Remove a custom token."""
    if not symbol:
        _fail("Usage: agent-wallet token remove <symbol> [--chain <chain>]")
    with _handle_errors():
        manager = _get_manager()
        chain_name = chain or manager.settings.default_chain
        removed = manager.remove_token(symbol, chain_name)
    if not removed:
        _fail(f'Token "{symbol.upper()}" not found on chain "{chain_name}"')
    _out({"status": "removed", "chain": chain_name, "symbol": symbol.upper()})


@token_app.command("list")
def token_list(
    chain: Optional[str] = typer.Option(None, "--chain", "-c", help="Chain name"),
    all_chains: bool = typer.Option(False, "--all", help="Show every chain"),
):
    """List custom tokens."""
    with _handle_errors():
        manager = _get_manager()
        if all_chains:
            registry = manager.token_store.list()
        else:
            registry = manager.list_tokens(chain)
    _out({
        chain_name: {symbol: token.to_json_dict() for symbol, token in tokens.items()}
        for chain_name, tokens in registry.items()
    })


@app.command("help")
def help_cmd():
    """Show usage."""
    console.print(HELP_TEXT, markup=False, highlight=False)


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main() -> None:
    """Console-script entry point.

    Usage errors raised while parsing (unknown command, bad option) are
    reported through the same JSON error contract as command failures.
    """
    try:
        rv = app(standalone_mode=False)
    except typer.Abort:
        _error("Aborted")
        sys.exit(1)
    except Exception as e:
        # usage errors from typer's parser carry a formatted message
        format_message = getattr(e, "format_message", None)
        if callable(format_message):
            _error(format_message())
        else:
            _error(str(e) or e.__class__.__name__)
        sys.exit(1)
    sys.exit(rv if isinstance(rv, int) else 0)


if __name__ == "__main__":
    main()
