"""CLI entrypoint for vault-watch."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Annotated

import typer

from .cache import VaultCache
from .errors import InvalidVaultAddressError, VaultNotFoundError
from .formatter import format_vault_detail, format_vaults_table
from .logger import get_logger, setup_logging
from .settings import WatchSettings
from .state import AppState

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Inspect vaults and their strategies.",
)


@app.callback(invoke_without_command=True)
def watch(
    address: Annotated[
        str | None,
        typer.Option(
            "--address",
            "-A",
            help="Show a single vault instead of the whole catalog.",
        ),
    ] = None,
    allow: Annotated[
        list[str] | None,
        typer.Option(
            "--allow",
            "-a",
            help="Include this vault even if it is not endorsed (repeatable).",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [vault_watch] table).",
        ),
    ] = None,
    rpc_url: Annotated[
        str | None, typer.Option("--rpc-url", help="Chain RPC endpoint.")
    ] = None,
    index_api_url: Annotated[
        str | None,
        typer.Option("--index-api-url", help="Base URL of the vault index service."),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json/--table", help="Print JSON instead of a table."),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config and exit.",
        ),
    ] = False,
):
    """Fetch vaults and print them.

    Loads configuration (CLI > ENV > config file), runs the vault pipeline
    and prints either every vault or the one at --address.
    """
    if config_path:
        os.environ["VAULT_WATCH_CONFIG"] = str(config_path)

    init_kwargs: dict[str, str | list[str]] = {}
    if rpc_url is not None:
        init_kwargs["rpc_url"] = rpc_url
    if index_api_url is not None:
        init_kwargs["index_api_url"] = index_api_url
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()
    if allow:
        init_kwargs["allow_list"] = list(allow)

    settings = WatchSettings(**init_kwargs)
    setup_logging(settings.log_level)

    if show_config:
        typer.echo(json.dumps(settings.model_dump(), indent=2))
        raise typer.Exit(code=0)

    state = AppState(settings=settings, logger=get_logger("vault_watch"))
    cache = VaultCache(state)

    if address:
        try:
            vault = asyncio.run(cache.fetch_vault_by_address(address))
        except InvalidVaultAddressError as e:
            raise typer.BadParameter(str(e), param_hint="--address") from e
        except VaultNotFoundError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(code=1) from e
        if as_json:
            typer.echo(json.dumps(vault.to_dict(), indent=2))
        else:
            format_vault_detail(vault)
        return

    vaults = asyncio.run(cache.fetch_all_vaults())
    if as_json:
        typer.echo(json.dumps([v.to_dict() for v in vaults], indent=2))
    else:
        format_vaults_table(vaults)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
