"""Rich console output for the CLI."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from .constants import NOT_QUEUED
from .domain import Vault


def _truncate_address(address: str) -> str:
    if not address:
        return "-"
    return f"{address[:10]}...{address[-4:]}"


def _format_bps(bps: int) -> str:
    return f"{bps / 100:.2f}%"


def format_vaults_table(vaults: list[Vault] | tuple[Vault, ...], console: Console | None = None) -> None:
    """Print one row per vault."""
    console = console or Console()
    table = Table(title=f"Vaults ({len(vaults)})")
    table.add_column("Vault", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Total assets", justify="right")
    table.add_column("Strategies", justify="right")
    table.add_column("Debt usage", justify="right")
    table.add_column("Last report")
    table.add_column("Config")

    for vault in vaults:
        table.add_row(
            _truncate_address(vault.address),
            vault.name,
            vault.api_version,
            f"{vault.total_assets:,}",
            str(len(vault.strategies)),
            _format_bps(vault.debt_usage),
            vault.last_report_text,
            "[green]ok[/green]" if vault.config_ok else f"[yellow]{len(vault.config_warnings)} warning(s)[/yellow]",
        )
    console.print(table)


def format_vault_detail(vault: Vault, console: Console | None = None) -> None:
    """Print a vault and its strategies in queue order."""
    console = console or Console()
    console.print(f"[bold]{vault.name}[/bold] {vault.address} (v{vault.api_version})")
    console.print(
        f"total assets {vault.total_assets:,}  total debt {vault.total_debt:,}  "
        f"debt usage {_format_bps(vault.debt_usage)}  last report {vault.last_report_text}"
    )

    table = Table(title="Strategies")
    table.add_column("#", justify="right")
    table.add_column("Strategy", style="cyan")
    table.add_column("Name")
    table.add_column("Debt ratio", justify="right")
    table.add_column("Total debt", justify="right")
    table.add_column("Share of debt", justify="right")
    table.add_column("Last report")
    for strategy in vault.strategies:
        table.add_row(
            "-" if strategy.queue_index == NOT_QUEUED else str(strategy.queue_index),
            _truncate_address(strategy.address),
            strategy.name,
            _format_bps(strategy.params.debt_ratio),
            f"{strategy.params.total_debt:,}",
            _format_bps(strategy.debt_usage),
            strategy.last_report_text,
        )
    console.print(table)

    for warning in vault.config_warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
