"""CLI output components (Rich).

Keeps console construction and the exact result text out of the command
functions.
"""

from __future__ import annotations

from typing import Callable

from rich.console import Console
from rich.table import Table

from core.config import LookupSettings

USAGE_TEXT = (
    "Use lookup command to search for entities in your environment. "
    "Try the argument 'user:root'."
)


def build_output_console() -> Console:
    """stdout console: results are printed verbatim, with markup and emoji codes off."""

    return Console(highlight=False, soft_wrap=True, emoji=False)


def build_error_console() -> Console:
    return Console(stderr=True, highlight=False, soft_wrap=True, emoji=False)


def make_echo(console: Console) -> Callable[[str], None]:
    """Line printer handed to the lookup services."""

    def echo(line: str) -> None:
        console.print(line, markup=False, highlight=False, emoji=False)

    return echo


def print_usage(console: Console) -> None:
    console.print(USAGE_TEXT, markup=False, emoji=False)


def print_error(console: Console, message: str) -> None:
    console.print(f"ERROR {message}", markup=False, emoji=False)


def build_ping_table(settings: LookupSettings, *, ok: bool, detail: str) -> Table:
    """Table for the `--ping` diagnostics."""

    table = Table(title="Control Plane")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Target", "OK", settings.control_plane_target)
    table.add_row("Component", "OK", settings.component_name)
    table.add_row("Ping", "OK" if ok else "FAIL", detail)
    table.add_row(
        "Honeyvent",
        "ON" if settings.honeyvent_enabled else "OFF",
        "sent after each lookup" if settings.honeyvent_enabled else "disabled",
    )
    return table
