"""Command-line entry point.

    entity-lookup user:root
    entity-lookup machine:42
    entity-lookup --ping

Exit codes: 0 on success (including "not found"), 1 on fatal or domain
errors, 2 on input errors (the usage text is printed instead of a search).
"""

from __future__ import annotations

import asyncio

import typer

from cli.doctor import run_ping_check
from cli.ui_components import (
    build_error_console,
    build_output_console,
    make_echo,
    print_error,
    print_usage,
)
from core.config import load_settings
from core.errors import ConfigurationError, EntityLookupError, InvalidArgumentError
from core.logging import setup_logging
from core.services.lookup_pipeline import LookupCollaborators, run_lookup

EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_app(collaborators: LookupCollaborators | None = None) -> typer.Typer:
    """Build the typer application.

    `collaborators` are handed to the lookup pipeline as-is; None builds the
    control plane and platform clients from the settings.
    """

    app = typer.Typer(
        add_completion=False,
        help="Look up users, machines and images seen in your environment during the last day.",
    )
    console = build_output_console()
    err_console = build_error_console()

    @app.command()
    def lookup(
        query: str | None = typer.Argument(
            None,
            metavar="KIND:VALUE",
            help="Entity to search, e.g. user:root or machine:42 (kinds: user, machine, image).",
            show_default=False,
        ),
        ping: bool = typer.Option(False, "--ping", help="Only check the control plane and exit."),
        verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable INFO logging."),
        debug: bool = typer.Option(False, "--debug", help="Enable DEBUG logging."),
    ) -> None:
        """Search for an entity and print what the platform knows about it."""

        try:
            settings = load_settings()
        except ConfigurationError as exc:
            print_error(err_console, exc.message)
            raise typer.Exit(EXIT_FAILURE)

        level = "DEBUG" if debug else "INFO" if verbose else settings.log_level
        setup_logging(level=level, format_type=settings.log_format)

        if ping:
            if not run_ping_check(settings, console, collaborators=collaborators):
                raise typer.Exit(EXIT_FAILURE)
            return

        try:
            asyncio.run(
                run_lookup(
                    settings=settings,
                    argument=query,
                    echo=make_echo(console),
                    collaborators=collaborators,
                )
            )
        except InvalidArgumentError as exc:
            print_usage(console)
            print_error(err_console, exc.message)
            raise typer.Exit(EXIT_USAGE)
        except EntityLookupError as exc:
            print_error(err_console, exc.message)
            raise typer.Exit(EXIT_FAILURE)

    return app


app = build_app()


def run() -> None:
    app()
