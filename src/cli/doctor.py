"""Control-plane liveness check (`entity-lookup --ping`)."""

from __future__ import annotations

import asyncio

from rich.console import Console

from cli.ui_components import build_ping_table
from core.config import LookupSettings
from core.errors import ControlPlaneError
from core.services.lookup_pipeline import LookupCollaborators, ping_control_plane


def run_ping_check(
    settings: LookupSettings,
    console: Console,
    *,
    collaborators: LookupCollaborators | None = None,
) -> bool:
    """Ping the companion once and print a summary table. Returns success."""

    try:
        reply = asyncio.run(ping_control_plane(settings=settings, collaborators=collaborators))
    except ControlPlaneError as exc:
        console.print(build_ping_table(settings, ok=False, detail=exc.message))
        return False

    console.print(build_ping_table(settings, ok=True, detail=reply.message or "-"))
    return True
