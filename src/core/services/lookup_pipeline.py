"""Lookup orchestration.

Sequences one invocation: connect -> ping -> build platform client ->
parse argument -> dispatch -> telemetry -> release. Every acquired resource
and the telemetry action live on one `AsyncExitStack`, so they run exactly
once on every exit path, in reverse order of registration.

The CLI only prints; this module never writes to the terminal itself.
"""

from __future__ import annotations

import time
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from adapters.control_plane import ControlPlaneClient
from adapters.platform_client import PlatformClient
from core.config import LookupSettings
from core.domain.models import LookupOutcome, PingResult
from core.interfaces.entity_search import ControlPlane, EntitySearch
from core.logging import get_logger
from core.services.entity_lookup import EntityLookupDispatcher
from core.services.query_builder import parse_lookup_argument

logger = get_logger(__name__)


@dataclass
class LookupCollaborators:
    """Optional pre-built collaborators (tests, embedding).

    Anything left as None is built from the settings and closed by the
    pipeline; injected objects are used as-is and not closed.
    """

    control_plane: ControlPlane | None = None
    platform: EntitySearch | None = None
    clock: Callable[[], datetime] | None = None


async def _open_control_plane(
    stack: AsyncExitStack,
    settings: LookupSettings,
    collaborators: LookupCollaborators,
) -> ControlPlane:
    if collaborators.control_plane is not None:
        return collaborators.control_plane
    return await stack.enter_async_context(ControlPlaneClient.from_settings(settings))


async def ping_control_plane(
    *,
    settings: LookupSettings,
    collaborators: LookupCollaborators | None = None,
) -> PingResult:
    """Connect to the companion, ping it once and release the connection."""

    collaborators = collaborators or LookupCollaborators()
    async with AsyncExitStack() as stack:
        control_plane = await _open_control_plane(stack, settings, collaborators)
        return await control_plane.ping()


async def run_lookup(
    *,
    settings: LookupSettings,
    argument: str | None,
    echo: Callable[[str], None],
    collaborators: LookupCollaborators | None = None,
) -> LookupOutcome:
    """Run one lookup end to end.

    Raises:
        ConfigurationError: platform credentials are missing.
        ControlPlaneError: the companion could not be reached or pinged.
        InvalidArgumentError: `argument` is not a usable `kind:value` token.
        LookupNotImplementedError: the kind has no lookup yet.
        SearchFailedError: the platform search or its decoding failed.
    """

    collaborators = collaborators or LookupCollaborators()
    started_at = time.monotonic()

    async with AsyncExitStack() as stack:
        control_plane = await _open_control_plane(stack, settings, collaborators)

        reply = await control_plane.ping()
        logger.debug("control plane ready", message=reply.message)

        platform = collaborators.platform
        if platform is None:
            platform = await stack.enter_async_context(PlatformClient.from_settings(settings))

        query = parse_lookup_argument(argument)

        if settings.honeyvent_enabled:
            stack.push_async_callback(
                control_plane.report_lookup,
                started_at=started_at,
                search_key=query.kind.value,
            )

        dispatcher = EntityLookupDispatcher(platform, echo=echo, clock=collaborators.clock)
        return await dispatcher.dispatch(query)
