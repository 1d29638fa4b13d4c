"""Client for the local control-plane companion.

The companion serves `cdk.v1.Core` over HTTP using the Connect unary JSON
convention (`POST /<service>/<method>`, lowerCamelCase JSON bodies). It is
always on the same machine, so the connection is plain HTTP.

Lifecycle: DISCONNECTED -> CONNECTED -> READY -> TELEMETRY_SENT, and CLOSED
from any state. There is no way back.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.http_client import build_async_client, describe_http_error, normalize_base_url
from core.config import PING_TIMEOUT_SECONDS, LookupSettings
from core.domain.models import PingResult, TelemetryEvent
from core.errors import ControlPlaneError
from core.logging import get_logger

logger = get_logger(__name__)

PING_PATH = "/cdk.v1.Core/Ping"
HONEYVENT_PATH = "/cdk.v1.Core/Honeyvent"
LOOKUP_FEATURE = "lookup_event"


class ControlPlaneState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    READY = "ready"
    TELEMETRY_SENT = "telemetry_sent"
    CLOSED = "closed"


class ControlPlaneClient:
    """Liveness ping and usage telemetry against the companion process.

    Usage:
        async with ControlPlaneClient.from_settings(settings) as control_plane:
            await control_plane.ping()
            ...
            await control_plane.report_lookup(started_at=start, search_key="user")
    """

    def __init__(
        self,
        *,
        target: str,
        component_name: str,
        telemetry_timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.target = target
        self.component_name = component_name
        self.telemetry_timeout_seconds = telemetry_timeout_seconds
        self.state = ControlPlaneState.DISCONNECTED
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(
        cls,
        settings: LookupSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ControlPlaneClient":
        return cls(
            target=settings.control_plane_target,
            component_name=settings.component_name,
            telemetry_timeout_seconds=settings.telemetry_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ControlPlaneClient":
        self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def connect(self) -> None:
        """Prepare the single connection to the companion (one dial, no retries)."""

        if self.state is not ControlPlaneState.DISCONNECTED:
            raise ControlPlaneError(f"could not connect: client is {self.state.value}")

        logger.info("connecting to control plane", address=self.target)
        try:
            self._client = build_async_client(
                base_url=normalize_base_url(self.target),
                timeout_seconds=PING_TIMEOUT_SECONDS,
                extra_headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        except (httpx.InvalidURL, ValueError) as exc:
            raise ControlPlaneError(f"could not connect: {exc}") from exc
        self.state = ControlPlaneState.CONNECTED

    async def _call(self, path: str, body: dict[str, Any], *, timeout: float) -> dict[str, Any]:
        if self._client is None:
            raise ControlPlaneError("client is not connected")
        response = await self._client.post(path, json=body, timeout=timeout)
        response.raise_for_status()
        payload = response.json() if response.content else {}
        if not isinstance(payload, dict):
            raise ValueError("response is not a JSON object")
        return payload

    async def ping(self) -> PingResult:
        """Liveness call bounded by a fixed one-second deadline."""

        if self.state is not ControlPlaneState.CONNECTED:
            raise ControlPlaneError(f"could not ping: client is {self.state.value}")

        try:
            payload = await asyncio.wait_for(
                self._call(
                    PING_PATH,
                    {"componentName": self.component_name},
                    timeout=PING_TIMEOUT_SECONDS,
                ),
                timeout=PING_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as exc:
            raise ControlPlaneError(
                f"could not ping: no answer within {PING_TIMEOUT_SECONDS:g}s"
            ) from exc
        except httpx.HTTPError as exc:
            raise ControlPlaneError(f"could not ping: {describe_http_error(exc)}") from exc
        except ValueError as exc:
            raise ControlPlaneError(f"could not ping: {exc}") from exc

        try:
            reply = PingResult.model_validate(payload)
        except ValidationError as exc:
            raise ControlPlaneError(
                f"could not ping: invalid response ({exc.error_count()} error(s))"
            ) from exc
        self.state = ControlPlaneState.READY
        logger.debug("ping response", source=PING_PATH, message=reply.message)
        return reply

    async def honeyvent(self, event: TelemetryEvent) -> None:
        """Send one telemetry event with its own deadline."""

        if self.state is not ControlPlaneState.READY:
            raise ControlPlaneError(f"could not send honeyvent: client is {self.state.value}")

        try:
            await self._call(
                HONEYVENT_PATH,
                event.to_wire(),
                timeout=self.telemetry_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise ControlPlaneError(
                f"could not send honeyvent: {describe_http_error(exc)}"
            ) from exc
        except ValueError as exc:
            raise ControlPlaneError(f"could not send honeyvent: {exc}") from exc

        self.state = ControlPlaneState.TELEMETRY_SENT
        logger.debug("honeyvent sent", feature=event.feature, duration_ms=event.duration_ms)

    async def report_lookup(self, *, started_at: float, search_key: str) -> None:
        """Best-effort lookup telemetry; failures are logged, never raised.

        `started_at` is a `time.monotonic()` mark taken when the invocation began.
        Only the entity kind is reported, never the looked-up value.
        """

        duration_ms = max(0, int((time.monotonic() - started_at) * 1000))
        event = TelemetryEvent(
            duration_ms=duration_ms,
            feature=LOOKUP_FEATURE,
            data={"search": search_key},
        )
        try:
            await self.honeyvent(event)
        except ControlPlaneError as exc:
            logger.error("unable to send honeyvent", error=str(exc))

    async def close(self) -> None:
        if self.state is ControlPlaneState.CLOSED:
            return
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.state = ControlPlaneState.CLOSED
