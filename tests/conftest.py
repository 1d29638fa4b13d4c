"""Shared pytest fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from adapters.control_plane import ControlPlaneClient
from core.config import LookupSettings, load_settings
from core.domain.models import EntityKind, SearchFilter
from core.logging import setup_logging

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeSearch:
    """In-memory `EntitySearch` that records every call."""

    def __init__(
        self,
        records: list[dict[str, Any]] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.records = records or []
        self.error = error
        self.calls: list[tuple[EntityKind, SearchFilter]] = []

    async def search_entities(
        self,
        kind: EntityKind,
        search_filter: SearchFilter,
    ) -> list[dict[str, Any]]:
        self.calls.append((kind, search_filter))
        if self.error is not None:
            raise self.error
        return list(self.records)


class ControlPlaneRecorder:
    """httpx handler playing the companion; records requests by path."""

    def __init__(
        self,
        *,
        ping_message: Any = "pong",
        ping_error: Exception | None = None,
        honeyvent_status: int = 200,
    ) -> None:
        self.ping_message = ping_message
        self.ping_error = ping_error
        self.honeyvent_status = honeyvent_status
        self.requests: list[tuple[str, dict[str, Any]]] = []

    def paths(self) -> list[str]:
        return [path for path, _ in self.requests]

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [body for p, body in self.requests if p == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else {}
        self.requests.append((request.url.path, body))
        if request.url.path.endswith("/Ping"):
            if self.ping_error is not None:
                raise self.ping_error
            return httpx.Response(200, json={"message": self.ping_message}, request=request)
        if request.url.path.endswith("/Honeyvent"):
            return httpx.Response(self.honeyvent_status, json={}, request=request)
        return httpx.Response(404, json={"message": "unknown method"}, request=request)


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    """Route structlog through stdlib logging on the current stderr."""
    setup_logging(level="WARNING")


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch) -> LookupSettings:
    """Settings built only from explicit values (no env, no .env files)."""
    for name in (
        "LW_ACCOUNT",
        "LW_SUBACCOUNT",
        "LW_API_KEY",
        "LW_API_SECRET",
        "LW_API_TOKEN",
        "LW_CDK_TARGET",
        "LW_CDK_SERVER_PORT",
        "LW_COMPONENT_NAME",
        "LW_HONEYVENT_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    return load_settings(
        _env_file=None,
        account="acme",
        api_key="KEY",
        api_secret="SECRET",
        cdk_server_port=5000,
        component_name="lookup",
    )


@pytest.fixture
def recorder() -> ControlPlaneRecorder:
    return ControlPlaneRecorder()


@pytest.fixture
def make_control_plane() -> Callable[[Callable[[httpx.Request], Any]], ControlPlaneClient]:
    """Build a `ControlPlaneClient` whose transport is the given handler."""

    def factory(handler: Callable[[httpx.Request], Any]) -> ControlPlaneClient:
        return ControlPlaneClient(
            target="localhost:5000",
            component_name="lookup",
            telemetry_timeout_seconds=2.0,
            transport=httpx.MockTransport(handler),
        )

    return factory


@pytest.fixture
def lines() -> list[str]:
    """Collected stdout lines; pass `lines.append` as the echo callable."""
    return []


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_search() -> Callable[..., FakeSearch]:
    return FakeSearch


@pytest.fixture
def make_recorder() -> Callable[..., ControlPlaneRecorder]:
    return ControlPlaneRecorder
