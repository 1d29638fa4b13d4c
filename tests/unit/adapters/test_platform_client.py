"""Unit tests for the inventory platform client."""

from __future__ import annotations

import json
from datetime import datetime

import httpx
import pytest

from adapters.platform_client import (
    PlatformClient,
    account_base_url,
    format_timestamp,
    search_payload,
)
from core.domain.models import EntityKind, LookupQuery
from core.errors import ConfigurationError, LookupNotImplementedError, PlatformAPIError
from core.services.query_builder import build_search_filter


def _client(handler, **kwargs) -> PlatformClient:
    options = {"account": "acme", "api_key": "KEY", "api_secret": "SECRET"}
    options.update(kwargs)
    return PlatformClient(transport=httpx.MockTransport(handler), **options)


class TestHelpers:
    """Tests for URL and payload helpers."""

    @pytest.mark.parametrize(
        ("account", "expected"),
        [
            ("acme", "https://acme.lacework.net"),
            ("acme.fra.lacework.net", "https://acme.fra.lacework.net"),
            ("http://localhost:8080/", "http://localhost:8080"),
        ],
    )
    def test_account_base_url(self, account: str, expected: str) -> None:
        assert account_base_url(account) == expected

    def test_search_payload(self, fixed_now: datetime) -> None:
        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="root"), fixed_now)
        assert search_payload(search_filter) == {
            "timeFilter": {
                "startTime": "2024-04-30T12:00:00Z",
                "endTime": "2024-05-01T12:00:00Z",
            },
            "filters": [{"field": "username", "expression": "eq", "value": "root"}],
        }

    def test_format_timestamp(self, fixed_now: datetime) -> None:
        assert format_timestamp(fixed_now) == "2024-05-01T12:00:00Z"


class TestSearchEntities:
    """Tests for search_entities."""

    @pytest.mark.asyncio
    async def test_exchanges_keys_then_searches(self, fixed_now: datetime) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/api/v2/access/tokens":
                return httpx.Response(201, json={"token": "T0KEN", "expiresAt": "x"}, request=request)
            return httpx.Response(200, json={"data": [{"mid": 1}, {"mid": 2}]}, request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="root"), fixed_now)
        async with _client(handler, subaccount="team") as client:
            records = await client.search_entities(EntityKind.USER, search_filter)

        assert records == [{"mid": 1}, {"mid": 2}]
        token_request, search_request = seen
        assert token_request.headers["X-LW-UAKS"] == "SECRET"
        assert json.loads(token_request.content) == {"keyId": "KEY", "expiryTime": 3600}
        assert search_request.url.path == "/api/v2/Entities/Users/search"
        assert search_request.headers["Authorization"] == "Bearer T0KEN"
        assert search_request.headers["Account-Name"] == "team"
        assert str(search_request.url).startswith("https://acme.lacework.net/")

    @pytest.mark.asyncio
    async def test_explicit_token_skips_exchange(self, fixed_now: datetime) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return httpx.Response(200, json={"data": []}, request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.MACHINE, value="42"), fixed_now)
        async with _client(handler, api_token="PRE") as client:
            assert await client.search_entities(EntityKind.MACHINE, search_filter) == []

        assert paths == ["/api/v2/Entities/MachineDetails/search"]

    @pytest.mark.asyncio
    async def test_null_data_is_empty(self, fixed_now: datetime) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": None}, request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.MACHINE, value="42"), fixed_now)
        async with _client(handler, api_token="PRE") as client:
            assert await client.search_entities(EntityKind.MACHINE, search_filter) == []

    @pytest.mark.asyncio
    async def test_error_status(self, fixed_now: datetime) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "unauthorized"}, request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="root"), fixed_now)
        async with _client(handler, api_token="BAD") as client:
            with pytest.raises(PlatformAPIError) as exc_info:
                await client.search_entities(EntityKind.USER, search_filter)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_transport_error(self, fixed_now: datetime) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed", request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="root"), fixed_now)
        async with _client(handler) as client:
            with pytest.raises(PlatformAPIError) as exc_info:
                await client.search_entities(EntityKind.USER, search_filter)

        assert "name resolution failed" in exc_info.value.message
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_json_body(self, fixed_now: datetime) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>", request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="root"), fixed_now)
        async with _client(handler, api_token="PRE") as client:
            with pytest.raises(PlatformAPIError):
                await client.search_entities(EntityKind.USER, search_filter)

    @pytest.mark.asyncio
    async def test_token_response_without_token(self, fixed_now: datetime) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={}, request=request)

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="root"), fixed_now)
        async with _client(handler) as client:
            with pytest.raises(PlatformAPIError) as exc_info:
                await client.search_entities(EntityKind.USER, search_filter)

        assert exc_info.value.message == "access token response has no token"

    @pytest.mark.asyncio
    async def test_image_has_no_endpoint(self, fixed_now: datetime) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        search_filter = build_search_filter(LookupQuery(kind=EntityKind.USER, value="x"), fixed_now)
        async with _client(handler, api_token="PRE") as client:
            with pytest.raises(LookupNotImplementedError):
                await client.search_entities(EntityKind.IMAGE, search_filter)


class TestFromSettings:
    """Tests for PlatformClient.from_settings."""

    @pytest.mark.asyncio
    async def test_builds_with_credentials(self, settings) -> None:
        client = PlatformClient.from_settings(settings)
        await client.close()

    def test_rejects_missing_credentials(self, settings) -> None:
        with pytest.raises(ConfigurationError):
            PlatformClient.from_settings(settings.model_copy(update={"account": None}))
