"""Inventory platform API client (v2 entities search).

Responsibility:
- Resolve the account base URL and authenticate (explicit token or key exchange).
- Issue one `Entities/<type>/search` request per call and return its `data` list.
- Map transport/status/decoding failures to `PlatformAPIError`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx

from adapters.http_client import build_async_client, describe_http_error
from core.config import LookupSettings
from core.domain.models import EntityKind, SearchFilter
from core.errors import LookupNotImplementedError, PlatformAPIError
from core.logging import get_logger

logger = get_logger(__name__)

TOKEN_PATH = "/api/v2/access/tokens"
TOKEN_EXPIRY_SECONDS = 3600

SEARCH_PATHS: dict[EntityKind, str] = {
    EntityKind.USER: "/api/v2/Entities/Users/search",
    EntityKind.MACHINE: "/api/v2/Entities/MachineDetails/search",
}


def account_base_url(account: str) -> str:
    """`acme` -> `https://acme.lacework.net`; full host names are kept."""

    account = account.strip().rstrip("/")
    if "://" in account:
        return account
    if "." in account:
        return f"https://{account}"
    return f"https://{account}.lacework.net"


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def search_payload(search_filter: SearchFilter) -> dict[str, Any]:
    return {
        "timeFilter": {
            "startTime": format_timestamp(search_filter.window.start),
            "endTime": format_timestamp(search_filter.window.end),
        },
        "filters": [
            {
                "field": search_filter.field,
                "expression": search_filter.expression,
                "value": search_filter.value,
            }
        ],
    }


class PlatformClient:
    """Async client for the platform's entity inventory.

    The bearer token is obtained lazily, on the first search.
    """

    def __init__(
        self,
        *,
        account: str,
        api_key: str | None = None,
        api_secret: str | None = None,
        api_token: str | None = None,
        subaccount: str | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._api_secret = api_secret
        self._token = api_token or None
        extra_headers = {"Content-Type": "application/json"}
        if subaccount:
            extra_headers["Account-Name"] = subaccount
        self._client = build_async_client(
            base_url=account_base_url(account),
            timeout_seconds=timeout_seconds,
            extra_headers=extra_headers,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: LookupSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "PlatformClient":
        account = settings.require_platform_credentials()
        return cls(
            account=account,
            api_key=settings.api_key,
            api_secret=settings.api_secret,
            api_token=settings.api_token,
            subaccount=settings.subaccount,
            timeout_seconds=settings.http_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "PlatformClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        if not self._client.is_closed:
            await self._client.aclose()

    async def _post_json(self, path: str, *, json: dict[str, Any], headers: dict[str, str]) -> Any:
        try:
            response = await self._client.post(path, json=json, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PlatformAPIError(
                f"{path}: {describe_http_error(exc)}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise PlatformAPIError(f"{path}: {describe_http_error(exc)}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise PlatformAPIError(
                f"{path}: response is not JSON",
                status_code=response.status_code,
            ) from exc

    async def _bearer_token(self) -> str:
        if self._token:
            return self._token
        if not (self._api_key and self._api_secret):
            raise PlatformAPIError("no API token and no API key/secret to request one")

        payload = await self._post_json(
            TOKEN_PATH,
            json={"keyId": self._api_key, "expiryTime": TOKEN_EXPIRY_SECONDS},
            headers={"X-LW-UAKS": self._api_secret},
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise PlatformAPIError("access token response has no token")
        self._token = token
        return token

    async def search_entities(
        self,
        kind: EntityKind,
        search_filter: SearchFilter,
    ) -> list[dict[str, Any]]:
        path = SEARCH_PATHS.get(kind)
        if path is None:
            raise LookupNotImplementedError(f"'{kind.value}' lookup not yet implemented.")

        token = await self._bearer_token()
        payload = await self._post_json(
            path,
            json=search_payload(search_filter),
            headers={"Authorization": f"Bearer {token}"},
        )
        if not isinstance(payload, dict):
            raise PlatformAPIError(f"{path}: unexpected response shape")

        data = payload.get("data") or []
        if not isinstance(data, list):
            raise PlatformAPIError(f"{path}: 'data' is not a list")

        records = [item for item in data if isinstance(item, dict)]
        logger.debug("search returned", kind=kind.value, records=len(records))
        return records
