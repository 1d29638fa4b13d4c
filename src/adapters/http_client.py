"""httpx wrapper.

Standardizes timeouts, headers and base URLs for the two remote parties
(the inventory platform and the local control plane), and lets tests swap
the transport for an `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

USER_AGENT = "entity-lookup/0.1"


def normalize_base_url(target: str, *, default_scheme: str = "http") -> str:
    """Accept `host:port` as well as full URLs."""

    target = target.strip().rstrip("/")
    if "://" in target:
        return target
    return f"{default_scheme}://{target}"


def build_async_client(
    *,
    base_url: str,
    timeout_seconds: float,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with JSON defaults.

    No retries: a failed dial surfaces on the first request.
    """

    headers: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        base_url=base_url,
        timeout=httpx.Timeout(timeout_seconds),
        headers=headers,
        transport=transport,
    )


def describe_http_error(exc: httpx.HTTPError) -> str:
    """Short human-readable cause for logs and wrapped errors."""

    if isinstance(exc, httpx.TimeoutException):
        return f"timed out ({exc.__class__.__name__})"
    if isinstance(exc, httpx.HTTPStatusError):
        return f"HTTP {exc.response.status_code}"
    return str(exc) or exc.__class__.__name__
