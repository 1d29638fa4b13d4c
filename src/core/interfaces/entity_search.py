"""Contracts for the inventory platform and the control-plane companion."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from core.domain.models import EntityKind, PingResult, SearchFilter


@runtime_checkable
class EntitySearch(Protocol):
    """Minimal contract for an entity inventory.

    Rules:
    - `search_entities` is async because it performs network I/O.
    - One call issues exactly one remote search and returns its raw records.
    """

    async def search_entities(
        self,
        kind: EntityKind,
        search_filter: SearchFilter,
    ) -> list[dict[str, Any]]:
        ...


@runtime_checkable
class ControlPlane(Protocol):
    """What a lookup needs from the local companion process."""

    async def ping(self) -> PingResult:
        ...

    async def report_lookup(self, *, started_at: float, search_key: str) -> None:
        ...

    async def close(self) -> None:
        ...
