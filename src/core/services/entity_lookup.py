"""Entity lookup dispatch.

Routes a `LookupQuery` to exactly one platform search, interprets the
response shape for the kind, and renders the result through an `echo`
callable so the service never touches the terminal itself.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Callable

from pydantic import ValidationError

from core.domain.models import EntityKind, LookupOutcome, LookupQuery, UserRecord
from core.errors import EntityLookupError, LookupNotImplementedError, SearchFailedError
from core.interfaces.entity_search import EntitySearch
from core.logging import get_logger
from core.services.query_builder import build_search_filter

logger = get_logger(__name__)

Echo = Callable[[str], None]
Clock = Callable[[], datetime]


def distinct_machine_ids(records: list[dict[str, Any]]) -> list[int]:
    """Sorted, de-duplicated machine ids referenced by user records."""

    mids: set[int] = set()
    for record in records:
        mids.add(UserRecord.model_validate(record).mid)
    return sorted(mids)


def render_machine(record: dict[str, Any]) -> str:
    """Stable, indented JSON dump of one machine record."""

    return json.dumps(record, indent=4, sort_keys=True, ensure_ascii=False, default=str)


class EntityLookupDispatcher:
    """Execute one lookup and print its result.

    Never issues more than one remote search per `dispatch` call.
    """

    def __init__(
        self,
        search: EntitySearch,
        *,
        echo: Echo,
        clock: Clock | None = None,
    ) -> None:
        self._search = search
        self._echo = echo
        self._clock = clock

    async def dispatch(self, query: LookupQuery) -> LookupOutcome:
        if query.kind is EntityKind.IMAGE:
            raise LookupNotImplementedError("'image' lookup not yet implemented.")

        now = self._clock() if self._clock else None
        search_filter = build_search_filter(query, now)

        logger.debug("searching entities", kind=query.kind.value, field=search_filter.field)
        try:
            records = await self._search.search_entities(query.kind, search_filter)
        except EntityLookupError as exc:
            raise SearchFailedError(f"unable to load entity: {exc}") from exc

        if query.kind is EntityKind.USER:
            return self._render_users(query, records)
        return self._render_machine(query, records)

    def _render_users(self, query: LookupQuery, records: list[dict[str, Any]]) -> LookupOutcome:
        if not records:
            self._echo(f"User '{query.value}' not found in your environment.")
            return LookupOutcome.NOT_FOUND

        try:
            mids = distinct_machine_ids(records)
        except ValidationError as exc:
            raise SearchFailedError(
                f"unable to load entity: malformed user record ({exc.error_count()} error(s))"
            ) from exc

        self._echo("The user has been seen in the following machines:")
        self._echo("")
        self._echo(str(mids))
        return LookupOutcome.FOUND

    def _render_machine(self, query: LookupQuery, records: list[dict[str, Any]]) -> LookupOutcome:
        if not records:
            self._echo(f"Machine '{query.value}' not found in your environment.")
            return LookupOutcome.NOT_FOUND

        # Only the first record is shown; later duplicates are ignored.
        try:
            dump = render_machine(records[0])
        except (TypeError, ValueError) as exc:
            raise SearchFailedError(f"unable to output JSON: {exc}") from exc

        self._echo("Machine Information:")
        self._echo(dump)
        return LookupOutcome.FOUND
