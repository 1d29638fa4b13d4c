"""Turn a raw `kind:value` argument into a typed, time-windowed search filter."""

from __future__ import annotations

from datetime import datetime

from core.domain.models import EntityKind, LookupQuery, SearchFilter, TimeWindow
from core.errors import InvalidArgumentError, LookupNotImplementedError

# `image` is accepted on the command line but has no platform field yet.
SEARCH_FIELDS: dict[EntityKind, str] = {
    EntityKind.USER: "username",
    EntityKind.MACHINE: "mid",
}


def parse_lookup_argument(raw: str | None) -> LookupQuery:
    """Parse `kind:value`.

    Exactly two colon-separated, non-empty parts are required and the kind
    must be one of `EntityKind`, matched exactly (no case folding or trimming);
    anything else raises `InvalidArgumentError`.
    """

    if not raw:
        raise InvalidArgumentError("missing lookup argument")

    parts = raw.split(":")
    if len(parts) != 2:
        raise InvalidArgumentError(f"expected KIND:VALUE, got {len(parts)} part(s)")

    kind_raw, value = parts
    if not kind_raw or not value:
        raise InvalidArgumentError("both KIND and VALUE must be non-empty")

    try:
        kind = EntityKind(kind_raw)
    except ValueError:
        raise InvalidArgumentError(
            f"unsupported entity '{kind_raw}', try one of {', '.join(EntityKind.names())}"
        ) from None

    return LookupQuery(kind=kind, value=value)


def build_search_filter(query: LookupQuery, now: datetime | None = None) -> SearchFilter:
    """Equality filter on the kind's platform field over the last day."""

    field = SEARCH_FIELDS.get(query.kind)
    if field is None:
        raise LookupNotImplementedError(f"'{query.kind.value}' lookup not yet implemented.")

    return SearchFilter(
        field=field,
        expression="eq",
        value=query.value,
        window=TimeWindow.last_day(now),
    )
