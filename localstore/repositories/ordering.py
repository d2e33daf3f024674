"""Sort keys accepted by ``fetch_all`` and their normalization."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple, Sequence, Tuple, Union

from localstore.core.errors import InvalidOrderingError


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortKey(NamedTuple):
    field: str
    direction: SortDirection = SortDirection.ASC


OrderingItem = Union[str, SortKey, Tuple[str, Union[SortDirection, str]]]
Ordering = Sequence[OrderingItem]


def _direction(value: SortDirection | str) -> SortDirection:
    if isinstance(value, SortDirection):
        return value
    try:
        return SortDirection((value or "").strip().lower())
    except (AttributeError, ValueError):
        raise InvalidOrderingError(f"Unknown sort direction: {value!r}") from None


def normalize_ordering(order_by: Ordering | None) -> Tuple[SortKey, ...]:
    """
    Turn the accepted ordering forms into a tuple of SortKey.

    Accepts ``None`` (no ordering), bare field names (ascending) and
    ``(field, direction)`` pairs where direction is a SortDirection or the
    strings "asc"/"desc".
    """
    if order_by is None:
        return ()
    if isinstance(order_by, (str, bytes)):
        raise InvalidOrderingError("Ordering must be a sequence of sort keys, not a single string")

    keys = []
    for item in order_by:
        if isinstance(item, str):
            field, direction = item, SortDirection.ASC
        else:
            try:
                field, raw_direction = item
            except (TypeError, ValueError):
                raise InvalidOrderingError(f"Malformed sort key: {item!r}") from None
            direction = _direction(raw_direction)
        field = (field or "").strip() if isinstance(field, str) else ""
        if not field:
            raise InvalidOrderingError(f"Sort key without a field name: {item!r}")
        keys.append(SortKey(field, direction))
    return tuple(keys)
