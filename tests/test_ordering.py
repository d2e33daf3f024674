from __future__ import annotations

import pytest

from localstore.core.errors import InvalidOrderingError
from localstore.repositories.ordering import SortDirection, SortKey, normalize_ordering


def test_none_means_unordered():
    assert normalize_ordering(None) == ()
    assert normalize_ordering([]) == ()


def test_accepted_forms():
    keys = normalize_ordering(["name", ("rank", "DESC"), ("id", SortDirection.ASC), SortKey("sku")])
    assert keys == (
        SortKey("name", SortDirection.ASC),
        SortKey("rank", SortDirection.DESC),
        SortKey("id", SortDirection.ASC),
        SortKey("sku", SortDirection.ASC),
    )


@pytest.mark.parametrize(
    "order_by",
    [
        "name",
        [("name", "sideways")],
        [("name",)],
        [("", "asc")],
        [(None, "asc")],
        [42],
    ],
)
def test_rejects_malformed_orderings(order_by):
    with pytest.raises(InvalidOrderingError):
        normalize_ordering(order_by)


def test_invalid_ordering_is_a_value_error():
    with pytest.raises(ValueError):
        normalize_ordering([("name", "up")])
