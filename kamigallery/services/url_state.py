"""
URL state bridge.

Serializes the interactive gallery state into a query string and back, so a
view can be bookmarked, shared and restored on back/forward navigation:

    ?body=Red|Blue&hand=Claws&sort=rarity&select=12,40

- one parameter per filtered category, accepted values joined with "|"
- `sort` only when it differs from the default order
- `select` with comparison IDs joined with ",", only when non-empty

`sort`, `select` and the request-only `offset`, `limit` and `search` are
reserved and cannot be used as category names.
Decoding never fails: anything unusable is dropped, and IDs or trait values
that do not exist in the corpus are removed by the caller when applied.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

import httpx

from kamigallery.filtering.sorting import DEFAULT_SORT_ORDER, SortOrder

SORT_PARAM = "sort"
SELECT_PARAM = "select"
# Paging and search parameters of API requests, never part of the view state
REQUEST_PARAMS = frozenset({"offset", "limit", "search"})
RESERVED_PARAMS = frozenset({SORT_PARAM, SELECT_PARAM}) | REQUEST_PARAMS

VALUE_SEPARATOR = "|"
ID_SEPARATOR = ","


@dataclass
class UrlState:
    """The part of the gallery state that lives in the URL."""

    filters: dict[str, list[str]] = field(default_factory=dict)
    sort_order: SortOrder = DEFAULT_SORT_ORDER
    selection: list[str] = field(default_factory=list)


def _id_order(item_id: str) -> tuple[int, float, str]:
    try:
        return (0, float(item_id), "")
    except ValueError:
        return (1, 0.0, item_id)


def ordered_selection(item_ids: Iterable[str]) -> list[str]:
    """Comparison IDs in ascending numeric order, without duplicates."""
    return sorted(dict.fromkeys(item_ids), key=_id_order)


def _dedupe(values: Iterable[str]) -> list[str]:
    return [value for value in dict.fromkeys(values) if value]


def encode_url_state(state: UrlState) -> str:
    """
    Encode state as a query string (without the leading "?").

    Returns an empty string for the default state.
    """
    params: list[tuple[str, str]] = []

    for category, values in state.filters.items():
        accepted = _dedupe(values)
        if category and category not in RESERVED_PARAMS and accepted:
            params.append((category, VALUE_SEPARATOR.join(accepted)))

    if state.sort_order is not DEFAULT_SORT_ORDER:
        params.append((SORT_PARAM, state.sort_order.value))

    selection = ordered_selection(item_id for item_id in state.selection if item_id)
    if selection:
        params.append((SELECT_PARAM, ID_SEPARATOR.join(selection)))

    return str(httpx.QueryParams(params))


def decode_url_state(query: str | httpx.QueryParams | Mapping[str, str]) -> UrlState:
    """
    Decode a query string (with or without the leading "?").

    Unknown sort names fall back to the default order. Repeated category
    parameters are merged.
    """
    if isinstance(query, str):
        params = httpx.QueryParams(query.removeprefix("?"))
    else:
        params = httpx.QueryParams(query)

    state = UrlState()

    for key, value in params.multi_items():
        if key == SORT_PARAM:
            state.sort_order = SortOrder.parse(value)
        elif key == SELECT_PARAM:
            state.selection.extend(part.strip() for part in value.split(ID_SEPARATOR))
        elif key and key not in RESERVED_PARAMS:
            state.filters.setdefault(key, []).extend(value.split(VALUE_SEPARATOR))

    state.selection = ordered_selection(item_id for item_id in state.selection if item_id)
    state.filters = {
        category: accepted
        for category, values in state.filters.items()
        if (accepted := _dedupe(values))
    }

    return state


def url_state_from(
    filters: Mapping[str, Sequence[str]],
    sort_order: SortOrder,
    selection: Iterable[str],
) -> UrlState:
    """Snapshot live controller state into a UrlState."""
    return UrlState(
        filters={category: list(values) for category, values in filters.items()},
        sort_order=sort_order,
        selection=list(selection),
    )
