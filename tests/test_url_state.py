"""Tests for URL state encoding and decoding."""

import httpx

from kamigallery.filtering.sorting import SortOrder
from kamigallery.services.url_state import (
    UrlState,
    decode_url_state,
    encode_url_state,
    ordered_selection,
    url_state_from,
)


class TestEncode:
    def test_default_state_is_empty(self) -> None:
        """The default view has no query string."""
        assert encode_url_state(UrlState()) == ""

    def test_filters_joined_with_pipe(self) -> None:
        """Accepted values of one category share a parameter."""
        query = encode_url_state(UrlState(filters={"body": ["Red", "Blue"]}))

        assert httpx.QueryParams(query)["body"] == "Red|Blue"

    def test_default_sort_omitted(self) -> None:
        """Latest is not written to the URL."""
        assert "sort" not in encode_url_state(UrlState(sort_order=SortOrder.LATEST))

    def test_non_default_sort_written(self) -> None:
        assert encode_url_state(UrlState(sort_order=SortOrder.RARITY)) == "sort=rarity"

    def test_selection_sorted_numerically(self) -> None:
        """Comparison IDs are written in ascending numeric order."""
        query = encode_url_state(UrlState(selection=["40", "12", "100"]))

        assert httpx.QueryParams(query)["select"] == "12,40,100"

    def test_parameter_order(self) -> None:
        """Filters come first, then sort, then select."""
        query = encode_url_state(
            UrlState(
                filters={"body": ["Red"], "hand": ["Claws"]},
                sort_order=SortOrder.POWER,
                selection=["3"],
            )
        )

        keys = [key for key, _ in httpx.QueryParams(query).multi_items()]
        assert keys == ["body", "hand", "sort", "select"]

    def test_empty_and_reserved_categories_skipped(self) -> None:
        """Categories with no values or reserved names are not written."""
        query = encode_url_state(
            UrlState(filters={"body": [], "sort": ["x"], "limit": ["5"], "hand": ["Paws"]})
        )

        assert query == "hand=Paws"

    def test_values_are_escaped(self) -> None:
        """Spaces and ampersands in values survive encoding."""
        state = UrlState(filters={"eye": ["Big & Round"]})

        assert decode_url_state(encode_url_state(state)).filters == {"eye": ["Big & Round"]}


class TestDecode:
    def test_full_query(self) -> None:
        """Filters, sort and selection are all restored."""
        state = decode_url_state("?body=Red|Blue&hand=Claws&sort=rarity&select=40,12")

        assert state.filters == {"body": ["Red", "Blue"], "hand": ["Claws"]}
        assert state.sort_order is SortOrder.RARITY
        assert state.selection == ["12", "40"]

    def test_empty_query(self) -> None:
        """An empty query is the default state."""
        state = decode_url_state("")

        assert state.filters == {}
        assert state.sort_order is SortOrder.LATEST
        assert state.selection == []

    def test_unknown_sort_falls_back(self) -> None:
        assert decode_url_state("sort=sideways").sort_order is SortOrder.LATEST

    def test_junk_is_dropped(self) -> None:
        """Empty values, empty IDs and duplicates are removed."""
        state = decode_url_state("body=Red||Red&hand=&select=,3,,3, 7")

        assert state.filters == {"body": ["Red"]}
        assert state.selection == ["3", "7"]

    def test_request_params_are_not_categories(self) -> None:
        """Paging and search parameters never become trait filters."""
        state = decode_url_state("body=Red&offset=30&limit=10&search=re")

        assert state.filters == {"body": ["Red"]}

    def test_repeated_category_merged(self) -> None:
        """A category given twice accepts the values of both."""
        state = decode_url_state("body=Red&body=Blue")

        assert state.filters == {"body": ["Red", "Blue"]}

    def test_accepts_query_params(self) -> None:
        """Already-parsed parameters are accepted."""
        state = decode_url_state(httpx.QueryParams({"body": "Red", "sort": "oldest"}))

        assert state.filters == {"body": ["Red"]}
        assert state.sort_order is SortOrder.OLDEST

    def test_round_trip(self) -> None:
        """Decoding an encoded state gives the same state."""
        state = UrlState(
            filters={"body": ["Red", "Blue"], "face": ["Smile"]},
            sort_order=SortOrder.VIOLENCE,
            selection=["5", "10"],
        )

        assert decode_url_state(encode_url_state(state)) == state


class TestHelpers:
    def test_ordered_selection(self) -> None:
        """IDs sort numerically, duplicates dropped, non-numeric last."""
        assert ordered_selection(["10", "9", "x", "10", "1"]) == ["1", "9", "10", "x"]

    def test_url_state_from_copies(self) -> None:
        """Live state is copied, not shared."""
        filters = {"body": ["Red"]}
        state = url_state_from(filters, SortOrder.LATEST, {"2", "1"})
        filters["body"].append("Blue")

        assert state.filters == {"body": ["Red"]}
        assert sorted(state.selection) == ["1", "2"]
