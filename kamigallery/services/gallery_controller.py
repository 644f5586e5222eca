"""
Gallery view state controller.

Owns the interactive state of one gallery view (sort order, trait filters,
comparison tray, pagination cursor) and the derived orderings:

- full_order: every item in the current sort order
- filtered_order: matching items in the current sort order (while filtering)
- active_order(): whichever of the two governs pagination and rendering

Every mutation recomputes the derived orderings from the current snapshot
before anything is rendered, so the renderer only ever sees a consistent
view. Sort and filter changes re-run the filter rather than re-sorting old
matches.

The controller talks to the outside world through a GalleryRenderer; all
renderer calls are optional (a controller without a renderer still keeps
state, which is how the HTTP API uses it).
"""

import asyncio
import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Protocol

from kamigallery.config import settings
from kamigallery.filtering.sorting import DEFAULT_SORT_ORDER, SortOrder, sort_ids
from kamigallery.filtering.trait_filter import filter_and_sort
from kamigallery.models.failure import (
    AlreadySelectedError,
    CorpusLoadError,
    InvalidInputError,
    ItemNotFoundError,
    KnownError,
)
from kamigallery.models.surface import CardView, ResultsHeader
from kamigallery.services.gallery_store import GallerySnapshot, GalleryStore
from kamigallery.services.presenter import build_cards, build_header
from kamigallery.services.url_state import (
    UrlState,
    decode_url_state,
    encode_url_state,
    ordered_selection,
    url_state_from,
)

logger = logging.getLogger(__name__)


class GalleryMode(str, Enum):
    """Which collection drives the grid."""

    UNFILTERED = "unfiltered"
    FILTERED = "filtered"
    # Filters are set but nothing matches: nothing to paginate
    NO_MATCHES = "no_matches"


class GalleryRenderer(Protocol):
    """Callbacks the controller drives. Implemented by the presentation layer."""

    async def show_results(self, header: ResultsHeader) -> None:
        """Clear the grid and show a new results header."""
        ...

    async def append_cards(self, cards: list[CardView]) -> None:
        """Materialize a page of cards at the end of the grid."""
        ...

    async def rearm_scroll_trigger(self) -> None:
        """Watch the new last card for scroll proximity."""
        ...

    async def show_comparison(self, cards: list[CardView]) -> None:
        """Replace the comparison tray (empty list hides it)."""
        ...

    async def show_error(self, message: str) -> None:
        """Replace the results area with a load error."""
        ...

    async def notify(self, message: str) -> None:
        """Report a rejected action without touching the grid."""
        ...

    async def set_refresh_enabled(self, enabled: bool) -> None:
        """Enable or disable the refresh control."""
        ...

    async def push_url(self, query: str) -> None:
        """Record the new state in browser history."""
        ...


class GalleryController:
    """
    State machine for one gallery view.

    Usage:
        controller = GalleryController(store, renderer)
        await controller.start(query)
        await controller.toggle_filter("body", "Red")
        await controller.load_more()
    """

    def __init__(
        self,
        store: GalleryStore,
        renderer: GalleryRenderer | None = None,
        page_size: int | None = None,
    ) -> None:
        self.store = store
        self.renderer = renderer
        self.page_size = max(1, page_size if page_size is not None else settings.page_size)

        self.sort_order: SortOrder = DEFAULT_SORT_ORDER
        self.selected_filters: dict[str, list[str]] = {}
        self.mode = GalleryMode.UNFILTERED
        self.full_order: list[str] = []
        self.filtered_order: list[str] = []
        self.load_cursor = 0
        self.comparison_set: set[str] = set()

        self._page_in_flight = False
        # Serializes full re-renders with page appends
        self._render_lock = asyncio.Lock()
        self._ordered_snapshot: GallerySnapshot | None = None
        self._ordered_sort: SortOrder | None = None

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def snapshot(self) -> GallerySnapshot:
        return self.store.snapshot

    @property
    def is_filtering(self) -> bool:
        return self.mode is GalleryMode.FILTERED

    def active_order(self) -> Sequence[str]:
        """The ordering that currently governs pagination and rendering."""
        if self.mode is GalleryMode.FILTERED:
            return self.filtered_order
        if self.mode is GalleryMode.NO_MATCHES:
            return ()
        return self.full_order

    @property
    def has_more(self) -> bool:
        return self.load_cursor < len(self.active_order())

    def to_url_state(self) -> UrlState:
        return url_state_from(self.selected_filters, self.sort_order, self.comparison_set)

    def to_query(self) -> str:
        """The current state as a canonical query string."""
        return encode_url_state(self.to_url_state())

    def header(self) -> ResultsHeader:
        return build_header(
            len(self.active_order()),
            self.selected_filters,
            no_matches=self.mode is GalleryMode.NO_MATCHES,
        )

    def comparison_cards(self) -> list[CardView]:
        """Comparison tray cards in ascending ID order, each removable."""
        return build_cards(
            self.snapshot,
            ordered_selection(self.comparison_set),
            self.sort_order,
            removable=True,
        )

    def page(self, offset: int, limit: int) -> list[CardView]:
        """Cards for a window of the active ordering. Out-of-range windows are clamped."""
        active = self.active_order()
        start = min(max(offset, 0), len(active))
        end = min(start + max(limit, 0), len(active))
        return build_cards(self.snapshot, active[start:end], self.sort_order)

    def _recompute(self) -> None:
        snapshot = self.snapshot

        if self._ordered_snapshot is not snapshot or self._ordered_sort is not self.sort_order:
            self.full_order = sort_ids(
                snapshot.corpus.ids(), self.sort_order, snapshot.corpus, snapshot.rarity
            )
            self._ordered_snapshot = snapshot
            self._ordered_sort = self.sort_order

        if not self.selected_filters:
            self.mode = GalleryMode.UNFILTERED
            self.filtered_order = []
        else:
            self.filtered_order = filter_and_sort(
                snapshot.corpus,
                snapshot.rarity,
                self.selected_filters,
                self.sort_order,
            )
            self.mode = GalleryMode.FILTERED if self.filtered_order else GalleryMode.NO_MATCHES

        self.load_cursor = 0

    # =========================================================================
    # Validation
    # =========================================================================

    def _valid_filters(self, filters: Mapping[str, Sequence[str]]) -> dict[str, list[str]]:
        """Keep only (category, value) pairs that exist in the current corpus."""
        counts = self.snapshot.trait_counts
        valid: dict[str, list[str]] = {}
        for category, values in filters.items():
            known = counts.get(category)
            if known is None:
                continue
            accepted = [value for value in dict.fromkeys(values) if value in known]
            if accepted:
                valid[category] = accepted
        return valid

    def _apply_url_state(self, state: UrlState) -> None:
        corpus = self.snapshot.corpus
        self.sort_order = state.sort_order
        self.selected_filters = self._valid_filters(state.filters)
        self.comparison_set = {item_id for item_id in state.selection if item_id in corpus}

    def apply_query(self, query: str) -> "GalleryController":
        """
        Hydrate state from a query string without rendering.

        Unknown trait values and IDs are dropped.
        """
        self._apply_url_state(decode_url_state(query))
        self._recompute()
        return self

    # =========================================================================
    # Rendering
    # =========================================================================

    async def _push_url(self) -> None:
        if self.renderer is not None:
            await self.renderer.push_url(self.to_query())

    async def _render_comparison(self) -> None:
        if self.renderer is not None:
            await self.renderer.show_comparison(self.comparison_cards())

    async def _render_results(self) -> None:
        """
        Full re-render: header, then the first page from cursor 0.

        Waits for a page that is still being appended, so the renderer never
        receives cards from the previous view after the grid has been cleared.
        """
        async with self._render_lock:
            self.load_cursor = 0
            if self.renderer is not None:
                await self.renderer.show_results(self.header())
            await self._materialize_page()

    async def _materialize_page(self) -> list[CardView]:
        """Materialize the next page, then re-arm the scroll trigger."""
        active = self.active_order()
        start = min(self.load_cursor, len(active))
        end = min(start + self.page_size, len(active))
        if start >= end:
            return []

        cards = build_cards(self.snapshot, active[start:end], self.sort_order)
        self.load_cursor = end

        if self.renderer is not None:
            await self.renderer.append_cards(cards)
            await self.renderer.rearm_scroll_trigger()

        return cards

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self, query: str = "") -> bool:
        """
        Initial load: fetch the corpus if needed, hydrate from the URL, render.

        Returns:
            False if the corpus could not be loaded (the error is rendered)
        """
        if not self.store.is_ready:
            try:
                await self.store.load()
            except CorpusLoadError as e:
                if self.renderer is not None:
                    await self.renderer.show_error(e.message)
                return False

        if not self.store.is_ready:
            return False

        self.apply_query(query)
        await self._render_comparison()
        await self._render_results()
        return True

    async def navigate(self, query: str) -> None:
        """Back/forward navigation: restore state from the URL without re-fetching."""
        self.selected_filters = {}
        self.comparison_set = set()
        self.apply_query(query)
        await self._render_comparison()
        await self._render_results()

    async def refresh(self) -> bool:
        """
        Re-fetch the corpus and re-apply the current view on top of it.

        Filters and comparison IDs that no longer resolve are dropped. On
        failure the previous corpus and view are kept and the error is reported.

        Returns:
            True if the data was refreshed; False if a refresh was already
            running or the fetch failed
        """
        if self.store.is_refreshing:
            logger.info("Refresh already in progress")
            return False

        if self.renderer is not None:
            await self.renderer.set_refresh_enabled(False)

        try:
            try:
                snapshot = await self.store.load()
            except CorpusLoadError as e:
                if self.renderer is not None:
                    await self.renderer.notify(f"Failed to refresh data. {e.message}")
                return False

            if snapshot is None:
                return False

            dropped_ids = {
                item_id for item_id in self.comparison_set if item_id not in snapshot.corpus
            }
            self.selected_filters = self._valid_filters(self.selected_filters)
            self.comparison_set -= dropped_ids
            if dropped_ids:
                logger.info("Dropped %d comparison IDs missing after refresh", len(dropped_ids))

            self._recompute()
            await self._render_comparison()
            await self._render_results()
            await self._push_url()
            return True
        finally:
            if self.renderer is not None:
                await self.renderer.set_refresh_enabled(True)

    # =========================================================================
    # Sorting and filtering
    # =========================================================================

    async def set_sort(self, sort_order: SortOrder | str) -> None:
        """Switch the sort order and re-render from the top."""
        order = sort_order if isinstance(sort_order, SortOrder) else SortOrder.parse(sort_order)
        if order is self.sort_order:
            return

        self.sort_order = order
        self._recompute()
        await self._push_url()
        await self._render_results()

    async def toggle_filter(
        self,
        category: str,
        value: str,
        selected: bool | None = None,
    ) -> None:
        """
        Select or deselect one trait value.

        Args:
            category: Trait category
            value: Trait value name
            selected: Target state; None flips the current state

        Raises:
            InvalidInputError: If the (category, value) pair is not in the corpus
        """
        if value not in self.snapshot.trait_counts.get(category, {}):
            raise InvalidInputError(f"Unknown trait {category}: {value}")

        current = self.selected_filters.get(category, [])
        is_selected = value in current
        target = not is_selected if selected is None else selected
        if target == is_selected:
            return

        if target:
            self.selected_filters[category] = [*current, value]
        else:
            remaining = [v for v in current if v != value]
            if remaining:
                self.selected_filters[category] = remaining
            else:
                del self.selected_filters[category]

        await self._filters_changed()

    async def remove_filter(self, category: str, value: str) -> None:
        """Remove one active constraint (the filter chip action)."""
        if value in self.selected_filters.get(category, []):
            await self.toggle_filter(category, value, selected=False)

    async def set_filters(self, filters: Mapping[str, Sequence[str]]) -> None:
        """Replace every constraint at once. Unknown values are dropped."""
        self.selected_filters = self._valid_filters(filters)
        await self._filters_changed()

    async def clear_filters(self) -> None:
        """Drop every constraint and return to the unfiltered view."""
        self.selected_filters = {}
        await self._filters_changed()

    async def _filters_changed(self) -> None:
        self._recompute()
        await self._push_url()
        await self._render_results()

    # =========================================================================
    # Pagination
    # =========================================================================

    async def load_more(self) -> list[CardView]:
        """
        Materialize the next page of the active ordering.

        A no-op (returning []) while another page is in flight or once the
        end has been reached.
        """
        if self._page_in_flight:
            return []

        self._page_in_flight = True
        try:
            async with self._render_lock:
                return await self._materialize_page()
        finally:
            self._page_in_flight = False

    # =========================================================================
    # Comparison tray
    # =========================================================================

    async def add_comparison(self, item_id: str) -> list[CardView]:
        """
        Pin an item to the comparison tray.

        Returns:
            The tray cards after the add

        Raises:
            ItemNotFoundError: If the ID is unknown or has no image
            AlreadySelectedError: If the item is already pinned
        """
        item_id = item_id.strip()
        if not self.snapshot.corpus.is_displayable(item_id):
            raise ItemNotFoundError(item_id)
        if item_id in self.comparison_set:
            raise AlreadySelectedError(item_id)

        self.comparison_set.add(item_id)
        cards = self.comparison_cards()
        if self.renderer is not None:
            await self.renderer.show_comparison(cards)
        await self._push_url()
        return cards

    async def search(self, raw_id: str) -> bool:
        """
        The ID search box: add an item to the tray, reporting rejections.

        Returns:
            True if the item was added
        """
        item_id = raw_id.strip()
        try:
            if not item_id:
                raise InvalidInputError("Please enter an NFT ID")
            await self.add_comparison(item_id)
        except KnownError as e:
            logger.info("Search rejected: %s", e.message)
            if self.renderer is not None:
                await self.renderer.notify(e.message)
            return False
        return True

    async def remove_comparison(self, item_id: str) -> None:
        """Unpin one item. Unknown IDs are ignored."""
        if item_id not in self.comparison_set:
            return
        self.comparison_set.discard(item_id)
        await self._render_comparison()
        await self._push_url()

    async def clear_comparison(self) -> None:
        """Unpin every item."""
        self.comparison_set.clear()
        await self._render_comparison()
        await self._push_url()
