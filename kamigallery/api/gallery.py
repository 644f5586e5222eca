"""
Gallery API endpoints.

The API is stateless: every request carries the view state in its query
string (the same format the browser URL uses), the server hydrates a
controller over the current snapshot, and responses return the canonical
query for the resulting state.
"""

from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from kamigallery.filtering.sorting import SortOrder
from kamigallery.models.failure import KnownError
from kamigallery.models.surface import CardView, FilterGroup, ResultsHeader
from kamigallery.services.gallery_controller import GalleryController, GalleryMode
from kamigallery.services.gallery_store import GallerySnapshot, GalleryStore, get_gallery_store
from kamigallery.services.presenter import build_card, build_filter_groups
from kamigallery.services.url_state import REQUEST_PARAMS

router = APIRouter(tags=["gallery"])


class GalleryResponse(BaseModel):
    """One page of the gallery for a view state."""

    query: str = Field(..., description="Canonical query string for this view")
    sort: str
    mode: GalleryMode
    header: ResultsHeader
    cards: list[CardView] = Field(default_factory=list)
    comparison: list[CardView] = Field(default_factory=list)
    offset: int = 0
    next_offset: int | None = Field(
        default=None,
        description="Offset of the next page, null at the end",
    )


class FiltersResponse(BaseModel):
    """Filter controls for a view state."""

    query: str
    groups: list[FilterGroup] = Field(default_factory=list)


class CompareRequest(BaseModel):
    """Request model for changing the comparison tray."""

    query: str = Field(default="", description="Current view query string")
    item_id: str = Field(..., description="Kamigotchi ID", examples=["42"])


class CompareResponse(BaseModel):
    """Comparison tray after a change."""

    query: str
    comparison: list[CardView] = Field(default_factory=list)


class RefreshResponse(BaseModel):
    """Result of a refresh request."""

    refreshed: bool
    items: int


def _view_query(request: Request) -> str:
    """The view-state part of the request's query string."""
    return str(
        httpx.QueryParams(
            [
                (key, value)
                for key, value in request.query_params.multi_items()
                if key not in REQUEST_PARAMS
            ]
        )
    )


def _http_error(error: KnownError) -> HTTPException:
    return HTTPException(
        status_code=error.status_code,
        detail=error.to_detail().model_dump(mode="json"),
    )


def _snapshot(store: GalleryStore) -> GallerySnapshot:
    try:
        return store.snapshot
    except KnownError as e:
        raise _http_error(e) from e


def _controller(store: GalleryStore, query: str) -> GalleryController:
    try:
        return GalleryController(store).apply_query(query)
    except KnownError as e:
        raise _http_error(e) from e


@router.get("/gallery", response_model=GalleryResponse)
async def get_gallery(
    request: Request,
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> GalleryResponse:
    """
    Get one page of the gallery.

    Any query parameter other than sort, select, offset and limit is a trait
    category filter: `?body=Red|Blue&sort=rarity&select=12,40`.
    """
    controller = _controller(store, _view_query(request))
    page_size = limit if limit is not None else controller.page_size

    cards = controller.page(offset, page_size)
    total = len(controller.active_order())
    end = min(offset, total) + page_size

    return GalleryResponse(
        query=controller.to_query(),
        sort=controller.sort_order.value,
        mode=controller.mode,
        header=controller.header(),
        cards=cards,
        comparison=controller.comparison_cards(),
        offset=offset,
        next_offset=end if end < total else None,
    )


@router.get("/gallery/filters", response_model=FiltersResponse)
async def get_filters(
    request: Request,
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
    search: Annotated[str | None, Query(description="Case-insensitive value search")] = None,
) -> FiltersResponse:
    """
    Get the filter controls for every trait category.

    Values are ordered rarest first; selected values are flagged.
    """
    controller = _controller(store, _view_query(request))
    snapshot = controller.snapshot
    terms = {category: search for category in snapshot.trait_counts} if search else None

    return FiltersResponse(
        query=controller.to_query(),
        groups=build_filter_groups(snapshot, controller.selected_filters, search=terms),
    )


@router.get("/items/{item_id}", response_model=CardView)
async def get_item(
    item_id: str,
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
    sort: Annotated[str | None, Query()] = None,
) -> CardView:
    """Get the card for one Kamigotchi."""
    card = build_card(_snapshot(store), item_id, SortOrder.parse(sort))
    if card is None:
        raise HTTPException(
            status_code=404,
            detail=f"Kamigotchi #{item_id} not found",
        )
    return card


@router.post("/gallery/compare", response_model=CompareResponse)
async def add_comparison(
    request: CompareRequest,
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
) -> CompareResponse:
    """
    Add a Kamigotchi to the comparison tray.

    Returns 404 for unknown IDs and 409 for IDs already in the tray.
    """
    controller = _controller(store, request.query)
    try:
        comparison = await controller.add_comparison(request.item_id)
    except KnownError as e:
        raise _http_error(e) from e

    return CompareResponse(query=controller.to_query(), comparison=comparison)


@router.delete("/gallery/compare", response_model=CompareResponse)
async def remove_comparison(
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
    item_id: Annotated[str, Query()],
    query: Annotated[str, Query()] = "",
) -> CompareResponse:
    """Remove a Kamigotchi from the comparison tray. Unknown IDs are ignored."""
    controller = _controller(store, query)
    await controller.remove_comparison(item_id)
    return CompareResponse(
        query=controller.to_query(),
        comparison=controller.comparison_cards(),
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    responses={502: {"description": "Collection data could not be loaded"}},
)
async def refresh(
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
) -> RefreshResponse:
    """
    Re-fetch the collection data.

    Returns refreshed=false if a refresh was already running. A failed
    refresh keeps the previous data and returns 502.
    """
    try:
        snapshot = await store.load()
    except KnownError as e:
        raise _http_error(e) from e

    if snapshot is None:
        items = store.snapshot.total_items if store.is_ready else 0
        return RefreshResponse(refreshed=False, items=items)

    return RefreshResponse(refreshed=True, items=snapshot.total_items)
