"""
Health check endpoints.

Provides liveness and readiness probes. Readiness requires a loaded corpus.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from kamigallery.services.gallery_store import GalleryStore, get_gallery_store

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    corpus: str | None = None
    items: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check the corpus.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    store: Annotated[GalleryStore, Depends(get_gallery_store)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns ready once the collection has loaded. Returns 503 before that.
    """
    if not store.is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", corpus="not loaded")

    return HealthResponse(status="ready", corpus="loaded", items=store.snapshot.total_items)
