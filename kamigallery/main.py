from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kamigallery.api import gallery_router, health_router
from kamigallery.config import settings
from kamigallery.services.gallery_store import init_store


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_store()
    yield


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("kamigallery"),
    lifespan=lifespan,
)

app.include_router(gallery_router)
app.include_router(health_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)
