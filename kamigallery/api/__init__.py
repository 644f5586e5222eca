from kamigallery.api.gallery import router as gallery_router
from kamigallery.api.health import router as health_router

__all__ = [
    "gallery_router",
    "health_router",
]
