"""
Kamigallery services.

Loading the collection, holding the current snapshot, and driving the
gallery view from it.
"""

from kamigallery.services.data_source import (
    CorpusFiles,
    CorpusSource,
    HttpCorpusSource,
    LocalCorpusSource,
    source_from_settings,
)
from kamigallery.services.gallery_controller import (
    GalleryController,
    GalleryMode,
    GalleryRenderer,
)
from kamigallery.services.gallery_store import (
    GallerySnapshot,
    GalleryStore,
    build_snapshot,
    get_gallery_store,
)
from kamigallery.services.url_state import UrlState, decode_url_state, encode_url_state

__all__ = [
    "CorpusFiles",
    "CorpusSource",
    "GalleryController",
    "GalleryMode",
    "GalleryRenderer",
    "GallerySnapshot",
    "GalleryStore",
    "HttpCorpusSource",
    "LocalCorpusSource",
    "UrlState",
    "build_snapshot",
    "decode_url_state",
    "encode_url_state",
    "get_gallery_store",
    "source_from_settings",
]
