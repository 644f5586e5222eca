"""
Gallery snapshot store.

Holds the current corpus together with the statistics derived from it.
Trait counts and rarity are computed before a snapshot is published, so no
consumer can observe a corpus without its matching statistics.

Loads are all-or-nothing: a failed fetch leaves the previous snapshot in
place. Overlapping refreshes collapse: a refresh requested while one is in
flight is a no-op.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from kamigallery.analysis.rarity import RarityTable, compute_rarity
from kamigallery.analysis.trait_stats import TraitCounts, compute_trait_counts
from kamigallery.models.corpus import Corpus
from kamigallery.models.failure import CorpusLoadError, CorpusNotReadyError
from kamigallery.services.data_source import CorpusFiles, CorpusSource, source_from_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GallerySnapshot:
    """A corpus with its trait counts and rarity table."""

    corpus: Corpus
    trait_counts: TraitCounts
    rarity: RarityTable
    loaded_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def total_items(self) -> int:
        return len(self.corpus)


def build_snapshot(corpus: Corpus) -> GallerySnapshot:
    """Compute statistics for a corpus and bundle them."""
    counts = compute_trait_counts(corpus)
    rarity = compute_rarity(corpus, counts)
    return GallerySnapshot(corpus=corpus, trait_counts=counts, rarity=rarity)


def snapshot_from_files(files: CorpusFiles) -> GallerySnapshot:
    """
    Build a snapshot from fetched files.

    Raises:
        CorpusFormatError: If images or traits are malformed
    """
    corpus = Corpus.from_sources(
        images=files.images,
        traits=files.traits,
        stats=files.stats,
        metadata=files.metadata,
    )
    return build_snapshot(corpus)


class GalleryStore:
    """
    Owner of the current gallery snapshot.

    Usage:
        store = GalleryStore(source)
        await store.load()
        snapshot = store.snapshot
    """

    def __init__(self, source: CorpusSource) -> None:
        self.source = source
        self._snapshot: GallerySnapshot | None = None
        self._refreshing = False

    @property
    def is_ready(self) -> bool:
        """True once a load has succeeded."""
        return self._snapshot is not None

    @property
    def is_refreshing(self) -> bool:
        """True while a fetch-and-recompute cycle is in flight."""
        return self._refreshing

    @property
    def snapshot(self) -> GallerySnapshot:
        """
        The current snapshot.

        Raises:
            CorpusNotReadyError: If nothing has been loaded yet
        """
        if self._snapshot is None:
            raise CorpusNotReadyError()
        return self._snapshot

    async def load(self) -> GallerySnapshot | None:
        """
        Fetch the collection and replace the snapshot.

        Returns:
            The new snapshot, or None if a load was already in flight

        Raises:
            CorpusLoadError: If a mandatory file cannot be loaded. The
                previous snapshot is kept.
        """
        if self._refreshing:
            logger.info("Refresh already in progress, ignoring request")
            return None

        self._refreshing = True
        started = time.perf_counter()
        try:
            files = await self.source.fetch()
            snapshot = snapshot_from_files(files)
        except CorpusLoadError as e:
            logger.error("Failed to load collection data: %s", e.message)
            raise
        finally:
            self._refreshing = False

        self._snapshot = snapshot
        logger.info(
            "gallery_snapshot_loaded",
            extra={
                "items": snapshot.total_items,
                "categories": len(snapshot.trait_counts),
                "duration_ms": round((time.perf_counter() - started) * 1000, 1),
            },
        )
        return snapshot


# Process-wide store used by the API
gallery_store = GalleryStore(source_from_settings())


def get_gallery_store() -> GalleryStore:
    """
    Dependency that provides the gallery store.

    Usage in FastAPI:
        @app.get("/gallery")
        async def gallery(store: GalleryStore = Depends(get_gallery_store)):
            ...
    """
    return gallery_store


async def init_store() -> None:
    """
    Load the collection once at application startup.

    A failed initial load is logged, not raised: the service starts and
    reports not ready until a refresh succeeds.
    """
    try:
        await gallery_store.load()
    except CorpusLoadError as e:
        logger.error("Initial collection load failed: %s (%s)", e.message, e.detail)
