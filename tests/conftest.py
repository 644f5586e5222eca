import json
from pathlib import Path
from typing import Any

import pytest

from kamigallery.models.corpus import Corpus
from kamigallery.services.data_source import CorpusFiles
from kamigallery.services.gallery_store import GallerySnapshot, GalleryStore, build_snapshot


class StaticSource:
    """In-memory corpus source that counts fetches and can be made to fail."""

    def __init__(self, files: CorpusFiles) -> None:
        self.files = files
        self.error: Exception | None = None
        self.fetch_count = 0

    async def fetch(self) -> CorpusFiles:
        self.fetch_count += 1
        if self.error is not None:
            raise self.error
        return self.files


@pytest.fixture
def sample_images() -> dict[str, Any]:
    """Image URLs. Item 5 has no image; item 99 has no traits."""
    return {
        "1": "https://img.example/1.gif",
        "2": "https://img.example/2.gif",
        "3": "https://img.example/3.gif",
        "4": "https://img.example/4.gif",
        "10": "https://img.example/10.gif",
        "99": "https://img.example/99.gif",
    }


@pytest.fixture
def sample_traits() -> dict[str, Any]:
    """
    Six trait-bearing items.

    body:  Red x4 (1, 2, 4, 10), Blue x1 (3), Green x1 (5)
    hand:  Claws x3 (1, 3, 10), Paws x3 (2, 4, 5)
    face:  Smile x1 (4)
    """
    return {
        "1": {"body": "Red", "hand": "Claws"},
        "2": {"body": "Red", "hand": "Paws"},
        "3": {
            "body": {"name": "Blue", "affinity": "eerie", "stats": {"power": 2}},
            "hand": "Claws",
        },
        "4": {"body": "Red", "hand": "Paws", "face": "Smile"},
        "5": {"body": "Green", "hand": "Paws"},
        "10": {"body": "Red", "hand": "Claws"},
    }


@pytest.fixture
def sample_stats() -> dict[str, Any]:
    """Stats for items 1-4; items 5 and 10 have none."""
    return {
        "1": {"stats": {"harmony": 5, "health": 50, "power": 10, "violence": 3}},
        "2": {"stats": {"harmony": 9, "health": 40, "power": 12, "violence": 1}},
        "3": {"stats": {"harmony": 1, "health": 70, "power": 8, "violence": 7}},
        "4": {"stats": {"harmony": 9, "health": 30, "power": 4, "violence": 9}},
    }


@pytest.fixture
def sample_metadata() -> dict[str, Any]:
    return {"newKamiIds": [10]}


@pytest.fixture
def sample_files(
    sample_images: dict[str, Any],
    sample_traits: dict[str, Any],
    sample_stats: dict[str, Any],
    sample_metadata: dict[str, Any],
) -> CorpusFiles:
    return CorpusFiles(
        images=sample_images,
        traits=sample_traits,
        stats=sample_stats,
        metadata=sample_metadata,
    )


@pytest.fixture
def sample_corpus(sample_files: CorpusFiles) -> Corpus:
    return Corpus.from_sources(
        images=sample_files.images,
        traits=sample_files.traits,
        stats=sample_files.stats,
        metadata=sample_files.metadata,
    )


@pytest.fixture
def sample_snapshot(sample_corpus: Corpus) -> GallerySnapshot:
    return build_snapshot(sample_corpus)


@pytest.fixture
def static_source(sample_files: CorpusFiles) -> StaticSource:
    return StaticSource(sample_files)


@pytest.fixture
async def loaded_store(static_source: StaticSource) -> GalleryStore:
    """A store that has completed its first load."""
    store = GalleryStore(static_source)
    await store.load()
    return store


@pytest.fixture
def data_dir(tmp_path: Path, sample_files: CorpusFiles) -> Path:
    """Directory holding the four collection files."""
    for name, content in (
        ("kamiImage.json", sample_files.images),
        ("kamiTraits.json", sample_files.traits),
        ("kamiStats.json", sample_files.stats),
        ("kamiMetadata.json", sample_files.metadata),
    ):
        (tmp_path / name).write_text(json.dumps(content), encoding="utf-8")
    return tmp_path
