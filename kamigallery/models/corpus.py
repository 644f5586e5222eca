"""
Corpus store.

Immutable, per-load view of the collection: every trait-bearing item with its
image reference, typed trait values and optional stat block. A new Corpus is
built for every load or refresh; an existing one is never patched.

INVARIANTS:
- The traits file is authoritative for existence (an ID with an image but no
  traits is not part of the corpus)
- Images and traits are mandatory; a malformed one fails the whole build
- Stats and metadata are optional and degrade independently
"""

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any

from kamigallery.models.failure import CorpusFormatError
from kamigallery.models.item import Item, TraitValue, stat_value

logger = logging.getLogger(__name__)


def _parse_stats(raw_stats: Any) -> dict[str, dict[str, int]]:
    """
    Parse the optional stats file: {id: {"stats": {stat: value}}}.

    Malformed entries are skipped; a malformed file yields no stats.
    """
    if raw_stats is None:
        return {}

    if not isinstance(raw_stats, dict):
        logger.warning("Stats data is not an object, stat sorting disabled")
        return {}

    parsed: dict[str, dict[str, int]] = {}
    for item_id, entry in raw_stats.items():
        block = entry.get("stats") if isinstance(entry, dict) else None
        if not isinstance(block, dict):
            continue
        parsed[str(item_id)] = {
            name: value
            for name, raw_value in block.items()
            if (value := stat_value(raw_value)) is not None
        }
    return parsed


def _parse_new_ids(raw_metadata: Any) -> frozenset[str]:
    """
    Parse the optional metadata file: {"newKamiIds": [int, ...]}.

    IDs are compared numerically, so "0042" and 42 are the same item.
    """
    if raw_metadata is None:
        return frozenset()

    new_ids = raw_metadata.get("newKamiIds") if isinstance(raw_metadata, dict) else None
    if not isinstance(new_ids, list):
        logger.warning("Metadata has no newKamiIds list, NEW badges disabled")
        return frozenset()

    result: set[str] = set()
    for value in new_ids:
        try:
            result.add(str(int(value)))
        except (TypeError, ValueError, OverflowError):
            logger.debug("Ignoring non-numeric new ID %r", value)
    return frozenset(result)


def _numeric_key(item_id: str) -> str:
    """Normalize an ID for numeric membership checks."""
    try:
        return str(int(item_id))
    except ValueError:
        return item_id


class Corpus:
    """
    The loaded collection.

    Usage:
        corpus = Corpus.from_sources(images, traits, stats, metadata)
        item = corpus.get("42")
        for item_id in corpus.ids():
            ...
    """

    def __init__(
        self,
        items: Mapping[str, Item],
        has_stats: bool = False,
        new_ids: frozenset[str] = frozenset(),
    ) -> None:
        self._items = MappingProxyType(dict(items))
        self._ids = tuple(self._items)
        self.has_stats = has_stats
        self.new_ids = new_ids

    @classmethod
    def from_sources(
        cls,
        images: Any,
        traits: Any,
        stats: Any = None,
        metadata: Any = None,
    ) -> "Corpus":
        """
        Build a corpus from the decoded JSON files.

        Args:
            images: {id: image_url}. Mandatory.
            traits: {id: {category: name | {name, affinity?, stats?}}}. Mandatory.
            stats: {id: {"stats": {stat: value}}}. Optional.
            metadata: {"newKamiIds": [int, ...]}. Optional.

        Returns:
            A new Corpus.

        Raises:
            CorpusFormatError: If images or traits is not a JSON object
        """
        if not isinstance(images, dict):
            raise CorpusFormatError(
                "Images data is not in the expected format.",
                detail=f"expected an object keyed by ID, got {type(images).__name__}",
            )
        if not isinstance(traits, dict):
            raise CorpusFormatError(
                "Traits data is not in the expected format.",
                detail=f"expected an object keyed by ID, got {type(traits).__name__}",
            )

        stats_by_id = _parse_stats(stats)
        new_ids = _parse_new_ids(metadata)

        items: dict[str, Item] = {}
        skipped = 0
        for raw_id, raw_traits in traits.items():
            item_id = str(raw_id)
            if not isinstance(raw_traits, dict):
                logger.warning("Skipping item %s: traits entry is not an object", item_id)
                skipped += 1
                continue

            parsed: dict[str, TraitValue] = {}
            for category, raw_value in raw_traits.items():
                value = TraitValue.parse(raw_value)
                if value is None:
                    logger.warning(
                        "Dropping unreadable %s trait on item %s: %r",
                        category,
                        item_id,
                        raw_value,
                    )
                    continue
                parsed[category] = value

            image = images.get(raw_id)
            item_stats = stats_by_id.get(item_id)
            items[item_id] = Item(
                item_id=item_id,
                image=image if isinstance(image, str) and image else None,
                traits=MappingProxyType(parsed),
                stats=MappingProxyType(item_stats) if item_stats is not None else None,
                is_new=_numeric_key(item_id) in new_ids,
            )

        corpus = cls(items, has_stats=bool(stats_by_id), new_ids=new_ids)

        logger.info(
            "corpus_built",
            extra={
                "items": len(corpus),
                "images": len(images),
                "displayable": sum(1 for item in items.values() if item.displayable),
                "with_stats": len(stats_by_id),
                "new": len(new_ids),
                "skipped": skipped,
            },
        )

        return corpus

    def get(self, item_id: str) -> Item | None:
        """Get an item by ID, None if not in the corpus."""
        return self._items.get(item_id)

    def ids(self) -> list[str]:
        """All trait-bearing item IDs, in source order."""
        return list(self._ids)

    def items(self) -> Iterator[Item]:
        """Iterate items in source order."""
        return iter(self._items.values())

    def is_displayable(self, item_id: str) -> bool:
        """True if the ID resolves to an item with an image."""
        item = self._items.get(item_id)
        return item is not None and item.displayable

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)
