"""
Sort orders for gallery item IDs.

Every order is total and stable: equal keys keep their input order, so
sorting the same IDs twice gives the same result.
"""

import math
from collections.abc import Callable, Iterable
from enum import Enum

from kamigallery.analysis.rarity import RarityTable
from kamigallery.config import STAT_NAMES
from kamigallery.models.corpus import Corpus


class SortOrder(str, Enum):
    """Supported gallery sort orders."""

    LATEST = "latest"
    OLDEST = "oldest"
    RARITY = "rarity"
    HARMONY = "harmony"
    HEALTH = "health"
    POWER = "power"
    VIOLENCE = "violence"

    @classmethod
    def parse(cls, value: str | None) -> "SortOrder":
        """Parse a sort name, falling back to LATEST for unknown values."""
        if value is None:
            return DEFAULT_SORT_ORDER
        try:
            return cls(value.strip().lower())
        except ValueError:
            return DEFAULT_SORT_ORDER

    @property
    def stat_name(self) -> str | None:
        """The stat this order sorts by, None for non-stat orders."""
        return self.value if self.value in STAT_NAMES else None


DEFAULT_SORT_ORDER = SortOrder.LATEST

SortKey = Callable[[str], tuple[int, float, str]]


def _numeric_id(item_id: str) -> float | None:
    try:
        return float(item_id)
    except ValueError:
        return None


def _recency_key(descending: bool) -> SortKey:
    """Numeric IDs first (by value), then non-numeric IDs by string."""

    def key(item_id: str) -> tuple[int, float, str]:
        number = _numeric_id(item_id)
        if number is None or math.isnan(number):
            return (1, 0.0, item_id)
        return (0, -number if descending else number, "")

    return key


def _rarity_key(rarity: RarityTable) -> SortKey:
    """Rank ascending; unranked items last."""

    def key(item_id: str) -> tuple[int, float, str]:
        record = rarity.get(item_id)
        return (0, float(record.rank) if record is not None else math.inf, "")

    return key


def _stat_key(stat_name: str, corpus: Corpus) -> SortKey:
    """Stat value descending; missing stats count as 0."""

    def key(item_id: str) -> tuple[int, float, str]:
        item = corpus.get(item_id)
        value = item.stat(stat_name) if item is not None else 0
        return (0, -float(value), "")

    return key


def sort_ids(
    ids: Iterable[str],
    sort_order: SortOrder,
    corpus: Corpus,
    rarity: RarityTable,
) -> list[str]:
    """
    Order item IDs by a sort order.

    Args:
        ids: IDs to sort (any subset of the corpus)
        sort_order: The active sort order
        corpus: Source of stat values
        rarity: Source of rarity ranks

    Returns:
        A new list; the input is not modified
    """
    if sort_order is SortOrder.OLDEST:
        key = _recency_key(descending=False)
    elif sort_order is SortOrder.RARITY:
        key = _rarity_key(rarity)
    elif sort_order.stat_name is not None:
        key = _stat_key(sort_order.stat_name, corpus)
    else:
        key = _recency_key(descending=True)

    return sorted(ids, key=key)
