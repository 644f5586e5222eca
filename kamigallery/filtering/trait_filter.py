"""
Trait filtering.

An item matches a selection when, for EVERY selected category, the item
declares that category and its value is ONE OF the accepted values.

INVARIANTS:
- Filtering is monotonic (only removes items, never adds)
- Filtering is idempotent (filtering a result again returns it unchanged)
- Result order follows the candidate order; final ordering is the sort's job
"""

import logging
from collections.abc import Collection, Iterable, Mapping

from kamigallery.analysis.rarity import RarityTable
from kamigallery.filtering.sorting import SortOrder, sort_ids
from kamigallery.models.corpus import Corpus
from kamigallery.models.item import Item

logger = logging.getLogger(__name__)

# category -> accepted value names
TraitSelection = Mapping[str, Collection[str]]


def item_matches(item: Item, selected: TraitSelection) -> bool:
    """AND across categories, OR within a category's accepted values."""
    for category, accepted in selected.items():
        name = item.trait_name(category)
        if name is None or name not in accepted:
            return False
    return True


def match_ids(
    corpus: Corpus,
    selected: TraitSelection,
    candidates: Iterable[str] | None = None,
) -> list[str]:
    """
    IDs of items matching every selected category.

    Args:
        corpus: The loaded corpus
        selected: {category: accepted values}; categories with no accepted
            values are ignored
        candidates: IDs to test, defaults to the whole corpus

    Returns:
        Matching IDs in candidate order
    """
    active = {category: set(values) for category, values in selected.items() if values}
    pool = corpus.ids() if candidates is None else candidates

    matches: list[str] = []
    for item_id in pool:
        item = corpus.get(item_id)
        if item is None:
            continue
        if item_matches(item, active):
            matches.append(item_id)

    logger.debug(
        "trait_filter_applied",
        extra={
            "categories": len(active),
            "matches": len(matches),
        },
    )

    return matches


def filter_and_sort(
    corpus: Corpus,
    rarity: RarityTable,
    selected: TraitSelection,
    sort_order: SortOrder,
) -> list[str]:
    """Matching IDs in the active sort order."""
    return sort_ids(match_ids(corpus, selected), sort_order, corpus, rarity)
