"""
Ordering and trait filtering of gallery item IDs.

Both are pure functions of the corpus and its rarity table; the gallery
controller decides when to re-run them.
"""

from kamigallery.filtering.sorting import DEFAULT_SORT_ORDER, SortOrder, sort_ids
from kamigallery.filtering.trait_filter import (
    TraitSelection,
    filter_and_sort,
    item_matches,
    match_ids,
)

__all__ = [
    "DEFAULT_SORT_ORDER",
    "SortOrder",
    "TraitSelection",
    "filter_and_sort",
    "item_matches",
    "match_ids",
    "sort_ids",
]
