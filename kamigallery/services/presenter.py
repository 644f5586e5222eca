"""
Builds the rendered surface from a gallery snapshot.

Items without an image are skipped with a warning wherever cards are built;
they are never an error.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from kamigallery.analysis.trait_stats import trait_percentage
from kamigallery.config import COLLECTION_NAME, RANK_TIERS
from kamigallery.filtering.sorting import SortOrder
from kamigallery.models.item import TraitValue
from kamigallery.models.surface import (
    CardView,
    FilterChip,
    FilterGroup,
    FilterOption,
    ResultsHeader,
    TraitView,
)
from kamigallery.services.gallery_store import GallerySnapshot

logger = logging.getLogger(__name__)

ALL_ITEMS_TITLE = f"Showing all {COLLECTION_NAME}"
MATCHING_TITLE = f"Found matching {COLLECTION_NAME}"
NO_MATCHES_MESSAGE = f"No {COLLECTION_NAME} match your selected traits"
NO_TRAIT_RESULTS_MESSAGE = "No matching traits found"


def category_label(category: str) -> str:
    """Display label for a category ("body" -> "Body")."""
    return category[:1].upper() + category[1:]


def rank_tier(rank: int | None, total_items: int) -> str:
    """Badge tier for a rank by percentile of the collection."""
    if rank is None or total_items <= 0:
        return "common"

    percentile = rank / total_items * 100
    for upper_bound, tier in RANK_TIERS:
        if percentile <= upper_bound:
            return tier
    return "common"


def build_card(
    snapshot: GallerySnapshot,
    item_id: str,
    sort_order: SortOrder,
    removable: bool = False,
) -> CardView | None:
    """
    Build the card for one item.

    Returns None (and logs) if the item is unknown or has no image.
    """
    item = snapshot.corpus.get(item_id)
    if item is None or not item.displayable or item.image is None:
        logger.warning("Kamigotchi #%s not found in data", item_id)
        return None

    record = snapshot.rarity.get(item_id)
    stat_name = sort_order.stat_name

    return CardView(
        id=item.item_id,
        image=item.image,
        traits=[
            TraitView(
                category=category,
                label=category_label(category),
                value=value.name,
                affinity=value.affinity,
                stats=dict(value.stats),
            )
            for category, value in item.traits.items()
        ],
        rank=record.rank if record is not None else None,
        score=record.score if record is not None else None,
        rank_tier=rank_tier(record.rank if record is not None else None, snapshot.total_items),
        stats=dict(item.stats) if item.stats is not None else None,
        sort_stat=stat_name,
        sort_stat_value=(
            item.stats.get(stat_name) if stat_name is not None and item.stats is not None else None
        ),
        is_new=item.is_new,
        removable=removable,
    )


def build_cards(
    snapshot: GallerySnapshot,
    item_ids: Iterable[str],
    sort_order: SortOrder,
    removable: bool = False,
) -> list[CardView]:
    """Cards for a sequence of IDs, skipping undisplayable items."""
    cards: list[CardView] = []
    for item_id in item_ids:
        card = build_card(snapshot, item_id, sort_order, removable=removable)
        if card is not None:
            cards.append(card)
    return cards


def build_header(
    total: int,
    selected_filters: Mapping[str, Sequence[str]],
    no_matches: bool = False,
) -> ResultsHeader:
    """Results header with one removable chip per active constraint."""
    chips = [
        FilterChip(category=category, value=value, label=f"{category}: {value}")
        for category, values in selected_filters.items()
        for value in values
    ]

    if not chips:
        return ResultsHeader(title=ALL_ITEMS_TITLE, total=total)

    return ResultsHeader(
        title=MATCHING_TITLE,
        total=total,
        chips=chips,
        no_matches=no_matches,
        message=NO_MATCHES_MESSAGE if no_matches else None,
    )


def trait_details(snapshot: GallerySnapshot) -> dict[str, dict[str, TraitValue]]:
    """
    First structured occurrence of every (category, value).

    Affinity and stat modifiers belong to the value, so any occurrence
    describes it; bare-string occurrences carry no details.
    """
    details: dict[str, dict[str, TraitValue]] = {}
    for item in snapshot.corpus.items():
        for category, value in item.traits.items():
            known = details.setdefault(category, {})
            current = known.get(value.name)
            if current is None or (current.affinity is None and not current.stats):
                known[value.name] = value
    return details


def search_trait_values(values: Iterable[str], term: str | None) -> list[str]:
    """Values containing `term`, case-insensitively; all values for an empty term."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(values)
    return [value for value in values if needle in value.lower()]


def build_filter_group(
    snapshot: GallerySnapshot,
    category: str,
    selected: Iterable[str] = (),
    search: str | None = None,
    details: Mapping[str, Mapping[str, TraitValue]] | None = None,
) -> FilterGroup:
    """
    Filter controls for one category.

    Options are ordered by ascending count (rarest first); ties keep first-seen order.
    """
    counts = snapshot.trait_counts.get(category)
    if counts is None:
        return FilterGroup(category=category, label=category_label(category))

    if details is None:
        details = trait_details(snapshot)
    category_details = details.get(category, {})
    chosen = set(selected)

    ordered = sorted(counts, key=lambda value: counts[value])
    visible = search_trait_values(ordered, search)

    options: list[FilterOption] = []
    for value in visible:
        detail = category_details.get(value)
        options.append(
            FilterOption(
                value=value,
                count=counts[value],
                percentage=round(
                    trait_percentage(snapshot.trait_counts, category, value, snapshot.total_items),
                    1,
                ),
                affinity=detail.affinity if detail is not None else None,
                stats=dict(detail.stats) if detail is not None else {},
                selected=value in chosen,
            )
        )

    return FilterGroup(
        category=category,
        label=category_label(category),
        options=options,
        message=NO_TRAIT_RESULTS_MESSAGE if not options else None,
    )


def build_filter_groups(
    snapshot: GallerySnapshot,
    selected_filters: Mapping[str, Sequence[str]],
    search: Mapping[str, str] | None = None,
) -> list[FilterGroup]:
    """Filter controls for every category, alphabetically."""
    details = trait_details(snapshot)
    search = search or {}
    return [
        build_filter_group(
            snapshot,
            category,
            selected=selected_filters.get(category, ()),
            search=search.get(category),
            details=details,
        )
        for category in sorted(snapshot.trait_counts)
    ]
