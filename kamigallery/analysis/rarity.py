"""
OpenRarity scoring.

Ranks every item by the information content of its traits:

1. IC = -ln(count / total_items) for each (category, value)
2. Each category is normalized by its highest IC, so every category
   contributes 0..1 regardless of how many values it has
3. An item's score is the mean normalized IC over the categories it declares
4. Rank 1 is the highest score (rarest item)

A category where every item shares one value has max IC 0 and carries no
rarity signal; its normalized IC is 0 rather than a division by zero.

INVARIANTS:
- Ranks are a dense permutation of 1..N
- Equal scores keep corpus order (deterministic across runs)
- Output is read-only and only replaced by a full recomputation
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from kamigallery.analysis.trait_stats import TraitCounts
from kamigallery.models.corpus import Corpus

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RarityRecord:
    """Rarity score and rank for one item (rank 1 = rarest)."""

    score: float
    rank: int


# item ID -> rarity record
RarityTable = Mapping[str, RarityRecord]


def information_content(counts: TraitCounts, total_items: int) -> dict[str, dict[str, float]]:
    """
    Information content of every trait value.

    Args:
        counts: Trait occurrence table
        total_items: Number of items in the corpus (not per category)

    Returns:
        {category: {value: IC}}; higher IC = rarer value
    """
    if total_items <= 0:
        return {}

    return {
        category: {value: -math.log(count / total_items) for value, count in values.items()}
        for category, values in counts.items()
    }


def max_information_content(ic_table: dict[str, dict[str, float]]) -> dict[str, float]:
    """Highest IC observed in each category."""
    return {
        category: max(values.values(), default=0.0) for category, values in ic_table.items()
    }


def normalized_ic(ic: float, max_ic: float) -> float:
    """IC scaled to 0..1 by the category maximum; 0 for a universal trait."""
    if max_ic <= 0.0:
        return 0.0
    return ic / max_ic


def score_items(corpus: Corpus, counts: TraitCounts) -> dict[str, float]:
    """
    Mean normalized IC per item, in corpus order.

    Items declaring no categories score 0.
    """
    ic_table = information_content(counts, len(corpus))
    max_ic = max_information_content(ic_table)

    scores: dict[str, float] = {}
    for item in corpus.items():
        if not item.traits:
            scores[item.item_id] = 0.0
            continue

        total = 0.0
        for category, value in item.traits.items():
            ic = ic_table[category][value.name]
            total += normalized_ic(ic, max_ic[category])

        scores[item.item_id] = total / len(item.traits)

    return scores


def rank_scores(scores: dict[str, float]) -> RarityTable:
    """
    Assign dense 1-based ranks by descending score.

    Python's sort is stable, so ties keep the order of `scores`.
    """
    ordered = sorted(scores.items(), key=lambda entry: entry[1], reverse=True)

    return MappingProxyType(
        {
            item_id: RarityRecord(score=score, rank=rank)
            for rank, (item_id, score) in enumerate(ordered, start=1)
        }
    )


def compute_rarity(corpus: Corpus, counts: TraitCounts) -> RarityTable:
    """
    Score and rank every item in the corpus.

    Args:
        corpus: The loaded corpus
        counts: Trait occurrence table computed from the same corpus

    Returns:
        Read-only mapping of item ID to RarityRecord
    """
    table = rank_scores(score_items(corpus, counts))

    logger.info(
        "rarity_computed",
        extra={
            "items": len(table),
            "categories": len(counts),
        },
    )

    return table
