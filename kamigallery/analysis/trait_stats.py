"""
Trait occurrence statistics.

Counts how many items carry each (category, value) pair.
"""

from collections import Counter

from kamigallery.models.corpus import Corpus

# category -> value name -> number of items with that value
TraitCounts = dict[str, Counter[str]]


def compute_trait_counts(corpus: Corpus) -> TraitCounts:
    """
    Build the trait occurrence table for a corpus.

    Pure function of the corpus. Categories need not be declared by every
    item; for each category the counts sum to the number of items that
    declare it.
    """
    counts: TraitCounts = {}

    for item in corpus.items():
        for category, value in item.traits.items():
            counts.setdefault(category, Counter())[value.name] += 1

    return counts


def category_totals(counts: TraitCounts) -> dict[str, int]:
    """Number of items declaring each category."""
    return {category: sum(values.values()) for category, values in counts.items()}


def trait_percentage(counts: TraitCounts, category: str, value: str, total_items: int) -> float:
    """Share of the whole corpus carrying a value, in percent (0 when empty)."""
    if total_items <= 0:
        return 0.0
    return 100.0 * counts.get(category, Counter())[value] / total_items
