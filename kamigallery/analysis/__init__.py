from kamigallery.analysis.rarity import RarityRecord, RarityTable, compute_rarity
from kamigallery.analysis.trait_stats import TraitCounts, compute_trait_counts, trait_percentage

__all__ = [
    "RarityRecord",
    "RarityTable",
    "TraitCounts",
    "compute_rarity",
    "compute_trait_counts",
    "trait_percentage",
]
