"""
Rendered surface.

The data contract handed to whatever draws the gallery: cards, the results
header and the filter controls. Nothing here knows about markup.
"""

from pydantic import BaseModel, Field


class TraitView(BaseModel):
    """One trait line on a card."""

    category: str
    label: str = Field(..., description="Category name for display (capitalized)")
    value: str
    affinity: str | None = None
    stats: dict[str, int] = Field(default_factory=dict)


class CardView(BaseModel):
    """Everything needed to draw one item card."""

    id: str
    image: str
    traits: list[TraitView] = Field(default_factory=list)
    rank: int | None = Field(default=None, description="Rarity rank, 1 = rarest")
    score: float | None = Field(default=None, description="OpenRarity score (0-1)")
    rank_tier: str = Field(
        default="common",
        description="Badge tier by rank percentile (legendary, epic, rare, uncommon, common)",
    )
    stats: dict[str, int] | None = None
    sort_stat: str | None = Field(
        default=None,
        description="Stat the gallery is sorted by, if any",
    )
    sort_stat_value: int | None = None
    is_new: bool = False
    removable: bool = Field(
        default=False,
        description="True only for cards in the comparison tray",
    )


class FilterChip(BaseModel):
    """A removable active filter constraint."""

    category: str
    value: str
    label: str


class ResultsHeader(BaseModel):
    """Header above the results grid."""

    title: str
    total: int
    chips: list[FilterChip] = Field(default_factory=list)
    no_matches: bool = False
    message: str | None = None


class FilterOption(BaseModel):
    """One selectable trait value in a filter group."""

    value: str
    count: int
    percentage: float
    affinity: str | None = None
    stats: dict[str, int] = Field(default_factory=dict)
    selected: bool = False


class FilterGroup(BaseModel):
    """All values of one trait category, rarest first."""

    category: str
    label: str
    options: list[FilterOption] = Field(default_factory=list)
    message: str | None = None
