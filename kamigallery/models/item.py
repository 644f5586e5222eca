import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

_EMPTY_STATS: Mapping[str, int] = MappingProxyType({})


def stat_value(value: Any) -> int | None:
    """
    Coerce a raw JSON stat to an int.

    Returns None for booleans, non-numbers and non-finite floats
    (NaN, Infinity and overflowing literals such as 1e400).
    """
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return int(value)


@dataclass(frozen=True, slots=True)
class TraitValue:
    """
    The value an item takes in one trait category.

    Trait files encode a value either as a bare name ("red") or as a record
    ({"name": "red", "affinity": "fire", "stats": {"power": 2}}). Both forms
    are resolved here, once, so every consumer reads `name`.

    Attributes:
        name: Display name of the trait value
        affinity: Optional affinity tag (e.g. "normal", "eerie")
        stats: Stat modifiers contributed by this value {stat: delta}
    """

    name: str
    affinity: str | None = None
    stats: Mapping[str, int] = field(default_factory=lambda: _EMPTY_STATS)

    @classmethod
    def parse(cls, raw: Any) -> "TraitValue | None":
        """
        Parse a raw trait descriptor.

        Returns None if the descriptor is neither a string nor a record
        with a string `name`.
        """
        if isinstance(raw, str):
            return cls(name=raw)

        if not isinstance(raw, dict):
            return None

        name = raw.get("name")
        if not isinstance(name, str):
            return None

        affinity = raw.get("affinity")

        stats: dict[str, int] = {}
        raw_stats = raw.get("stats")
        if isinstance(raw_stats, dict):
            for stat, raw_value in raw_stats.items():
                value = stat_value(raw_value)
                if value is not None:
                    stats[stat] = value

        return cls(
            name=name,
            affinity=affinity if isinstance(affinity, str) and affinity else None,
            stats=MappingProxyType(stats) if stats else _EMPTY_STATS,
        )


@dataclass(frozen=True, slots=True)
class Item:
    """
    One Kamigotchi in the collection.

    Attributes:
        item_id: Token ID exactly as it appears in the data files
        image: Image URL, None if the images file has no entry
        traits: Category name -> trait value
        stats: Named stats {stat: value}, None if no stats data
        is_new: True if listed in the metadata file's new IDs
    """

    item_id: str
    image: str | None
    traits: Mapping[str, TraitValue]
    stats: Mapping[str, int] | None = None
    is_new: bool = False

    @property
    def displayable(self) -> bool:
        """True if the item has an image (traits are always present)."""
        return bool(self.image)

    def trait_name(self, category: str) -> str | None:
        """Name of the value this item takes in `category`, if declared."""
        value = self.traits.get(category)
        return value.name if value is not None else None

    def stat(self, stat_name: str) -> int:
        """Value of a named stat, 0 when stats are unavailable."""
        if self.stats is None:
            return 0
        return self.stats.get(stat_name, 0)
