from kamigallery.models.corpus import Corpus
from kamigallery.models.failure import (
    AlreadySelectedError,
    CorpusFormatError,
    CorpusLoadError,
    CorpusNotReadyError,
    FailureDetail,
    FailureKind,
    InvalidInputError,
    ItemNotFoundError,
    KnownError,
)
from kamigallery.models.item import Item, TraitValue
from kamigallery.models.surface import (
    CardView,
    FilterChip,
    FilterGroup,
    FilterOption,
    ResultsHeader,
    TraitView,
)

__all__ = [
    "AlreadySelectedError",
    "CardView",
    "Corpus",
    "CorpusFormatError",
    "CorpusLoadError",
    "CorpusNotReadyError",
    "FailureDetail",
    "FailureKind",
    "FilterChip",
    "FilterGroup",
    "FilterOption",
    "InvalidInputError",
    "Item",
    "ItemNotFoundError",
    "KnownError",
    "ResultsHeader",
    "TraitValue",
    "TraitView",
]
