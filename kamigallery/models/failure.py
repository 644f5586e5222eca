"""
Failure classification for the gallery.

Every rejected action and failed load is classified so callers can surface
it without guessing:

- Fatal load: a mandatory data file is unreachable or malformed
- Not found: an unknown item ID was requested
- Duplicate: an item is already in the comparison tray
- Invalid input: the request itself is unusable (e.g. empty ID)

Degraded loads (optional files missing) are logged, never raised.
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    ALREADY_SELECTED = "already_selected"

    LOAD_FAILED = "load_failed"
    MALFORMED_DATA = "malformed_data"
    NOT_READY = "not_ready"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class CorpusLoadError(KnownError):
    """
    A mandatory collection file could not be loaded.

    The previously loaded corpus (if any) stays in place.
    """

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        kind: FailureKind = FailureKind.LOAD_FAILED,
    ):
        super().__init__(
            kind=kind,
            message=message,
            detail=detail,
            suggestion="Check that the images and traits files are being served, then refresh.",
            status_code=502,
        )


class CorpusFormatError(CorpusLoadError):
    """A mandatory collection file was readable but not in the expected shape."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message, detail=detail, kind=FailureKind.MALFORMED_DATA)


class CorpusNotReadyError(KnownError):
    """Raised when the gallery is queried before any corpus has loaded."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.NOT_READY,
            message="Collection data has not been loaded yet.",
            suggestion="Try again once the initial load completes.",
            status_code=503,
        )


class ItemNotFoundError(KnownError):
    """Raised when an item ID does not resolve in the current corpus."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            kind=FailureKind.NOT_FOUND,
            message=f"Kamigotchi #{item_id} not found. Please check the ID and try again.",
            status_code=404,
        )


class AlreadySelectedError(KnownError):
    """Raised when adding an item that is already in the comparison tray."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(
            kind=FailureKind.ALREADY_SELECTED,
            message=f"Kamigotchi #{item_id} is already added!",
            status_code=409,
        )


class InvalidInputError(KnownError):
    """Raised when a request is unusable as given."""

    def __init__(self, message: str):
        super().__init__(
            kind=FailureKind.INVALID_INPUT,
            message=message,
            status_code=400,
        )
