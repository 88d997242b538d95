"""Exception hierarchy for pubsync.

Adapters translate library exceptions (httpx, gspread, google-auth) into
these types at the boundary so callers only ever handle ``SyncError``.
"""


class SyncError(Exception):
    """Base class for all errors raised by the sync engine."""


class InvalidInput(SyncError):
    """The caller supplied an unusable argument (e.g. no journal IDs)."""


class UpstreamError(SyncError):
    """Base class for bibliographic search failures."""


class UpstreamUnavailable(UpstreamError):
    """The search service could not be reached."""


class UpstreamResponseError(UpstreamError):
    """The search service answered with a non-success status or bad body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description.
            status_code: HTTP status returned upstream, if any.
        """
        super().__init__(message)
        self.status_code = status_code


class DeserializationError(UpstreamError):
    """The search payload does not match the expected schema."""


class StoreError(SyncError):
    """Base class for approval store failures."""


class StoreUnavailable(StoreError):
    """Credentials, transport or permissions prevented store access."""


class StoreWriteConflict(StoreError):
    """Read-back data had an unexpected shape or the target rows were taken."""
