"""Pydantic data models for pubsync.

Defines the core domain types: Work, ApprovalRecord, SyncReport, and
related enums.
"""

from datetime import date, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ApprovalStatus(StrEnum):
    """Review status held in the Status column of the approval sheet."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class Author(BaseModel):
    """A work author as reported by OpenAlex."""

    model_config = ConfigDict(frozen=True)

    name: str
    openalex_id: str | None = None
    orcid: str | None = None
    affiliation: str | None = None
    position: str | None = None


class Work(BaseModel):
    """A single scholarly work fetched from the search service."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    doi: str | None = None
    publication_date: date | None = None
    publication_year: int | None = None
    abstract: str | None = None
    citation_count: int = 0
    authors: list[Author] = Field(default_factory=list)
    venue: str | None = None
    venue_id: str | None = None
    work_type: str | None = None


class SearchPage(BaseModel):
    """One page of search results plus the upstream total."""

    results: list[Work] = Field(default_factory=list)
    total_count: int
    page: int = 1
    per_page: int = 25


class ApprovalRecord(BaseModel):
    """One row of the approval sheet."""

    row: int
    work_id: str
    title: str = ""
    publication_date: str = ""
    doi: str = ""
    abstract: str = ""
    status: ApprovalStatus | str = ApprovalStatus.PENDING
    comment: str = ""


class SyncWindow(BaseModel):
    """Trailing date interval that bounds "new" for one sync run."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @classmethod
    def trailing(cls, today: date, days: int = 7) -> "SyncWindow":
        """Build the window ``[today - days, today]``.

        Args:
            today: Last day of the window.
            days: Number of days to look back.

        Returns:
            SyncWindow instance.
        """
        return cls(start=today - timedelta(days=days), end=today)


class AppendResult(BaseModel):
    """Outcome of appending works to the approval sheet."""

    start_row: int | None = None
    rows_written: int = 0
    updated_range: str | None = None


class JournalSyncResult(BaseModel):
    """Per-journal counts for one sync run."""

    journal_id: str
    fetched: int = 0
    skipped: int = 0
    appended: int = 0
    total_available: int = 0


class SyncReport(BaseModel):
    """Result of a successful sync run."""

    timestamp: datetime
    window: SyncWindow
    journals: list[JournalSyncResult] = Field(default_factory=list)
    appended_count: int = 0
    appended_ids: list[str] = Field(default_factory=list)


class Resolution(BaseModel):
    """Result of resolving one approved ID back to a full Work."""

    work_id: str
    work: Work | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """Whether the work was resolved."""
        return self.work is not None
