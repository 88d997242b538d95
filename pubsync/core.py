"""Core orchestration engine for pubsync.

Ties together the search backend, the approval store and deduplication.
This is the single entry point used by the CLI and library consumers.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import date, datetime, timezone
from pathlib import Path

from pubsync.config import PubSyncConfig, load_config
from pubsync.dedup import filter_unapproved
from pubsync.errors import InvalidInput, SyncError
from pubsync.models import (
    ApprovalRecord,
    ApprovalStatus,
    JournalSyncResult,
    Resolution,
    SyncReport,
    SyncWindow,
    Work,
)
from pubsync.sources.base import SearchBackend
from pubsync.sources.openalex import OpenAlexBackend, journal_filter
from pubsync.store import ApprovalStore

logger = logging.getLogger(__name__)


class SyncEngine:
    """Main orchestrator for discovering and recording new works.

    Runs are sequential: one journal at a time, awaiting each search and
    append before moving on. Overlapping calls to :meth:`sync` on the same
    engine wait for each other; separate processes sharing one sheet must
    be serialized by the caller.
    """

    def __init__(
        self,
        search: SearchBackend,
        store: ApprovalStore,
        window_days: int = 7,
        per_page: int = 25,
        journals: Sequence[str] = (),
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the engine with explicit adapters.

        Args:
            search: Bibliographic search backend.
            store: Approval store.
            window_days: Days to look back from today.
            per_page: Page size requested per journal.
            journals: Default journal IDs for callers that supply none.
            today: Clock used to compute the sync window.
        """
        self.search = search
        self.store = store
        self.window_days = window_days
        self.per_page = per_page
        self.journals = list(journals)
        self._today = today
        self._sync_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: PubSyncConfig) -> "SyncEngine":
        """Build an engine and its adapters from configuration.

        Args:
            config: Validated configuration.

        Returns:
            Ready SyncEngine.
        """
        store = ApprovalStore.from_config(config.sheets)
        return cls(
            search=OpenAlexBackend(config.openalex),
            store=store,
            window_days=config.sync.window_days,
            per_page=config.openalex.per_page,
            journals=config.sync.journals,
        )

    @classmethod
    def from_config_file(
        cls, config_path: str | Path = "pubsync.yaml"
    ) -> "SyncEngine":
        """Load a YAML config file and build an engine from it."""
        return cls.from_config(load_config(config_path))

    async def aclose(self) -> None:
        """Release the search backend's HTTP client, if it has one."""
        close = getattr(self.search, "aclose", None)
        if close is not None:
            await close()

    def current_window(self) -> SyncWindow:
        """Compute the sync window ending today."""
        return SyncWindow.trailing(self._today(), self.window_days)

    async def sync(self, journal_ids: Sequence[str]) -> SyncReport:
        """Fetch recent works per journal and append the unapproved ones.

        The window and the approval index are computed once and shared
        by every journal in the run. The first error aborts the remaining
        journals.

        Args:
            journal_ids: Source IDs to query, processed in order.

        Returns:
            SyncReport with per-journal and total counts.

        Raises:
            InvalidInput: If no journal IDs are given.
            SyncError: Whatever the adapters raise, unchanged.
        """
        journal_ids = list(journal_ids)
        if not journal_ids:
            raise InvalidInput("No journal IDs provided")

        async with self._sync_lock:
            return await self._sync_locked(journal_ids)

    async def _sync_locked(self, journal_ids: list[str]) -> SyncReport:
        logger.info("Starting sync for journal IDs: %s", journal_ids)
        window = self.current_window()
        logger.info(
            "Sync window: %s to %s",
            window.start.isoformat(),
            window.end.isoformat(),
        )

        approved_ids = await self.store.load_approved_ids()

        results: list[JournalSyncResult] = []
        appended_ids: list[str] = []
        for journal_id in journal_ids:
            try:
                result, new_works = await self._sync_journal(
                    journal_id, window, approved_ids
                )
            except SyncError:
                logger.error(
                    "Sync aborted at journal %s; %d journal(s) not processed",
                    journal_id,
                    len(journal_ids) - len(results) - 1,
                )
                raise
            results.append(result)
            appended_ids.extend(w.id for w in new_works)

        report = SyncReport(
            timestamp=datetime.now(timezone.utc),
            window=window,
            journals=results,
            appended_count=len(appended_ids),
            appended_ids=appended_ids,
        )
        logger.info(
            "Sync completed: %d new articles added", report.appended_count
        )
        return report

    async def _sync_journal(
        self,
        journal_id: str,
        window: SyncWindow,
        approved_ids: set[str],
    ) -> tuple[JournalSyncResult, list[Work]]:
        """Search one journal, dedup and append.

        Args:
            journal_id: Source ID to query.
            window: Shared window for this run.
            approved_ids: Shared approval index for this run.

        Returns:
            Tuple of (per-journal counts, works appended).
        """
        page = await self.search.search(
            "",
            filter=journal_filter(journal_id, window.start),
            page=1,
            per_page=self.per_page,
        )
        new_works = filter_unapproved(page.results, approved_ids)
        skipped = len(page.results) - len(new_works)
        logger.info(
            "Journal %s: %d fetched, %d already approved, %d to add",
            journal_id,
            len(page.results),
            skipped,
            len(new_works),
        )

        if new_works:
            logger.debug(
                "Article IDs to be added: %s", [w.id for w in new_works]
            )
            await self.store.append(new_works)
        else:
            logger.info("No new articles to add for journal %s", journal_id)

        return (
            JournalSyncResult(
                journal_id=journal_id,
                fetched=len(page.results),
                skipped=skipped,
                appended=len(new_works),
                total_available=page.total_count,
            ),
            new_works,
        )

    async def sync_new_articles(self, journal_ids: Sequence[str]) -> dict[str, int]:
        """Run :meth:`sync` and return the caller-facing summary.

        Args:
            journal_ids: Source IDs to query.

        Returns:
            ``{"appendedCount": n}``.
        """
        report = await self.sync(journal_ids)
        return {"appendedCount": report.appended_count}

    async def resolve_approved(self) -> list[Resolution]:
        """Resolve every approved ID to a full Work, one result per ID.

        Store failures propagate; per-ID search failures are captured in
        the returned Resolution.

        Returns:
            Resolution per approved ID, sorted by ID.
        """
        approved_ids = await self.store.load_approved_ids()
        resolutions: list[Resolution] = []
        for work_id in sorted(approved_ids):
            try:
                work = await self.search.get_work(work_id)
            except SyncError as exc:
                resolutions.append(Resolution(work_id=work_id, error=str(exc)))
            else:
                resolutions.append(Resolution(work_id=work_id, work=work))
        return resolutions

    async def get_approved_articles(self) -> list[Work]:
        """Return the approved works that could be resolved.

        Unresolvable IDs are logged and left out so one bad record does
        not hide the rest.

        Returns:
            Resolved Works.
        """
        works: list[Work] = []
        for resolution in await self.resolve_approved():
            if resolution.ok:
                works.append(resolution.work)
            else:
                logger.warning(
                    "Failed to fetch article %s: %s",
                    resolution.work_id,
                    resolution.error,
                )
        logger.info("Successfully fetched %d approved articles", len(works))
        return works

    async def get_records(
        self, status: ApprovalStatus | None = None
    ) -> list[ApprovalRecord]:
        """List the rows currently in the approval sheet.

        Args:
            status: Only return rows with this status.

        Returns:
            ApprovalRecords in sheet order.
        """
        return await self.store.load_records(status)
