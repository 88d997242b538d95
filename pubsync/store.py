"""Google Sheets approval store for pubsync.

One row per discovered work, in a fixed seven-column layout (A:G). Row 1
holds the headers; reviewers edit the Status and Comments columns by hand.
All gspread calls block, so the public methods run them in the default
executor.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from functools import partial
from typing import Any, TypeVar

import gspread
from google.auth.exceptions import GoogleAuthError
from gspread.exceptions import GSpreadException
from gspread.utils import ValueInputOption
from requests.exceptions import RequestException

from pubsync.config import SheetsConfig
from pubsync.errors import StoreUnavailable, StoreWriteConflict
from pubsync.models import ApprovalRecord, ApprovalStatus, AppendResult, Work

logger = logging.getLogger(__name__)

T = TypeVar("T")

HEADERS: list[str] = [
    "Article ID",
    "Title",
    "Publication Date",
    "DOI",
    "Abstract",
    "Status",
    "Comments",
]

_HEADER_RANGE = "A1:G1"
_DATA_RANGE = "A:G"
_STATUS_COLUMN = 5
# Rows shorter than this cannot carry a status and are ignored.
_MIN_STATUS_COLUMNS = _STATUS_COLUMN + 1

_STORE_ERRORS = (GSpreadException, RequestException, GoogleAuthError)


def _is_blank(rows: Sequence[Sequence[Any]] | None) -> bool:
    """Return True if a value range has no populated cells."""
    if not rows:
        return True
    return not any(str(cell).strip() for row in rows for cell in row)


def work_to_row(work: Work) -> list[str]:
    """Render a Work as a new approval sheet row.

    Args:
        work: Work to record.

    Returns:
        Seven cell values, with status Pending and an empty comment.
    """
    return [
        work.id,
        work.title,
        work.publication_date.isoformat() if work.publication_date else "",
        work.doi or "",
        work.abstract or "",
        ApprovalStatus.PENDING.value,
        "",
    ]


def _row_to_record(row_number: int, row: Sequence[Any]) -> ApprovalRecord:
    cells = [str(cell) for cell in row] + [""] * (len(HEADERS) - len(row))
    status_text = cells[_STATUS_COLUMN].strip()
    try:
        status: ApprovalStatus | str = ApprovalStatus(status_text)
    except ValueError:
        status = status_text
    return ApprovalRecord(
        row=row_number,
        work_id=cells[0].strip(),
        title=cells[1],
        publication_date=cells[2],
        doi=cells[3],
        abstract=cells[4],
        status=status,
        comment=cells[6],
    )


def open_worksheet(config: SheetsConfig) -> gspread.Worksheet:
    """Open the approval worksheet with a service account.

    Args:
        config: Sheets settings (credentials path, spreadsheet key,
            optional worksheet title).

    Returns:
        The gspread Worksheet; the first sheet when no title is set.

    Raises:
        StoreUnavailable: If credentials are missing or the spreadsheet
            cannot be opened.
    """
    if not config.spreadsheet_id:
        raise StoreUnavailable("No spreadsheet_id configured")
    credentials = config.resolved_credentials_path
    if not credentials.exists():
        raise StoreUnavailable(
            f"Service account credentials not found at {credentials}"
        )
    try:
        client = gspread.service_account(filename=str(credentials))
        spreadsheet = client.open_by_key(config.spreadsheet_id)
        if config.worksheet:
            return spreadsheet.worksheet(config.worksheet)
        return spreadsheet.sheet1
    except (*_STORE_ERRORS, ValueError) as exc:
        raise StoreUnavailable(
            f"Could not open spreadsheet {config.spreadsheet_id}: {exc}"
        ) from exc


class ApprovalStore:
    """Approval store backed by a single worksheet."""

    def __init__(self, worksheet: gspread.Worksheet) -> None:
        """Initialize the store.

        Args:
            worksheet: Worksheet holding the approval rows.
        """
        self._worksheet = worksheet
        self._headers_ready = False

    @classmethod
    def from_config(cls, config: SheetsConfig) -> "ApprovalStore":
        """Build a store from Sheets settings."""
        return cls(open_worksheet(config))

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    def _call(self, what: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke a gspread method, translating its failures."""
        try:
            return func(*args, **kwargs)
        except _STORE_ERRORS as exc:
            raise StoreUnavailable(f"Approval store {what} failed: {exc}") from exc

    async def load_approved_ids(self) -> set[str]:
        """Read the IDs of all rows whose status is Approved.

        Returns:
            Set of approved work IDs.
        """
        return await self._run(self._load_approved_ids_sync)

    def _load_approved_ids_sync(self) -> set[str]:
        rows = self._call("read", self._worksheet.get, _DATA_RANGE)
        approved: set[str] = set()
        for row in list(rows or [])[1:]:
            if len(row) < _MIN_STATUS_COLUMNS:
                continue
            work_id = str(row[0]).strip()
            if work_id and str(row[_STATUS_COLUMN]).strip() == ApprovalStatus.APPROVED:
                approved.add(work_id)
        logger.info("Found %d approved articles", len(approved))
        return approved

    async def load_records(
        self, status: ApprovalStatus | None = None
    ) -> list[ApprovalRecord]:
        """Read every data row of the sheet.

        Args:
            status: Only return rows with this status.

        Returns:
            ApprovalRecord per non-empty row, in sheet order.
        """
        return await self._run(self._load_records_sync, status)

    def _load_records_sync(
        self, status: ApprovalStatus | None
    ) -> list[ApprovalRecord]:
        rows = self._call("read", self._worksheet.get, _DATA_RANGE)
        records = []
        for offset, row in enumerate(list(rows or [])[1:]):
            if _is_blank([row]):
                continue
            record = _row_to_record(offset + 2, row)
            if status is None or record.status == status:
                records.append(record)
        return records

    async def ensure_headers(self) -> None:
        """Write the header row if the sheet does not have one yet."""
        await self._run(self._ensure_headers_sync)

    def _ensure_headers_sync(self) -> None:
        if self._headers_ready:
            return
        existing = self._call("header read", self._worksheet.get, _HEADER_RANGE)
        if _is_blank(existing):
            self._call(
                "header write",
                self._worksheet.update,
                values=[HEADERS],
                range_name=_HEADER_RANGE,
                value_input_option=ValueInputOption.raw,
            )
            logger.info("Initialized sheet with headers")
        self._headers_ready = True

    async def append(self, works: Sequence[Work]) -> AppendResult:
        """Append works as Pending rows after the last populated row.

        The target rows are read back before writing; if another writer
        filled them in the meantime the append is refused rather than
        overwriting their data.

        Args:
            works: Works to record.

        Returns:
            AppendResult describing the written range.

        Raises:
            StoreUnavailable: If the sheet cannot be read or written.
            StoreWriteConflict: If the target rows are already populated
                or read-back data has an unexpected shape.
        """
        return await self._run(self._append_sync, list(works))

    def _append_sync(self, works: list[Work]) -> AppendResult:
        self._ensure_headers_sync()
        if not works:
            return AppendResult()

        # Any populated cell in A:G counts, not just the ID column.
        rows = self._call("read", self._worksheet.get, _DATA_RANGE)
        if not isinstance(rows, list):
            raise StoreWriteConflict(
                f"Unexpected sheet read-back type: {type(rows).__name__}"
            )
        last_row = max(len(rows), 1)
        start = last_row + 1
        end = start + len(works) - 1
        target = f"A{start}:G{end}"
        logger.debug("Last row in sheet: %d, appending to %s", last_row, target)

        occupied = self._call("read", self._worksheet.get, target)
        if not _is_blank(occupied):
            raise StoreWriteConflict(
                f"Target range {target} filled up between row count and write"
            )

        response = self._call(
            "write",
            self._worksheet.update,
            values=[work_to_row(w) for w in works],
            range_name=target,
            value_input_option=ValueInputOption.raw,
        )
        updated_rows = (
            response.get("updatedRows") if isinstance(response, dict) else None
        )
        if updated_rows is not None and updated_rows != len(works):
            raise StoreWriteConflict(
                f"Expected {len(works)} rows written to {target}, "
                f"store reported {updated_rows}"
            )
        updated_range = (
            response.get("updatedRange", target)
            if isinstance(response, dict)
            else target
        )
        logger.info(
            "Appended %d articles to %s", len(works), updated_range
        )
        return AppendResult(
            start_row=start,
            rows_written=len(works),
            updated_range=updated_range,
        )
