"""Shared pytest fixtures for pubsync tests."""

import re
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import httpx
import pytest

from pubsync.config import OpenAlexConfig
from pubsync.core import SyncEngine
from pubsync.models import Author, Work
from pubsync.sources.openalex import OpenAlexBackend
from pubsync.store import HEADERS, ApprovalStore

_RANGE = re.compile(r"^([A-Z])(\d*)(?::([A-Z])(\d*))?$")


def _col(letter: str) -> int:
    return ord(letter) - ord("A")


class FakeWorksheet:
    """In-memory stand-in for a gspread Worksheet.

    Mimics the Sheets values API closely enough for the store: reads
    drop trailing empty cells and rows, writes extend the grid.
    """

    def __init__(self, rows: list[list[str]] | None = None) -> None:
        self.rows: list[list[str]] = [list(r) for r in rows or []]
        self.reads: list[str] = []
        self.updates: list[tuple[str, list[list[str]], Any]] = []
        self.fail: Exception | None = None

    def _parse(self, range_name: str) -> tuple[int, int | None, int, int]:
        match = _RANGE.match(range_name)
        assert match, f"unsupported range {range_name}"
        c1, r1, c2, r2 = match.groups()
        start_row = int(r1) if r1 else 1
        end_row = int(r2) if r2 else (int(r1) if r1 and not c2 else None)
        return start_row, end_row, _col(c1), _col(c2 or c1)

    def get(self, range_name: str) -> list[list[str]]:
        if self.fail:
            raise self.fail
        self.reads.append(range_name)
        start_row, end_row, c1, c2 = self._parse(range_name)
        selected = self.rows[start_row - 1 : end_row]
        values = []
        for row in selected:
            cells = row[c1 : c2 + 1]
            while cells and cells[-1] == "":
                cells.pop()
            values.append(cells)
        while values and not values[-1]:
            values.pop()
        return values

    def update(
        self,
        values: list[list[str]] | None = None,
        range_name: str | None = None,
        value_input_option: Any = None,
    ) -> dict[str, Any]:
        if self.fail:
            raise self.fail
        values = values or []
        self.updates.append((range_name, values, value_input_option))
        start_row, _, c1, _ = self._parse(range_name)
        for offset, new_row in enumerate(values):
            index = start_row - 1 + offset
            while len(self.rows) <= index:
                self.rows.append([])
            row = self.rows[index]
            while len(row) < c1 + len(new_row):
                row.append("")
            row[c1 : c1 + len(new_row)] = new_row
        return {
            "spreadsheetId": "sheet",
            "updatedRange": f"Sheet1!{range_name}",
            "updatedRows": len(values),
        }


def _work_payload(
    work_id: str,
    title: str = "A Paper",
    publication_date: str | None = "2026-10-15",
    **overrides: Any,
) -> dict[str, Any]:
    """Build an OpenAlex work dict with sensible defaults."""
    payload: dict[str, Any] = {
        "id": work_id,
        "doi": f"https://doi.org/10.1234/{work_id.rsplit('/', 1)[-1].lower()}",
        "title": title,
        "publication_date": publication_date,
        "publication_year": 2026,
        "type": "article",
        "cited_by_count": 3,
        "authorships": [
            {
                "author_position": "first",
                "author": {
                    "id": "https://openalex.org/A111",
                    "display_name": "Jane Doe",
                },
                "institutions": [{"display_name": "University of Washington"}],
            }
        ],
        "primary_location": {
            "source": {
                "id": "https://openalex.org/S1",
                "display_name": "Journal of Tests",
            }
        },
        "abstract_inverted_index": {"We": [0], "test": [1], "things": [2]},
    }
    payload.update(overrides)
    return payload


def _envelope(
    results: list[dict[str, Any]], count: int | None = None
) -> dict[str, Any]:
    """Wrap work dicts in an OpenAlex list response."""
    return {
        "meta": {
            "count": len(results) if count is None else count,
            "page": 1,
            "per_page": 25,
            "db_response_time_ms": 12,
        },
        "results": results,
        "group_by": [],
    }


def _backend(
    handler: Callable[[httpx.Request], httpx.Response],
    **config: Any,
) -> OpenAlexBackend:
    """Create an OpenAlexBackend whose HTTP calls go to ``handler``."""
    return OpenAlexBackend(
        OpenAlexConfig(**config), transport=httpx.MockTransport(handler)
    )


@pytest.fixture
def today() -> date:
    """Fixed 'today' for sync window computation."""
    return date(2026, 10, 19)


@pytest.fixture
def make_sheet() -> Callable[..., FakeWorksheet]:
    """Factory for in-memory worksheets preloaded with rows."""
    return FakeWorksheet


@pytest.fixture
def make_work_payload() -> Callable[..., dict[str, Any]]:
    """Factory for OpenAlex work dicts."""
    return _work_payload


@pytest.fixture
def make_envelope() -> Callable[..., dict[str, Any]]:
    """Factory for OpenAlex list responses."""
    return _envelope


@pytest.fixture
def make_backend() -> Callable[..., OpenAlexBackend]:
    """Factory for OpenAlex backends served by a mock handler."""
    return _backend


@pytest.fixture
def sample_work() -> Work:
    """Create a sample Work for testing."""
    return Work(
        id="https://openalex.org/W1234567890",
        title="Computational Approaches to Federal Rulemaking",
        doi="10.1234/example.2025",
        publication_date=date(2026, 10, 14),
        publication_year=2026,
        abstract="This paper examines computational methods...",
        citation_count=42,
        authors=[Author(name="Jane Doe"), Author(name="John Smith")],
        venue="Journal of Policy Analysis",
    )


@pytest.fixture
def worksheet() -> FakeWorksheet:
    """A sheet holding only the header row."""
    return FakeWorksheet([list(HEADERS)])


@pytest.fixture
def store(worksheet: FakeWorksheet) -> ApprovalStore:
    """ApprovalStore over the header-only fake worksheet."""
    return ApprovalStore(worksheet)


@pytest.fixture
def engine_factory(
    store: ApprovalStore, today: date
) -> Callable[[Callable[[httpx.Request], httpx.Response]], SyncEngine]:
    """Build engines sharing the fake store, with a fixed clock."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> SyncEngine:
        return SyncEngine(
            search=_backend(handler),
            store=store,
            today=lambda: today,
        )

    return _factory


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Create a temporary pubsync.yaml config file."""
    config_content = """
openalex:
  email: "lab@example.org"
  timeout: 10
  per_page: 50

sheets:
  credentials_path: "~/creds/service-account.json"
  spreadsheet_id: "1AbCdEf"
  worksheet: "Review"

sync:
  journals:
    - S137773608
    - S4210212345
"""
    config_path = tmp_path / "pubsync.yaml"
    config_path.write_text(config_content)
    return config_path
