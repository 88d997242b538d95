"""OpenAlex search backend over httpx.

Queries the ``/works`` endpoint one page at a time and converts the
JSON payload into Work models.
"""

import logging
from datetime import date
from typing import Any

import httpx
from pydantic import BaseModel, Field, ValidationError

from pubsync.config import OpenAlexConfig
from pubsync.errors import (
    DeserializationError,
    InvalidInput,
    UpstreamResponseError,
    UpstreamUnavailable,
)
from pubsync.models import Author, SearchPage, Work
from pubsync.normalize import normalize_doi, short_openalex_id

logger = logging.getLogger(__name__)


class _Meta(BaseModel):
    count: int
    page: int | None = None
    per_page: int | None = None


class _Envelope(BaseModel):
    meta: _Meta
    results: list[dict[str, Any]] = Field(default_factory=list)


def build_filter(filters: dict[str, str]) -> str | None:
    """Render a mapping as an OpenAlex filter expression.

    Args:
        filters: Filter names to values, in the order they should appear.

    Returns:
        Comma-joined ``key:value`` pairs, or None for an empty mapping.
    """
    if not filters:
        return None
    return ",".join(f"{key}:{value}" for key, value in filters.items())


def journal_filter(journal_id: str, since: date) -> str:
    """Filter expression for works from one source published since a date."""
    return build_filter(
        {
            "primary_location.source.id": journal_id,
            "from_publication_date": since.isoformat(),
        }
    )


def _reconstruct_abstract(inverted_index: dict[str, list[int]]) -> str:
    """Reconstruct abstract text from an OpenAlex inverted index.

    Args:
        inverted_index: Mapping of word -> list of positions.

    Returns:
        Reconstructed abstract string.
    """
    if not inverted_index:
        return ""
    word_positions: list[tuple[int, str]] = []
    for word, positions in inverted_index.items():
        for pos in positions:
            word_positions.append((pos, word))
    word_positions.sort(key=lambda x: x[0])
    return " ".join(word for _, word in word_positions)


def _parse_authors(authorships: list[dict[str, Any]]) -> list[Author]:
    authors = []
    for authorship in authorships:
        author_data = authorship.get("author") or {}
        institutions = authorship.get("institutions") or []
        affiliation = (
            institutions[0].get("display_name") if institutions else None
        )
        authors.append(
            Author(
                name=author_data.get("display_name") or "Unknown",
                openalex_id=author_data.get("id"),
                orcid=author_data.get("orcid"),
                affiliation=affiliation,
                position=authorship.get("author_position"),
            )
        )
    return authors


def _openalex_work_to_model(work: dict[str, Any]) -> Work:
    """Convert an OpenAlex work dict to a Work model.

    Args:
        work: Raw OpenAlex work dictionary.

    Returns:
        Populated Work instance.

    Raises:
        DeserializationError: If the dict lacks an ID or has fields of
            the wrong type.
    """
    if not isinstance(work, dict):
        raise DeserializationError(
            f"Expected a work object, got {type(work).__name__}"
        )
    work_id = work.get("id")
    if not work_id:
        raise DeserializationError("Work record has no 'id' field")

    try:
        pub_date = None
        if work.get("publication_date"):
            try:
                pub_date = date.fromisoformat(work["publication_date"])
            except ValueError:
                logger.debug(
                    "Unparseable publication_date %r on %s",
                    work["publication_date"],
                    work_id,
                )

        # Reconstruct abstract from inverted index
        abstract = None
        abstract_index = work.get("abstract_inverted_index")
        if abstract_index:
            abstract = _reconstruct_abstract(abstract_index)
        elif work.get("abstract"):
            abstract = work["abstract"]

        primary_location = work.get("primary_location") or {}
        source = primary_location.get("source") or {}

        return Work(
            id=work_id,
            title=work.get("title") or work.get("display_name") or "Untitled",
            doi=normalize_doi(work.get("doi")),
            publication_date=pub_date,
            publication_year=work.get("publication_year"),
            abstract=abstract,
            citation_count=work.get("cited_by_count") or 0,
            authors=_parse_authors(work.get("authorships") or []),
            venue=source.get("display_name"),
            venue_id=source.get("id"),
            work_type=work.get("type"),
        )
    except (ValidationError, AttributeError, TypeError) as exc:
        raise DeserializationError(
            f"Work {work_id} does not match the expected schema: {exc}"
        ) from exc


class OpenAlexBackend:
    """OpenAlex search backend with one long-lived HTTP client."""

    def __init__(
        self,
        config: OpenAlexConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the OpenAlex backend.

        Args:
            config: Base URL, contact email, timeout and retry settings.
            transport: Optional httpx transport, mainly for tests.
        """
        self.config = config or OpenAlexConfig()
        if transport is None:
            transport = httpx.AsyncHTTPTransport(retries=self.config.retries)
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url.rstrip("/"),
            timeout=self.config.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "OpenAlexBackend":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _get_json(
        self, path: str, params: dict[str, str] | None = None
    ) -> Any:
        """Issue a GET and decode the JSON body.

        Args:
            path: Path relative to the base URL.
            params: Query parameters.

        Returns:
            Decoded JSON payload.

        Raises:
            UpstreamUnavailable: If the request fails or the body cannot be decoded.
            UpstreamResponseError: On non-2xx status or non-JSON body.
        """
        params = dict(params or {})
        if self.config.email:
            params["mailto"] = self.config.email

        try:
            response = await self._client.get(path, params=params)
        except httpx.RequestError as exc:
            raise UpstreamUnavailable(
                f"OpenAlex request to {path} failed: {exc}"
            ) from exc

        if not response.is_success:
            raise UpstreamResponseError(
                f"OpenAlex returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamResponseError(
                f"OpenAlex returned a non-JSON body for {path}",
                status_code=response.status_code,
            ) from exc

    def _parse_page(self, payload: Any) -> SearchPage:
        try:
            envelope = _Envelope.model_validate(payload)
        except ValidationError as exc:
            raise DeserializationError(
                f"Unexpected OpenAlex response envelope: {exc}"
            ) from exc
        return SearchPage(
            results=[_openalex_work_to_model(w) for w in envelope.results],
            total_count=envelope.meta.count,
            page=envelope.meta.page or 1,
            per_page=envelope.meta.per_page or len(envelope.results),
        )

    async def search(
        self,
        query: str,
        filter: str | None = None,
        page: int = 1,
        per_page: int = 25,
    ) -> SearchPage:
        """Search OpenAlex works and return a single page.

        Args:
            query: Free-text query; omitted from the request when empty.
            filter: OpenAlex filter expression, or None.
            page: 1-based page number.
            per_page: Page size.

        Returns:
            SearchPage for the requested page.
        """
        if page < 1 or per_page < 1:
            raise InvalidInput(
                f"page and per_page must be >= 1 (got {page}, {per_page})"
            )

        params: dict[str, str] = {}
        if query:
            params["search"] = query
        if filter is not None:
            params["filter"] = filter
        params["page"] = str(page)
        params["per-page"] = str(per_page)

        logger.debug(
            "Searching OpenAlex works: query=%r filter=%s page=%d per_page=%d",
            query,
            filter,
            page,
            per_page,
        )
        result = self._parse_page(await self._get_json("/works", params))
        logger.info(
            "OpenAlex returned %d of %d works (filter=%s)",
            len(result.results),
            result.total_count,
            filter,
        )
        return result

    async def get_work(self, work_id: str) -> Work:
        """Fetch one work by OpenAlex ID.

        Args:
            work_id: Full ``https://openalex.org/W...`` URL or bare key.

        Returns:
            The Work.
        """
        key = short_openalex_id(work_id)
        if not key:
            raise InvalidInput("Work ID must not be empty")
        logger.debug("Fetching OpenAlex work %s", key)
        return _openalex_work_to_model(
            await self._get_json(f"/works/{key}")
        )

    async def works_by_author(
        self, author_id: str, page: int = 1, per_page: int = 25
    ) -> SearchPage:
        """List works by one OpenAlex author.

        Args:
            author_id: OpenAlex author ID.
            page: 1-based page number.
            per_page: Page size.

        Returns:
            SearchPage of the author's works.
        """
        return await self.search(
            "",
            filter=build_filter({"author.id": short_openalex_id(author_id)}),
            page=page,
            per_page=per_page,
        )
