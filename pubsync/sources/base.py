"""Base protocol for search backends."""

from typing import Protocol

from pubsync.models import SearchPage, Work


class SearchBackend(Protocol):
    """Protocol that the sync engine expects from a search backend."""

    async def search(
        self,
        query: str,
        filter: str | None = None,
        page: int = 1,
        per_page: int = 25,
    ) -> SearchPage:
        """Run one filtered search and return a single page.

        Args:
            query: Free-text query; empty means no text restriction.
            filter: Upstream filter expression, or None for no filter.
            page: 1-based page number.
            per_page: Page size.

        Returns:
            SearchPage with the works on this page and the total count.
        """
        ...

    async def get_work(self, work_id: str) -> Work:
        """Fetch a single work by its identifier.

        Args:
            work_id: Source-specific work identifier.

        Returns:
            The resolved Work.
        """
        ...

    async def works_by_author(
        self, author_id: str, page: int = 1, per_page: int = 25
    ) -> SearchPage:
        """List one page of works by an author.

        Args:
            author_id: Source-specific author identifier.
            page: 1-based page number.
            per_page: Page size.

        Returns:
            SearchPage of the author's works.
        """
        ...
