"""Shared identifier normalization utilities for pubsync."""

import re

_OPENALEX_PREFIX = re.compile(r"^https?://openalex\.org/", re.IGNORECASE)


def normalize_doi(doi: str | None) -> str | None:
    """Normalize a DOI to lowercase without URL prefix.

    Args:
        doi: Raw DOI string, possibly with URL prefix.

    Returns:
        Normalized DOI or None.
    """
    if doi is None:
        return None
    doi = doi.lower().strip()
    doi = re.sub(r"^https?://(dx\.)?doi\.org/", "", doi)
    return doi or None


def short_openalex_id(openalex_id: str) -> str:
    """Strip the ``https://openalex.org/`` prefix from an OpenAlex ID.

    Args:
        openalex_id: Full URL or bare key (e.g. ``W2741809807``).

    Returns:
        The bare key.
    """
    return _OPENALEX_PREFIX.sub("", openalex_id.strip())
