"""Deduplication of candidate works against the approval index."""

from collections.abc import Iterable, Set

from pubsync.models import Work


def filter_unapproved(
    candidates: Iterable[Work], approved_ids: Set[str]
) -> list[Work]:
    """Drop candidates whose ID is already approved.

    Only the Approved status is consulted; works sitting in the sheet as
    Pending or Rejected are kept and may be appended again.

    Args:
        candidates: Works returned by the search service.
        approved_ids: IDs currently marked Approved in the store.

    Returns:
        Remaining works, in input order.
    """
    return [work for work in candidates if work.id not in approved_ids]
