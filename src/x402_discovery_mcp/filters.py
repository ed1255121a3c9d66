"""
Catalog filtering and pagination for search_resources.
"""

from typing import List, Optional, Sequence, Tuple

from .models import DiscoveryResource, PaginationState


def filter_by_domain(items: Sequence[DiscoveryResource], pattern: str) -> List[DiscoveryResource]:
    """
    Restrict the catalog to the deployment's sub-domain of interest.

    Keeps resources whose URL contains ``pattern`` (case-insensitive).
    An empty pattern keeps everything.
    """
    if not pattern:
        return list(items)
    pattern = pattern.lower()
    return [item for item in items if pattern in item.resource.lower()]


def filter_by_query(items: Sequence[DiscoveryResource], query: Optional[str]) -> List[DiscoveryResource]:
    """Case-insensitive substring match of ``query`` against resource URLs, order preserved."""
    if not query:
        return list(items)
    query = query.lower()
    return [item for item in items if query in item.resource.lower()]


def paginate(
    items: Sequence[DiscoveryResource],
    limit: Optional[int] = None,
    offset: Optional[int] = None
) -> Tuple[List[DiscoveryResource], PaginationState]:
    """
    Slice one page out of the filtered items.

    offset defaults to 0 and is clamped to [0, total]. A missing or negative
    limit means "no limit". The returned state echoes limit/offset as
    supplied and always reports the pre-page total.
    """
    total = len(items)

    start = 0
    if offset is not None and offset > 0:
        start = min(offset, total)

    end = total
    if limit is not None and limit >= 0:
        end = min(start + limit, total)

    return list(items[start:end]), PaginationState(limit=limit, offset=offset, total=total)
