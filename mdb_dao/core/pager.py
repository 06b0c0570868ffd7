"""
Cursor state for paginated scans.
"""

from dataclasses import dataclass

from ..constants import MAX_ITEMS_PER_PAGE


@dataclass
class Pager:
    """
    Caller-owned cursor for ``MongoDBDAO.read_page``.

    Pass the same pager to consecutive calls to walk a namespace page by
    page. ``read_page`` advances ``last_key`` and ``count``; nothing else is
    touched and the DAO keeps no copy.

    Attributes:
        page: Current page number (informational)
        limit: Maximum records per page
        count: Running total of records returned so far
        last_key: Pagination key of the last record returned, None to start
            from the beginning
        sortby: Sort field requested by the caller (not applied by the scan)
        desc: Sort direction requested by the caller (not applied by the scan)
    """

    page: int = 1
    limit: int = MAX_ITEMS_PER_PAGE
    count: int = 0
    last_key: str | None = None
    sortby: str | None = None
    desc: bool = True
