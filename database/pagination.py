"""
Windowed fetching for PostgREST queries.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from config.settings import FETCH_WINDOW

logger = logging.getLogger(__name__)

def fetch_all(
    build_query: Callable[[], Any],
    window: Optional[int] = None
) -> List[Dict[str, Any]]:
    """
    Fetch every row of a query, one range window at a time.

    PostgREST truncates responses to its max-rows setting, so a single
    select can silently drop matches. This keeps requesting consecutive
    ranges until a page comes back shorter than the window.

    Windows are offset based, so the query must have a total order
    (e.g. ordered by primary key). Without one Postgres may return rows in
    a different order per request and rows get skipped or repeated.

    Args:
        build_query: Zero-argument callable returning a fresh filter builder
            (everything up to, but not including, range/execute);
            must be totally ordered
        window: Rows per request (default: FETCH_WINDOW)

    Returns:
        All rows in request order
    """
    if window is None:
        window = FETCH_WINDOW
    if window <= 0:
        raise ValueError(f"window must be positive, got {window}")

    rows: List[Dict[str, Any]] = []
    start = 0
    while True:
        result = build_query().range(start, start + window - 1).execute()
        page = result.data or []
        rows.extend(page)
        logger.debug("Fetched rows %d-%d (%d returned)", start, start + window - 1, len(page))
        if len(page) < window:
            break
        start += window

    return rows
