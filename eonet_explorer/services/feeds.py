"""EONET catalog access: category feeds, category listing and event detail."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import requests

from ..clients.eonet_client import get_session
from ..config import (
    DEFAULT_STATUS,
    DEFAULT_WINDOW_DAYS,
    EONET_API_URL,
    EONET_TIMEOUT_SECONDS,
    MAX_WINDOW_DAYS,
    MIN_WINDOW_DAYS,
    VALID_STATUSES,
)
from ..exceptions import AggregationError, FeedError

logger = logging.getLogger(__name__)

FeedResult = Dict[str, Any]


# ---------------------------------------------------------------------------
# Query normalisation
# ---------------------------------------------------------------------------

def normalize_status(status: Optional[str]) -> str:
    """Lower-case *status*, falling back to ``open`` when unknown."""
    value = (status or DEFAULT_STATUS).strip().lower()
    return value if value in VALID_STATUSES else DEFAULT_STATUS


def clamp_window_days(days: Any) -> int:
    """Truncate *days* to an int within ``[MIN_WINDOW_DAYS, MAX_WINDOW_DAYS]``."""
    if days is None:
        return DEFAULT_WINDOW_DAYS
    try:
        value = float(days)
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_WINDOW_DAYS
    if value != value or value in (float("inf"), float("-inf")):
        return DEFAULT_WINDOW_DAYS
    return min(max(int(value), MIN_WINDOW_DAYS), MAX_WINDOW_DAYS)


def parse_categories(categories: Union[str, Iterable[str], None]) -> List[str]:
    """Accept a CSV string or an iterable of ids; drop blanks, keep order."""
    if not categories:
        return []
    if isinstance(categories, str):
        categories = categories.split(",")
    return [c.strip() for c in categories if c and c.strip()]


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------

def _get_json(path: str, params: Optional[Dict[str, Any]] = None, category: str | None = None) -> Any:
    url = f"{EONET_API_URL.rstrip('/')}/{path.lstrip('/')}"
    try:
        response = get_session().get(url, params=params, timeout=EONET_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        logger.error("EONET request to %s failed: %s", url, exc)
        raise FeedError(f"EONET request failed: {exc}", category=category) from exc

    if response.status_code != 200:
        logger.error("Error from EONET API: %s - %s", response.status_code, response.text)
        raise FeedError(f"EONET API error: {response.status_code}", category=category)

    try:
        return response.json()
    except ValueError as exc:
        logger.error("EONET returned a non-JSON body for %s", url)
        raise FeedError("EONET returned a non-JSON body", category=category) from exc


def feed_records(feed: Any) -> List[Any]:
    """Return the raw records of one feed (GeoJSON ``features`` or ``events``)."""
    if not isinstance(feed, dict):
        return []
    records = feed.get("features")
    if records is None:
        records = feed.get("events")
    return list(records) if isinstance(records, list) else []


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def fetch_feed(category: Optional[str], status: str, window_days: int) -> FeedResult:
    """Fetch one category-scoped GeoJSON feed (unscoped when *category* is None)."""
    params: Dict[str, Any] = {"status": status, "days": window_days}
    if category:
        params["category"] = category

    logger.info("Fetching EONET feed category=%s status=%s days=%d", category or "*", status, window_days)
    feed = _get_json("events/geojson", params=params, category=category)
    logger.info("Feed %s returned %d records", category or "*", len(feed_records(feed)))
    return feed


def fetch_events(
    categories: Union[str, Sequence[str], None],
    status: Optional[str] = DEFAULT_STATUS,
    window_days: Any = DEFAULT_WINDOW_DAYS,
) -> List[FeedResult]:
    """Fetch one feed per requested category, in request order.

    Multiple categories are fetched concurrently and joined before returning.
    If any feed fails the whole call fails with :class:`AggregationError`.
    """
    cats = parse_categories(categories)
    status = normalize_status(status)
    days = clamp_window_days(window_days)

    if len(cats) <= 1:
        return [fetch_feed(cats[0] if cats else None, status, days)]

    with ThreadPoolExecutor(max_workers=len(cats)) as pool:
        futures = [pool.submit(fetch_feed, cat, status, days) for cat in cats]

    results: List[FeedResult] = []
    failures: List[Tuple[str, BaseException]] = []
    for cat, future in zip(cats, futures):
        exc = future.exception()
        if exc is not None:
            failures.append((cat, exc))
            continue
        results.append(future.result())

    if failures:
        failed = ", ".join(cat for cat, _ in failures)
        logger.error("Aggregation aborted, %d of %d feeds failed: %s", len(failures), len(cats), failed)
        raise AggregationError(f"EONET feeds failed: {failed}", category=failures[0][0]) from failures[0][1]

    return results


def fetch_categories() -> List[Dict[str, Any]]:
    """Return the EONET category catalog."""
    data = _get_json("categories")
    categories = data.get("categories", []) if isinstance(data, dict) else []
    logger.info("Found %d EONET categories", len(categories))
    return categories


def fetch_event_detail(event_id: str) -> Dict[str, Any]:
    """Return the full catalog record of a single event."""
    return _get_json(f"events/{event_id}")


__all__ = [
    "FeedResult",
    "normalize_status",
    "clamp_window_days",
    "parse_categories",
    "feed_records",
    "fetch_feed",
    "fetch_events",
    "fetch_categories",
    "fetch_event_detail",
]
