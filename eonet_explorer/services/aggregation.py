"""Merging of per-category feeds into one ordered, duplicate-free event list."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..config import DEFAULT_STATUS, DEFAULT_WINDOW_DAYS, SUPPORTED_CATEGORIES
from ..models import CLOSED, OPEN, CategoryRef, Event, GeometryRecord, MapPoint, SourceRef
from ..utils.geo import extract_point
from .feeds import FeedResult, feed_records, fetch_events

logger = logging.getLogger(__name__)

Fetcher = Callable[[Sequence[str], str, int], List[FeedResult]]


# ---------------------------------------------------------------------------
# Record parsing
# ---------------------------------------------------------------------------

def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _geometry(raw: Any) -> Optional[GeometryRecord]:
    if not isinstance(raw, dict):
        return None
    return GeometryRecord(
        type=_text(raw.get("type")) or "",
        coordinates=raw.get("coordinates"),
        date=_text(raw.get("date")),
        magnitude_value=_number(raw.get("magnitudeValue")),
        magnitude_unit=_text(raw.get("magnitudeUnit")),
    )


def record_id(record: Any) -> Optional[str]:
    """Return the event id of a raw record, or ``None`` when it has none."""
    if not isinstance(record, dict):
        return None
    props = record.get("properties")
    event_id = props.get("id") if isinstance(props, dict) else record.get("id")
    if event_id is None or event_id == "":
        return None
    return str(event_id)


def parse_event(record: Any) -> Optional[Event]:
    """Build an :class:`Event` from a GeoJSON feature or a plain catalog event.

    Returns ``None`` for malformed records (no id).
    """
    event_id = record_id(record)
    if event_id is None:
        return None

    props = record.get("properties")
    if isinstance(props, dict):
        # GeoJSON feature: one geometry per feature, date/magnitude in properties
        geometry_raw = record.get("geometry")
        if isinstance(geometry_raw, dict):
            geometry_raw = {
                "date": props.get("date"),
                "magnitudeValue": props.get("magnitudeValue"),
                "magnitudeUnit": props.get("magnitudeUnit"),
                **geometry_raw,
            }
        geometries: Iterable[Any] = [geometry_raw]
        fields = props
    else:
        geometries = record.get("geometry") or []
        if isinstance(geometries, dict):
            geometries = [geometries]
        fields = record

    categories = tuple(
        CategoryRef(id=_text(c.get("id")) or "", title=_text(c.get("title")) or "")
        for c in fields.get("categories") or []
        if isinstance(c, dict)
    )
    sources = tuple(
        SourceRef(id=_text(s.get("id")) or "", url=_text(s.get("url")))
        for s in fields.get("sources") or []
        if isinstance(s, dict)
    )
    geometry = tuple(g for g in (_geometry(raw) for raw in geometries) if g is not None)

    return Event(
        id=event_id,
        title=_text(fields.get("title")) or "",
        description=_text(fields.get("description")),
        status=CLOSED if fields.get("closed") else OPEN,
        link=_text(fields.get("link")),
        categories=categories,
        sources=sources,
        geometry=geometry,
    )


# ---------------------------------------------------------------------------
# Pure pipeline steps
# ---------------------------------------------------------------------------

def aggregate_feeds(feeds: Sequence[Any]) -> List[Event]:
    """Merge *feeds* keeping the first occurrence of every event id.

    Feeds are walked in request order and records in received order, so the
    result is stable for identical inputs. Records without an id are dropped.
    """
    seen: set[str] = set()
    events: List[Event] = []
    malformed = 0
    duplicates = 0

    for feed in feeds:
        for record in feed_records(feed):
            event_id = record_id(record)
            if event_id is None:
                malformed += 1
                continue
            if event_id in seen:
                duplicates += 1
                continue
            seen.add(event_id)
            event = parse_event(record)
            if event is not None:
                events.append(event)

    if malformed:
        logger.debug("Dropped %d records without an id", malformed)
    logger.info(
        "Aggregated %d unique events from %d feeds (%d duplicates discarded)",
        len(events),
        len(feeds),
        duplicates,
    )
    return events


def filter_events(events: Sequence[Event], query: Optional[str]) -> List[Event]:
    """Case-insensitive substring match of *query* against event titles."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(events)
    return [e for e in events if needle in (e.title or "").lower()]


def build_map_points(events: Iterable[Event]) -> List[MapPoint]:
    """One :class:`MapPoint` per event with a ``Point`` geometry, in event order."""
    points: List[MapPoint] = []
    for event in events:
        coords = extract_point(event.geometry)
        if coords is None:
            continue
        points.append(MapPoint(id=event.id, title=event.title, lat=coords.lat, lon=coords.lon))
    return points


# ---------------------------------------------------------------------------
# Stateful aggregator
# ---------------------------------------------------------------------------

class EventAggregator:
    """Holds the working set produced by the last successful fetch cycle."""

    def __init__(self, fetcher: Optional[Fetcher] = None) -> None:
        self._fetcher: Fetcher = fetcher if fetcher is not None else fetch_events
        self._events: List[Event] = []
        self._index: Dict[str, Event] = {}

    @property
    def events(self) -> List[Event]:
        return list(self._events)

    def get(self, event_id: Optional[str]) -> Optional[Event]:
        if event_id is None:
            return None
        return self._index.get(event_id)

    def __contains__(self, event_id: object) -> bool:
        return event_id in self._index

    def __len__(self) -> int:
        return len(self._events)

    def refresh(
        self,
        categories: Sequence[str] = SUPPORTED_CATEGORIES,
        status: str = DEFAULT_STATUS,
        window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> List[Event]:
        """Fetch and merge the requested feeds, replacing the working set.

        On failure the working set is emptied and the error propagates, so an
        incomplete merge is never exposed.
        """
        try:
            feeds = self._fetcher(list(categories), status, window_days)
        except Exception:
            self.replace([])
            raise
        return self.replace(aggregate_feeds(feeds))

    def replace(self, events: Sequence[Event]) -> List[Event]:
        self._events = list(events)
        self._index = {e.id: e for e in self._events}
        return self.events

    def filtered(self, query: Optional[str]) -> List[Event]:
        return filter_events(self._events, query)


__all__ = [
    "record_id",
    "parse_event",
    "aggregate_feeds",
    "filter_events",
    "build_map_points",
    "EventAggregator",
]
