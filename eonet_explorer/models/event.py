"""Definition of the catalog `Event` and the records derived from it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

OPEN: str = "open"
CLOSED: str = "closed"


@dataclass(slots=True, frozen=True)
class CategoryRef:
    id: str = ""
    title: str = ""


@dataclass(slots=True, frozen=True)
class SourceRef:
    id: str = ""
    url: Optional[str] = None


@dataclass(slots=True, frozen=True)
class GeometryRecord:
    """One dated geometry of an event. Only ``Point`` records are renderable."""

    type: str = ""
    coordinates: Any = None
    date: Optional[str] = None
    magnitude_value: Optional[float] = None
    magnitude_unit: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Event:
    """A natural event as ingested for one fetch cycle.

    Events are replaced wholesale on re-fetch and never patched in place.
    """

    id: str
    title: str = ""
    description: Optional[str] = None
    status: str = OPEN
    link: Optional[str] = None
    categories: Tuple[CategoryRef, ...] = field(default_factory=tuple)
    sources: Tuple[SourceRef, ...] = field(default_factory=tuple)
    geometry: Tuple[GeometryRecord, ...] = field(default_factory=tuple)

    @property
    def is_closed(self) -> bool:
        return self.status == CLOSED


@dataclass(slots=True, frozen=True)
class MapPoint:
    """Renderable position of an event (``id`` is the event id)."""

    id: str
    title: str
    lat: float
    lon: float


__all__ = [
    "OPEN",
    "CLOSED",
    "CategoryRef",
    "SourceRef",
    "GeometryRecord",
    "Event",
    "MapPoint",
]
