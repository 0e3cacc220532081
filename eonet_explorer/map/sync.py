"""Keeps a map's marker layer in step with the current set of map points.

:class:`MapSyncEngine` is the only owner of marker state. It reacts to three
inputs and nothing else:

* a new point set (full rebuild, only when the content key changed),
* the first sighting of a content key (viewport fit),
* a new selected id (restyle at most two markers, fly to the new one).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Protocol, Sequence

from ..models import MapPoint

logger = logging.getLogger(__name__)

FIT_PADDING: tuple[int, int] = (20, 20)
MIN_SELECTION_ZOOM: int = 5
KEY_PRECISION: int = 5


@dataclass(frozen=True)
class MarkerStyle:
    radius: float
    color: str
    weight: int
    fill_color: str
    fill_opacity: float


NORMAL_STYLE = MarkerStyle(radius=6, color="#0f172a", weight=2, fill_color="#38bdf8", fill_opacity=0.85)
SELECTED_STYLE = MarkerStyle(radius=10, color="#ffffff", weight=3, fill_color="#f59e0b", fill_opacity=0.95)


class MarkerVisualState(Enum):
    NORMAL = "normal"
    SELECTED = "selected"


STYLES: Dict[MarkerVisualState, MarkerStyle] = {
    MarkerVisualState.NORMAL: NORMAL_STYLE,
    MarkerVisualState.SELECTED: SELECTED_STYLE,
}


@dataclass(frozen=True)
class Bounds:
    south: float
    west: float
    north: float
    east: float

    @classmethod
    def around(cls, points: Sequence[MapPoint]) -> "Bounds":
        lats = [p.lat for p in points]
        lons = [p.lon for p in points]
        return cls(south=min(lats), west=min(lons), north=max(lats), east=max(lons))


class Marker:
    """Visual representation of one :class:`MapPoint`.

    Created and mutated by :class:`MapSyncEngine` only; surfaces read it.
    """

    __slots__ = ("point", "state", "tooltip_open", "z_order", "_on_click")

    def __init__(self, point: MapPoint, on_click: Callable[[], None]) -> None:
        self.point = point
        self.state = MarkerVisualState.NORMAL
        self.tooltip_open = False
        self.z_order = 0
        self._on_click = on_click

    @property
    def id(self) -> str:
        return self.point.id

    @property
    def style(self) -> MarkerStyle:
        return STYLES[self.state]

    def click(self) -> None:
        """Called by the surface when the user clicks the marker."""
        self._on_click()


class MapSurface(Protocol):
    """What the engine needs from a concrete map widget."""

    @property
    def zoom(self) -> float: ...

    def clear_markers(self) -> None: ...

    def add_marker(self, marker: Marker) -> None: ...

    def update_marker(self, marker: Marker) -> None: ...

    def fit_bounds(self, bounds: Bounds, padding: tuple[int, int]) -> None: ...

    def fly_to(self, lat: float, lon: float, zoom: float) -> None: ...

    def remove(self) -> None: ...


def points_key(points: Sequence[MapPoint]) -> str:
    """Stable identity of a point set: ids plus coordinates rounded to 5 places."""
    return "|".join(
        f"{p.id}:{p.lat:.{KEY_PRECISION}f},{p.lon:.{KEY_PRECISION}f}" for p in points
    )


class MapSyncEngine:
    """Owns the marker layer of one :class:`MapSurface`."""

    def __init__(
        self,
        surface: Optional[MapSurface] = None,
        on_select: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._surface: Optional[MapSurface] = surface
        self.on_select: Callable[[str], None] = on_select or (lambda _id: None)
        self._markers: Dict[str, Marker] = {}
        self._content_key: Optional[str] = None
        self._last_fit_key: str = ""
        self._last_selected: Optional[str] = None
        self._z_counter = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def markers(self) -> Mapping[str, Marker]:
        return MappingProxyType(self._markers)

    @property
    def last_fit_key(self) -> str:
        return self._last_fit_key

    @property
    def selected_id(self) -> Optional[str]:
        return self._last_selected

    @property
    def mounted(self) -> bool:
        return self._surface is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def attach(self, surface: MapSurface) -> None:
        """Mount on *surface*, tearing down any previous one first."""
        if self._surface is not None:
            self.teardown()
        self._surface = surface

    def teardown(self) -> None:
        """Release the surface and forget every marker, selection and fit."""
        if self._surface is not None:
            self._surface.remove()
        self._surface = None
        self._markers.clear()
        self._content_key = None
        self._last_fit_key = ""
        self._last_selected = None
        self._z_counter = 0

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------
    def render(self, points: Sequence[MapPoint], selected_id: Optional[str]) -> None:
        """Run one render cycle: content sync first, then selection sync."""
        self.sync_points(points)
        self.sync_selection(selected_id)

    def sync_points(self, points: Sequence[MapPoint]) -> bool:
        """Rebuild markers if the content key changed. Returns whether it did."""
        surface = self._surface
        if surface is None:
            return False

        key = points_key(points)
        if key == self._content_key:
            return False

        surface.clear_markers()
        self._markers.clear()
        self._z_counter = 0
        for point in points:
            marker = Marker(point, self._click_handler(point.id))
            self._markers[point.id] = marker
            surface.add_marker(marker)
        self._content_key = key
        logger.debug("Rebuilt %d markers", len(self._markers))

        # Rebuilt markers start Normal; carry an existing highlight over.
        if self._last_selected is not None:
            marker = self._markers.get(self._last_selected)
            if marker is not None:
                self._promote(marker)
                surface.update_marker(marker)

        if points and self._last_fit_key != key:
            self._last_fit_key = key
            surface.fit_bounds(Bounds.around(points), FIT_PADDING)
            logger.debug("Fitted viewport to %d points", len(points))
        return True

    def sync_selection(self, selected_id: Optional[str]) -> None:
        """Move the highlight from the previous selection to *selected_id*."""
        surface = self._surface
        if surface is None or selected_id == self._last_selected:
            return

        prev_id = self._last_selected
        if prev_id is not None:
            prev = self._markers.get(prev_id)
            if prev is not None:
                prev.state = MarkerVisualState.NORMAL
                prev.tooltip_open = False
                surface.update_marker(prev)

        if selected_id is not None:
            current = self._markers.get(selected_id)
            if current is not None:
                self._promote(current)
                surface.update_marker(current)
                surface.fly_to(
                    current.point.lat,
                    current.point.lon,
                    max(surface.zoom, MIN_SELECTION_ZOOM),
                )

        self._last_selected = selected_id

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _click_handler(self, event_id: str) -> Callable[[], None]:
        # Looks up on_select at click time so the callback can be swapped.
        return lambda: self.on_select(event_id)

    def _promote(self, marker: Marker) -> None:
        self._z_counter += 1
        marker.state = MarkerVisualState.SELECTED
        marker.tooltip_open = True
        marker.z_order = self._z_counter


__all__ = [
    "MarkerStyle",
    "NORMAL_STYLE",
    "SELECTED_STYLE",
    "MarkerVisualState",
    "Bounds",
    "Marker",
    "MapSurface",
    "points_key",
    "MapSyncEngine",
]
