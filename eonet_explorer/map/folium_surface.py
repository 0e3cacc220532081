"""In-memory :class:`MapSurface` that renders to a :class:`folium.Map`."""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Tuple

import folium

from .sync import Bounds, Marker

logger = logging.getLogger(__name__)

TILES: str = "OpenStreetMap"
MAX_ZOOM: int = 18
MIN_ZOOM: int = 1


def zoom_for_bounds(bounds: Bounds) -> int:
    """Approximate the zoom level at which *bounds* fills a world-sized view."""
    lat_span = abs(bounds.north - bounds.south) * 2
    lon_span = abs(bounds.east - bounds.west)
    span = max(lat_span, lon_span)
    if span <= 0:
        return MAX_ZOOM
    return int(min(max(math.floor(math.log2(360.0 / span)), MIN_ZOOM), MAX_ZOOM))


class FoliumSurface:
    """Records marker and viewport state; :meth:`to_folium` draws it."""

    def __init__(self, center: Tuple[float, float] = (0.0, 0.0), zoom: float = 2) -> None:
        self.center: Tuple[float, float] = center
        self._zoom: float = zoom
        self._markers: Dict[str, Marker] = {}
        self._bounds: Optional[Bounds] = None
        self._padding: Tuple[int, int] = (0, 0)
        self.removed: bool = False

    # MapSurface -----------------------------------------------------------
    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def bounds(self) -> Optional[Bounds]:
        return self._bounds

    def clear_markers(self) -> None:
        self._markers.clear()

    def add_marker(self, marker: Marker) -> None:
        self._markers[marker.id] = marker

    def update_marker(self, marker: Marker) -> None:
        # Markers are shared objects; only make sure it is still on the layer.
        if marker.id not in self._markers:
            logger.warning("Restyle requested for unknown marker %s", marker.id)

    def fit_bounds(self, bounds: Bounds, padding: Tuple[int, int]) -> None:
        self._bounds = bounds
        self._padding = padding
        self.center = ((bounds.south + bounds.north) / 2, (bounds.west + bounds.east) / 2)
        self._zoom = zoom_for_bounds(bounds)

    def fly_to(self, lat: float, lon: float, zoom: float) -> None:
        self._bounds = None
        self.center = (lat, lon)
        self._zoom = zoom

    def remove(self) -> None:
        self._markers.clear()
        self._bounds = None
        self.removed = True

    # Interaction ----------------------------------------------------------
    def dispatch_click(self, event_id: str) -> bool:
        """Forward a click reported by the rendered page to the marker."""
        marker = self._markers.get(event_id)
        if marker is None:
            return False
        marker.click()
        return True

    @property
    def markers(self) -> List[Marker]:
        """Markers in paint order; the most recently raised one is last."""
        return sorted(self._markers.values(), key=lambda m: m.z_order)

    # Rendering ------------------------------------------------------------
    def to_folium(self) -> folium.Map:
        m = folium.Map(
            location=list(self.center),
            zoom_start=int(round(self._zoom)),
            tiles=TILES,
            zoom_control=True,
        )

        for marker in self.markers:
            style = marker.style
            circle = folium.CircleMarker(
                location=[marker.point.lat, marker.point.lon],
                radius=style.radius,
                color=style.color,
                weight=style.weight,
                fill=True,
                fill_color=style.fill_color,
                fill_opacity=style.fill_opacity,
                tooltip=folium.Tooltip(
                    marker.point.title,
                    direction="top",
                    opacity=0.95,
                    permanent=marker.tooltip_open,
                ),
            )
            circle.options.update({"eventId": marker.id, "visualState": marker.state.value})
            circle.add_to(m)

        if self._bounds is not None:
            b = self._bounds
            m.fit_bounds([[b.south, b.west], [b.north, b.east]], padding=self._padding)
        return m

    def save(self, path: str) -> None:
        self.to_folium().save(path)
        logger.info("Saved map with %d markers to %s", len(self._markers), path)


__all__ = ["FoliumSurface", "zoom_for_bounds"]
