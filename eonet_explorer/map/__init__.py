"""Map synchronisation engine and its folium-backed surface."""

from .sync import (  # noqa: F401
    NORMAL_STYLE,
    SELECTED_STYLE,
    Bounds,
    MapSurface,
    MapSyncEngine,
    Marker,
    MarkerStyle,
    MarkerVisualState,
    points_key,
)
from .folium_surface import FoliumSurface, zoom_for_bounds  # noqa: F401

__all__ = [
    "NORMAL_STYLE",
    "SELECTED_STYLE",
    "Bounds",
    "MapSurface",
    "MapSyncEngine",
    "Marker",
    "MarkerStyle",
    "MarkerVisualState",
    "points_key",
    "FoliumSurface",
    "zoom_for_bounds",
]
