"""Coordinate extraction from EONET GeoJSON geometry records."""

from __future__ import annotations

import math
from typing import Any, Mapping, NamedTuple, Optional, Sequence


class LatLon(NamedTuple):
    lat: float
    lon: float


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _field(geometry: Any, name: str) -> Any:
    if isinstance(geometry, Mapping):
        return geometry.get(name)
    return getattr(geometry, name, None)


def _point_from_record(geometry: Any) -> Optional[LatLon]:
    if geometry is None or _field(geometry, "type") != "Point":
        return None

    coordinates = _field(geometry, "coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) < 2:
        return None

    # GeoJSON order is [lon, lat]
    lon, lat = coordinates[0], coordinates[1]
    if not (_is_number(lat) and _is_number(lon)):
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None
    return LatLon(lat=float(lat), lon=float(lon))


def extract_point(geometry: Any) -> Optional[LatLon]:
    """Return the ``(lat, lon)`` of a ``Point`` geometry, or ``None``.

    *geometry* is a single geometry record (mapping or
    :class:`~eonet_explorer.models.GeometryRecord`) or a sequence of them, in
    which case the first record yielding a point wins. Never raises.
    """
    if isinstance(geometry, Sequence) and not isinstance(geometry, (str, bytes)):
        for record in geometry:
            point = _point_from_record(record)
            if point is not None:
                return point
        return None
    return _point_from_record(geometry)


__all__ = ["LatLon", "extract_point"]
