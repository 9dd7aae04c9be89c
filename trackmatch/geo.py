"""WGS-84 <-> GCJ-02 coordinate conversion.

GCJ-02 is the obfuscated datum required by mainland-China map services. The
forward offset is an empirical series; the inverse subtracts the offset
evaluated at the GCJ-02 input instead of solving for the true source, so a
round trip carries a small residual (see ``ROUNDTRIP_TOLERANCE_DEGREES``).
Outside the China bounding box both directions are the identity.
"""

from __future__ import annotations

import math
from typing import List, Sequence, Tuple, TypeVar

from .models import LngLat, Point

# Krasovsky 1940 ellipsoid.
_AXIS = 6378245.0
_ECCENTRICITY_SQ = 0.00669342162296594323

# Bounding box outside of which the datum offset is zero.
_MIN_LNG, _MAX_LNG = 72.004, 137.8347
_MIN_LAT, _MAX_LAT = 0.8293, 55.8271

# Per-axis round-trip residual bound (about 11 m) for points at least
# ROUNDTRIP_EDGE_MARGIN_DEGREES inside the box. Closer to the edge the shifted
# point can leave the box, so the inverse returns it unchanged.
ROUNDTRIP_TOLERANCE_DEGREES = 1e-4
ROUNDTRIP_EDGE_MARGIN_DEGREES = 0.05

_C = TypeVar("_C", Point, LngLat)


def out_of_china(lng: float, lat: float) -> bool:
    return lng < _MIN_LNG or lng > _MAX_LNG or lat < _MIN_LAT or lat > _MAX_LAT


def _transform_lat(x: float, y: float) -> float:
    ret = (
        -100.0
        + 2.0 * x
        + 3.0 * y
        + 0.2 * y * y
        + 0.1 * x * y
        + 0.2 * math.sqrt(abs(x))
    )
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(y * math.pi) + 40.0 * math.sin(y / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (160.0 * math.sin(y / 12.0 * math.pi) + 320.0 * math.sin(y * math.pi / 30.0)) * 2.0 / 3.0
    return ret


def _transform_lng(x: float, y: float) -> float:
    ret = (
        300.0
        + x
        + 2.0 * y
        + 0.1 * x * x
        + 0.1 * x * y
        + 0.1 * math.sqrt(abs(x))
    )
    ret += (20.0 * math.sin(6.0 * x * math.pi) + 20.0 * math.sin(2.0 * x * math.pi)) * 2.0 / 3.0
    ret += (20.0 * math.sin(x * math.pi) + 40.0 * math.sin(x / 3.0 * math.pi)) * 2.0 / 3.0
    ret += (150.0 * math.sin(x / 12.0 * math.pi) + 300.0 * math.sin(x / 30.0 * math.pi)) * 2.0 / 3.0
    return ret


def _offset(lng: float, lat: float) -> Tuple[float, float]:
    """Return the (dlng, dlat) datum shift at the given coordinate."""

    d_lat = _transform_lat(lng - 105.0, lat - 35.0)
    d_lng = _transform_lng(lng - 105.0, lat - 35.0)
    rad_lat = lat / 180.0 * math.pi
    magic = math.sin(rad_lat)
    magic = 1 - _ECCENTRICITY_SQ * magic * magic
    sqrt_magic = math.sqrt(magic)
    d_lat = (d_lat * 180.0) / ((_AXIS * (1 - _ECCENTRICITY_SQ)) / (magic * sqrt_magic) * math.pi)
    d_lng = (d_lng * 180.0) / (_AXIS / sqrt_magic * math.cos(rad_lat) * math.pi)
    return d_lng, d_lat


def _shift(coord: _C, sign: float) -> _C:
    if isinstance(coord, Point):
        lng, lat = coord.x, coord.y
    else:
        lng, lat = coord
    if out_of_china(lng, lat):
        return coord
    d_lng, d_lat = _offset(lng, lat)
    new_lng, new_lat = lng + sign * d_lng, lat + sign * d_lat
    if isinstance(coord, Point):
        return coord.moved_to(new_lng, new_lat)
    return (new_lng, new_lat)


def wgs84_to_gcj02(coord: _C) -> _C:
    """Shift a WGS-84 point or ``(lng, lat)`` pair into GCJ-02."""

    return _shift(coord, 1.0)


def gcj02_to_wgs84(coord: _C) -> _C:
    """Approximate inverse of :func:`wgs84_to_gcj02`."""

    return _shift(coord, -1.0)


def wgs84_path_to_gcj02(path: Sequence[_C]) -> List[_C]:
    return [wgs84_to_gcj02(coord) for coord in path]


def gcj02_path_to_wgs84(path: Sequence[_C]) -> List[_C]:
    return [gcj02_to_wgs84(coord) for coord in path]


def initial_bearing(start: LngLat, end: LngLat) -> float:
    """Forward azimuth from ``start`` to ``end`` in degrees within [0, 360)."""

    lng1, lat1 = (math.radians(v) for v in start)
    lng2, lat2 = (math.radians(v) for v in end)
    y = math.sin(lng2 - lng1) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        lng2 - lng1
    )
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360.0) % 360.0


__all__ = [
    "ROUNDTRIP_TOLERANCE_DEGREES",
    "out_of_china",
    "wgs84_to_gcj02",
    "gcj02_to_wgs84",
    "wgs84_path_to_gcj02",
    "gcj02_path_to_wgs84",
    "initial_bearing",
]
