"""Trajectory reduction: time decimation and Douglas-Peucker simplification."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import List, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from shapely.geometry import LineString

from .config import (
    DEFAULT_HIGH_QUALITY,
    DEFAULT_SIMPLIFY_TOLERANCE,
    DEFAULT_TIME_INTERVAL_SECONDS,
)
from .models import Point, TrajectoryStats

LOGGER = logging.getLogger(__name__)

FloatArray = NDArray[np.float64]


@dataclass(slots=True)
class ReducedTrajectory:
    """Reduced point list together with per-stage counts."""

    points: List[Point]
    stats: TrajectoryStats


def decimate(points: Sequence[Point], interval_seconds: float) -> List[Point]:
    """Drop points recorded less than ``interval_seconds`` after the last kept one.

    The first and last points are always kept. Points without a timestamp are
    kept and leave the comparison clock untouched.
    """

    if interval_seconds <= 0 or len(points) <= 1:
        return list(points)

    kept = [points[0]]
    last_index = 0
    last_timestamp = points[0].timestamp
    for index in range(1, len(points)):
        point = points[index]
        if point.timestamp is None:
            kept.append(point)
            last_index = index
            continue
        if last_timestamp is None or point.timestamp - last_timestamp >= interval_seconds:
            kept.append(point)
            last_index = index
            last_timestamp = point.timestamp

    if last_index != len(points) - 1:
        kept.append(points[-1])
    return kept


def simplify(
    points: Sequence[Point],
    tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
    high_quality: bool = DEFAULT_HIGH_QUALITY,
) -> List[Point]:
    """Simplify a polyline with Douglas-Peucker in raw degree space.

    Args:
        points: Ordered trajectory points.
        tolerance: Maximum distance (degrees) a dropped point may lie from the
            simplified chord.
        high_quality: Skip the radial-distance pre-pass. The pre-pass is much
            cheaper on dense tracks but may shift which vertices survive.

    Returns:
        A subsequence of ``points`` sharing its first and last elements.
    """

    if len(points) <= 2:
        return list(points)

    tolerance = max(float(tolerance), 0.0)
    candidates = (
        list(points) if high_quality else _radial_filter(points, tolerance * tolerance)
    )
    simplified = _douglas_peucker(candidates, tolerance)
    LOGGER.debug(
        "Simplified %d -> %d points (tolerance=%s, high_quality=%s)",
        len(points),
        len(simplified),
        tolerance,
        high_quality,
    )
    return simplified


def _radial_filter(points: Sequence[Point], sq_tolerance: float) -> List[Point]:
    """Keep points farther than the tolerance from the previously kept point."""

    kept = [points[0]]
    previous = points[0]
    last_index = 0
    for index in range(1, len(points)):
        point = points[index]
        dx = point.x - previous.x
        dy = point.y - previous.y
        if dx * dx + dy * dy > sq_tolerance:
            kept.append(point)
            previous = point
            last_index = index
    if last_index != len(points) - 1:
        kept.append(points[-1])
    return kept


def _douglas_peucker(points: Sequence[Point], tolerance: float) -> List[Point]:
    if len(points) <= 2:
        return list(points)
    line = LineString(_as_coordinate_array(points))
    simplified = line.simplify(tolerance, preserve_topology=False)
    return _match_vertices(points, np.asarray(simplified.coords, dtype=float))


def _as_coordinate_array(points: Sequence[Point]) -> FloatArray:
    array = np.empty((len(points), 2), dtype=float)
    for index, point in enumerate(points):
        array[index, 0] = point.x
        array[index, 1] = point.y
    return array


def _match_vertices(points: Sequence[Point], coords: FloatArray) -> List[Point]:
    """Map surviving coordinates back onto the input points, in order.

    The end points are pinned so a closed loop keeps its own last point
    rather than an earlier vertex at the same position.
    """

    last = len(points) - 1
    kept = [points[0]]
    cursor = 1
    for x, y in coords[1:-1]:
        while cursor < last and (points[cursor].x != x or points[cursor].y != y):
            cursor += 1
        if cursor >= last:
            break
        kept.append(points[cursor])
        cursor += 1
    kept.append(points[last])
    return kept


def calculate_stats(
    original_count: int,
    final_count: int,
    *,
    time_filtered_count: Optional[int] = None,
    simplified_count: Optional[int] = None,
    matched_count: Optional[int] = None,
) -> TrajectoryStats:
    """Summarise how much each stage reduced the trajectory."""

    ratio = (1 - final_count / original_count) * 100 if original_count > 0 else 0.0
    return TrajectoryStats(
        original_count=original_count,
        final_count=final_count,
        compression_ratio=round(ratio, 2),
        time_filtered_count=time_filtered_count,
        simplified_count=simplified_count,
        matched_count=matched_count,
    )


def reduce_trajectory(
    points: Sequence[Point],
    *,
    interval_seconds: float = DEFAULT_TIME_INTERVAL_SECONDS,
    tolerance: float = DEFAULT_SIMPLIFY_TOLERANCE,
    high_quality: bool = DEFAULT_HIGH_QUALITY,
) -> ReducedTrajectory:
    """Decimate by time (when an interval is set) and then simplify."""

    time_filtered_count: Optional[int] = None
    working: List[Point] = list(points)
    if interval_seconds > 0:
        working = decimate(working, interval_seconds)
        time_filtered_count = len(working)
    simplified = simplify(working, tolerance, high_quality)
    stats = calculate_stats(
        len(points),
        len(simplified),
        time_filtered_count=time_filtered_count,
        simplified_count=len(simplified),
    )
    LOGGER.info(
        "Reduced trajectory %d -> %d points (%.2f%% removed)",
        stats.original_count,
        stats.final_count,
        stats.compression_ratio,
    )
    return ReducedTrajectory(points=simplified, stats=stats)


__all__ = [
    "ReducedTrajectory",
    "decimate",
    "simplify",
    "calculate_stats",
    "reduce_trajectory",
]
