"""Tests for time decimation and Douglas-Peucker simplification."""

from __future__ import annotations

import math
import random

import pytest

from trackmatch.models import Point
from trackmatch.simplification import (
    calculate_stats,
    decimate,
    reduce_trajectory,
    simplify,
)


def _is_subsequence(candidate, source):
    it = iter(source)
    return all(any(item is other for other in it) for item in candidate)


def _zigzag(count: int, seed: int = 7):
    rng = random.Random(seed)
    return [
        Point(i * 0.0005, math.sin(i / 5.0) * 0.002 + rng.uniform(-0.0003, 0.0003))
        for i in range(count)
    ]


# --- decimate --------------------------------------------------------
def test_decimate_keeps_endpoints_and_spacing():
    points = [Point(0.0, 0.0, timestamp=t) for t in (0, 1, 2, 5, 6, 11, 12)]
    kept = decimate(points, 5)

    assert kept[0] is points[0]
    assert kept[-1] is points[-1]
    assert [p.timestamp for p in kept] == [0, 5, 11, 12]
    for a, b in zip(kept[:-2], kept[1:-1]):
        assert b.timestamp - a.timestamp >= 5


def test_decimate_resets_clock_on_kept_point():
    points = [Point(0.0, 0.0, timestamp=t) for t in (0, 4, 8, 9)]
    # 4 is dropped (4 < 5); 8 is kept (8 - 0 >= 5); 9 is the last point.
    assert [p.timestamp for p in decimate(points, 5)] == [0, 8, 9]


@pytest.mark.parametrize("interval", [0, -3])
def test_decimate_non_positive_interval_is_noop(interval):
    points = [Point(0.0, 0.0, timestamp=t) for t in range(4)]
    assert decimate(points, interval) == points


def test_decimate_short_inputs_unchanged():
    assert decimate([], 5) == []
    single = [Point(1.0, 2.0, timestamp=3)]
    assert decimate(single, 5) == single


def test_decimate_keeps_points_without_timestamp():
    points = [
        Point(0.0, 0.0, timestamp=0),
        Point(0.1, 0.0),
        Point(0.2, 0.0, timestamp=2),
        Point(0.3, 0.0, timestamp=10),
    ]
    kept = decimate(points, 5)
    assert kept == [points[0], points[1], points[3]]


# --- simplify --------------------------------------------------------
def test_simplify_short_inputs_unchanged():
    a, b = Point(0.0, 0.0), Point(1.0, 1.0)
    assert simplify([], 0.1) == []
    assert simplify([a], 0.1) == [a]
    assert simplify([a, b], 0.1) == [a, b]


@pytest.mark.parametrize("high_quality", [True, False])
@pytest.mark.parametrize("tolerance", [0.0, 0.0001, 0.001, 0.01])
def test_simplify_returns_subsequence_with_endpoints(tolerance, high_quality):
    points = _zigzag(200)
    result = simplify(points, tolerance, high_quality)

    assert result[0] is points[0]
    assert result[-1] is points[-1]
    assert _is_subsequence(result, points)


def test_simplify_zero_tolerance_drops_only_collinear_points():
    points = [
        Point(0.0, 0.0),
        Point(1.0, 0.0),
        Point(2.0, 0.0),
        Point(2.0, 1.0),
        Point(3.0, 1.0),
    ]
    assert simplify(points, 0, True) == [points[0], points[2], points[3], points[4]]


def test_simplify_zero_tolerance_keeps_backtracking_points():
    # Collinear but outside the chord: distance to the segment is non-zero.
    points = [Point(0.0, 0.0), Point(2.0, 0.0), Point(1.0, 0.0)]
    assert simplify(points, 0, True) == points


def test_simplify_keeps_vertex_beyond_tolerance():
    points = [Point(0.0, 0.0), Point(1.0, 0.4), Point(2.0, 0.0)]
    assert simplify(points, 0.5, True) == [points[0], points[2]]
    assert simplify(points, 0.3, True) == points


@pytest.mark.parametrize("high_quality", [True, False])
@pytest.mark.parametrize("tolerance", [0.0, 0.0004])
def test_simplify_is_idempotent(tolerance, high_quality):
    points = _zigzag(300)
    once = simplify(points, tolerance, high_quality)
    assert simplify(once, tolerance, high_quality) == once


def test_fast_mode_is_idempotent_on_dense_track():
    rng = random.Random(11)
    points = [Point(i * 0.0001, rng.uniform(-0.00002, 0.00002)) for i in range(400)]
    once = simplify(points, 0.0004, False)

    assert once == [points[0], points[-1]]
    assert simplify(once, 0.0004, False) == once


def test_simplify_closed_loop_keeps_own_endpoints():
    points = [
        Point(0.0, 0.0, timestamp=0),
        Point(1.0, 0.0, timestamp=1),
        Point(0.0, 0.0, timestamp=2),
        Point(0.0, 1.0, timestamp=3),
        Point(0.0, 0.0, timestamp=4),
    ]
    result = simplify(points, 0.1, True)

    assert len(result) == len(points)
    assert all(kept is original for kept, original in zip(result, points))


def test_radial_prepass_removes_dense_neighbours():
    # points[2] sits within the tolerance of points[1] but is the true apex.
    points = [
        Point(0.0, 0.0),
        Point(0.5, 0.5),
        Point(0.505, 0.505),
        Point(1.0, 0.0),
    ]
    fast = simplify(points, 0.01, False)
    precise = simplify(points, 0.01, True)

    assert fast == [points[0], points[1], points[3]]
    assert precise == [points[0], points[2], points[3]]


def test_simplify_keeps_every_vertex_of_dense_zigzag():
    points = [Point(i * 0.001, (i % 2) * 0.01) for i in range(5000)]
    result = simplify(points, 0.001, True)
    assert len(result) == len(points)


# --- pipeline & stats ------------------------------------------------
def test_reference_trajectory_decimation_and_simplification():
    points = [
        Point(0.0, 0.0, timestamp=0),
        Point(0.0, 0.00001, timestamp=1),
        Point(0.0, 1.0, timestamp=2),
        Point(0.0, 2.0, timestamp=100),
    ]

    decimated = decimate(points, 5)
    assert decimated == [points[0], points[3]]

    simplified = simplify(points, 0.5, True)
    assert simplified == [points[0], points[3]]


def test_calculate_stats_ratio():
    stats = calculate_stats(200, 50, time_filtered_count=120, simplified_count=50)
    assert stats.compression_ratio == pytest.approx(75.0)
    assert stats.time_filtered_count == 120
    assert calculate_stats(0, 0).compression_ratio == 0.0


def test_reduce_trajectory_reports_stage_counts():
    points = [Point(i * 0.001, 0.0, timestamp=float(i)) for i in range(11)]
    reduced = reduce_trajectory(points, interval_seconds=2, tolerance=0.0001)

    assert reduced.stats.original_count == 11
    assert reduced.stats.time_filtered_count == 6
    assert reduced.points == [points[0], points[-1]]
    assert reduced.stats.simplified_count == 2
    assert reduced.stats.final_count == 2


def test_reduce_trajectory_skips_decimation_without_interval():
    points = [Point(0.0, 0.0), Point(1.0, 1.0), Point(2.0, 0.0)]
    reduced = reduce_trajectory(points, interval_seconds=0, tolerance=0.1)
    assert reduced.stats.time_filtered_count is None
    assert reduced.points == points
