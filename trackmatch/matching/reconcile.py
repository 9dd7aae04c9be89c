"""Stitch per-chunk provider output into one ordered, duplicate-free path."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ..config import COORDINATE_EPSILON
from ..models import MatchedSegments, MatchOutcome, Point, Segment, SegmentKind


def points_equal(a: Point, b: Point, epsilon: float = COORDINATE_EPSILON) -> bool:
    return abs(a.x - b.x) <= epsilon and abs(a.y - b.y) <= epsilon


def drop_leading_duplicates(
    points: Sequence[Point],
    last: Optional[Point],
    epsilon: float = COORDINATE_EPSILON,
) -> List[Point]:
    """Return ``points`` without the leading run equal to ``last``."""

    if last is None:
        return list(points)
    start = 0
    while start < len(points) and points_equal(points[start], last, epsilon):
        start += 1
    return list(points[start:])


def collapse_repeats(
    points: Sequence[Point], epsilon: float = COORDINATE_EPSILON
) -> List[Point]:
    """Drop points equal to their immediate predecessor."""

    collapsed: List[Point] = []
    for point in points:
        if collapsed and points_equal(collapsed[-1], point, epsilon):
            continue
        collapsed.append(point)
    return collapsed


@dataclass(slots=True)
class SeamAccumulator:
    """Fold state carried across every chunk of a single match call.

    ``last_emitted`` is never reset between chunks; that is what removes the
    repeated points where overlapping chunks meet.
    """

    epsilon: float = COORDINATE_EPSILON
    last_emitted: Optional[Point] = None
    matched: List[List[Point]] = field(default_factory=list)
    raw: List[List[Point]] = field(default_factory=list)
    ordered: List[Segment] = field(default_factory=list)
    trajectory: List[Point] = field(default_factory=list)

    def add(self, segment: Segment) -> bool:
        """Append a segment; return False when it was entirely a duplicate."""

        remainder = collapse_repeats(
            drop_leading_duplicates(segment.points, self.last_emitted, self.epsilon),
            self.epsilon,
        )
        if not remainder:
            return False
        if segment.kind is SegmentKind.MATCHED:
            self.matched.append(remainder)
        else:
            self.raw.append(remainder)
        self.ordered.append(Segment(segment.kind, remainder))
        self.trajectory.extend(remainder)
        self.last_emitted = remainder[-1]
        return True

    def extend(self, segments: Iterable[Segment]) -> None:
        for segment in segments:
            self.add(segment)

    def outcome(self) -> MatchOutcome:
        return MatchOutcome(
            trajectory=list(self.trajectory),
            segments=MatchedSegments(
                matched=list(self.matched),
                raw=list(self.raw),
                ordered=list(self.ordered),
            ),
        )


def reconcile(
    chunk_results: Iterable[Iterable[Segment]],
    epsilon: float = COORDINATE_EPSILON,
) -> MatchOutcome:
    """Merge provider results given in chunk order into a ``MatchOutcome``."""

    accumulator = SeamAccumulator(epsilon=epsilon)
    for segments in chunk_results:
        accumulator.extend(segments)
    return accumulator.outcome()


__all__ = [
    "points_equal",
    "drop_leading_duplicates",
    "collapse_repeats",
    "SeamAccumulator",
    "reconcile",
]
