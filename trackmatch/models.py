"""Dataclasses describing trajectory points and map-matching results."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple


LngLat = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class Point:
    """One GPS fix. ``x``/``y`` are longitude/latitude in degrees."""

    x: float
    y: float
    speed: Optional[float] = None
    heading: Optional[float] = None
    # Seconds since the epoch (or any monotonic origin shared by the series).
    timestamp: Optional[float] = None

    @property
    def lnglat(self) -> LngLat:
        return (self.x, self.y)

    def moved_to(self, x: float, y: float) -> "Point":
        """Return a copy at new coordinates keeping the other readings."""

        return replace(self, x=x, y=y)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"x": self.x, "y": self.y}
        if self.speed is not None:
            data["speed"] = self.speed
        if self.heading is not None:
            data["heading"] = self.heading
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        return data


class SegmentKind(str, Enum):
    MATCHED = "matched"
    RAW = "raw"


@dataclass(slots=True)
class Segment:
    """A run of points classified as snapped to the road or left raw."""

    kind: SegmentKind
    points: List[Point]

    def __post_init__(self) -> None:
        self.points = list(self.points)
        if not self.points:
            raise ValueError("Segment requires at least one point")

    @classmethod
    def raw(cls, points: Sequence[Point]) -> "Segment":
        return cls(SegmentKind.RAW, points)

    @classmethod
    def matched(cls, points: Sequence[Point]) -> "Segment":
        return cls(SegmentKind.MATCHED, points)


@dataclass(slots=True)
class MatchParams:
    """Per-request provider options."""

    confidence_threshold: float
    radius: Optional[float] = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0, 1]")


@dataclass(slots=True)
class MatchedSegments:
    matched: List[List[Point]] = field(default_factory=list)
    raw: List[List[Point]] = field(default_factory=list)
    ordered: List[Segment] = field(default_factory=list)


@dataclass(slots=True)
class MatchOutcome:
    """Reconciled path plus its classified segments, in trajectory order."""

    trajectory: List[Point] = field(default_factory=list)
    segments: MatchedSegments = field(default_factory=MatchedSegments)

    @classmethod
    def empty(cls) -> "MatchOutcome":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable mapping for rendering layers."""

        def coords(points: List[Point]) -> List[List[float]]:
            return [[p.x, p.y] for p in points]

        return {
            "trajectory": coords(self.trajectory),
            "segments": {
                "matched": [coords(run) for run in self.segments.matched],
                "raw": [coords(run) for run in self.segments.raw],
                "ordered": [
                    {"type": seg.kind.value, "coordinates": coords(seg.points)}
                    for seg in self.segments.ordered
                ],
            },
        }


@dataclass(slots=True)
class TrajectoryStats:
    """Point counts at each reduction stage."""

    original_count: int
    final_count: int
    compression_ratio: float
    time_filtered_count: Optional[int] = None
    simplified_count: Optional[int] = None
    matched_count: Optional[int] = None


__all__ = [
    "LngLat",
    "Point",
    "SegmentKind",
    "Segment",
    "MatchParams",
    "MatchedSegments",
    "MatchOutcome",
    "TrajectoryStats",
]
