"""GPS trajectory reduction and map-matching reconciliation."""

from .errors import (
    ConfigurationError,
    MatchCancelledError,
    ProviderError,
    TrackMatchError,
)
from .models import (
    MatchedSegments,
    MatchOutcome,
    MatchParams,
    Point,
    Segment,
    SegmentKind,
    TrajectoryStats,
)
from .simplification import decimate, reduce_trajectory, simplify

__all__ = [
    "ConfigurationError",
    "MatchCancelledError",
    "ProviderError",
    "TrackMatchError",
    "MatchedSegments",
    "MatchOutcome",
    "MatchParams",
    "Point",
    "Segment",
    "SegmentKind",
    "TrajectoryStats",
    "decimate",
    "reduce_trajectory",
    "simplify",
]
