"""Road snapping: chunk planning, provider adapters and seam reconciliation."""

from .amap import AmapMatchProvider
from .base import MatchProvider
from .chunking import plan_chunks
from .mapbox import MapboxMatchProvider
from .pipeline import (
    CancellationToken,
    TrajectoryMatcher,
    create_provider,
    map_match_trajectory,
)
from .reconcile import SeamAccumulator, reconcile

__all__ = [
    "AmapMatchProvider",
    "MapboxMatchProvider",
    "MatchProvider",
    "plan_chunks",
    "CancellationToken",
    "TrajectoryMatcher",
    "create_provider",
    "map_match_trajectory",
    "SeamAccumulator",
    "reconcile",
]
