"""Capability contract shared by the road-snapping providers."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

import requests

from ..errors import ProviderError
from ..models import MatchParams, Point, Segment

# Failures a provider absorbs at its ``match`` boundary.
RECOVERABLE_ERRORS = (
    requests.RequestException,
    ProviderError,
    ValueError,
    KeyError,
    TypeError,
    IndexError,
    AttributeError,
)


@runtime_checkable
class MatchProvider(Protocol):
    """Snap one chunk of points to the road network.

    ``match`` never raises: on any provider failure it returns a single raw
    segment wrapping the input unchanged. ``max_chunk_size`` bounds the
    points per call; ``None`` means the whole trajectory fits in one call.
    """

    name: str
    max_chunk_size: Optional[int]

    def match(self, points: Sequence[Point], params: MatchParams) -> List[Segment]:
        ...


def passthrough(points: Sequence[Point]) -> List[Segment]:
    """Fail-open result: the input as one raw segment."""

    return [Segment.raw(list(points))] if points else []


__all__ = ["MatchProvider", "RECOVERABLE_ERRORS", "passthrough"]
