"""Sequential chunked map matching with cooperative cancellation."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional, Sequence

from ..config import (
    CHUNK_OVERLAP,
    INTER_CHUNK_DELAY_SECONDS,
    MATCH_DEFAULT_CONFIDENCE,
)
from ..errors import ConfigurationError, MatchCancelledError
from ..models import MatchOutcome, MatchParams, Point, Segment
from .amap import AmapMatchProvider
from .base import MatchProvider
from .chunking import plan_chunks
from .mapbox import MapboxMatchProvider
from .reconcile import SeamAccumulator, reconcile

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class CancellationToken:
    """Flag checked by the pipeline after every suspension point.

    Cancelling never interrupts an in-flight request; the pipeline notices
    once the call returns and discards its result.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return early (True) once cancelled."""

        return self._event.wait(seconds)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise MatchCancelledError("Map matching request was superseded")


def map_match_trajectory(
    points: Sequence[Point],
    provider: MatchProvider,
    params: Optional[MatchParams] = None,
    *,
    overlap: int = CHUNK_OVERLAP,
    delay_seconds: float = INTER_CHUNK_DELAY_SECONDS,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> MatchOutcome:
    """Snap ``points`` chunk by chunk and reconcile the results.

    Chunks go to the provider strictly one at a time with ``delay_seconds``
    between calls, because seam deduplication needs the tail of the previous
    chunk. Provider failures only degrade the affected chunk to raw points.

    Raises:
        MatchCancelledError: ``cancel_token`` was cancelled before completion.
    """

    if not points:
        return MatchOutcome.empty()
    params = params or MatchParams(confidence_threshold=MATCH_DEFAULT_CONFIDENCE)
    token = cancel_token or CancellationToken()

    max_size = provider.max_chunk_size
    if max_size and max_size > 0:
        chunks = plan_chunks(points, max_size, overlap)
    else:
        chunks = [list(points)]
    total = len(chunks)
    LOGGER.info(
        "Map matching %d points with %s in %d chunk(s)",
        len(points),
        provider.name,
        total,
    )

    accumulator = SeamAccumulator()
    for number, chunk in enumerate(chunks, start=1):
        token.raise_if_cancelled()
        if on_progress is not None:
            on_progress(number, total)
        segments = provider.match(chunk, params)
        token.raise_if_cancelled()
        accumulator.extend(segments)
        LOGGER.debug(
            "Chunk %d/%d: %d points -> %d segments", number, total, len(chunk), len(segments)
        )
        if number < total and delay_seconds > 0:
            token.wait(delay_seconds)
            token.raise_if_cancelled()

    outcome = accumulator.outcome()
    if not outcome.segments.ordered:
        LOGGER.warning(
            "%s produced no segments for %d points; returning raw trajectory",
            provider.name,
            len(points),
        )
        return reconcile([[Segment.raw(list(points))]])
    LOGGER.info(
        "Map matching finished: %d points (%d matched / %d raw segments)",
        len(outcome.trajectory),
        len(outcome.segments.matched),
        len(outcome.segments.raw),
    )
    return outcome


class TrajectoryMatcher:
    """Run match requests for one trajectory where the latest request wins.

    Starting a request cancels the token of any request still in flight, so
    a superseded run raises ``MatchCancelledError`` instead of committing a
    stale result.
    """

    def __init__(
        self,
        provider: MatchProvider,
        *,
        overlap: int = CHUNK_OVERLAP,
        delay_seconds: float = INTER_CHUNK_DELAY_SECONDS,
    ) -> None:
        self.provider = provider
        self._overlap = overlap
        self._delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._current: Optional[CancellationToken] = None

    def match(
        self,
        points: Sequence[Point],
        params: Optional[MatchParams] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> MatchOutcome:
        token = self._begin()
        try:
            return map_match_trajectory(
                points,
                self.provider,
                params,
                overlap=self._overlap,
                delay_seconds=self._delay_seconds,
                on_progress=on_progress,
                cancel_token=token,
            )
        finally:
            self._finish(token)

    def cancel(self) -> None:
        with self._lock:
            if self._current is not None:
                self._current.cancel()

    def _begin(self) -> CancellationToken:
        with self._lock:
            if self._current is not None:
                self._current.cancel()
            self._current = CancellationToken()
            return self._current

    def _finish(self, token: CancellationToken) -> None:
        with self._lock:
            if self._current is token:
                self._current = None


PROVIDER_NAMES: List[str] = ["mapbox", "amap"]


def create_provider(name: str, credential: Optional[str] = None) -> MatchProvider:
    """Build a provider by name; ``credential`` defaults to configuration."""

    normalized = name.strip().lower()
    if normalized == "mapbox":
        return MapboxMatchProvider(credential)
    if normalized == "amap":
        return AmapMatchProvider(credential)
    raise ConfigurationError(f"Unknown map matching provider: {name!r}")


__all__ = [
    "CancellationToken",
    "ProgressCallback",
    "map_match_trajectory",
    "TrajectoryMatcher",
    "PROVIDER_NAMES",
    "create_provider",
]
