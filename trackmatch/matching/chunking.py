"""Split long trajectories into overlapping windows for size-limited providers."""

from __future__ import annotations

from typing import List, Sequence, TypeVar

from ..config import CHUNK_OVERLAP, MAPBOX_MAX_COORDINATES

T = TypeVar("T")


def plan_chunks(
    coords: Sequence[T],
    max_size: int = MAPBOX_MAX_COORDINATES,
    overlap: int = CHUNK_OVERLAP,
) -> List[List[T]]:
    """Return windows of at most ``max_size`` items sharing ``overlap`` items.

    Dropping the first ``overlap`` items of every window after the first and
    concatenating the rest reproduces ``coords``.
    """

    if max_size < 1:
        raise ValueError("max_size must be >= 1")
    if overlap < 0 or overlap >= max_size:
        raise ValueError("overlap must be within [0, max_size)")
    if len(coords) <= max_size:
        return [list(coords)]

    chunks: List[List[T]] = []
    start = 0
    total = len(coords)
    while start < total:
        end = min(start + max_size, total)
        chunks.append(list(coords[start:end]))
        if end >= total:
            break
        start = end - overlap
    return chunks


__all__ = ["plan_chunks"]
