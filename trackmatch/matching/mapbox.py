"""Mapbox Map Matching adapter (tracepoint-indexed road snapping)."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional, Sequence

from requests import Session

from ..config import (
    MAPBOX_ACCESS_TOKEN,
    MAPBOX_API_BASE,
    MAPBOX_MAX_COORDINATES,
    MAPBOX_PROFILE,
    REQUEST_TIMEOUT,
)
from ..errors import ConfigurationError, ProviderError
from ..models import MatchParams, Point, Segment, SegmentKind
from .base import RECOVERABLE_ERRORS, passthrough
from .reconcile import drop_leading_duplicates
from .response_handling import mask_secret, parse_json
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class _Run:
    """Consecutive input points sharing one matching index (None = unmatched)."""

    matching_index: Optional[int]
    points: List[Point] = field(default_factory=list)


def _format_number(value: float) -> str:
    number = float(value)
    return str(int(number)) if number.is_integer() else repr(number)


def _coordinates_path(points: Sequence[Point]) -> str:
    return ";".join(f"{_format_number(p.x)},{_format_number(p.y)}" for p in points)


class MapboxMatchProvider:
    """Snap chunks through the Mapbox Map Matching API.

    Each input point is mapped by its tracepoint to one of the returned
    matchings. Runs on a confident matching are replaced by that matching's
    full snapped geometry, emitted once per matching; everything else is
    returned as raw input.
    """

    name = "mapbox"

    def __init__(
        self,
        access_token: Optional[str] = None,
        *,
        profile: str = MAPBOX_PROFILE,
        api_base: str = MAPBOX_API_BASE,
        max_chunk_size: Optional[int] = MAPBOX_MAX_COORDINATES,
        session: Optional[Session] = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        token = MAPBOX_ACCESS_TOKEN if access_token is None else access_token
        if not token:
            raise ConfigurationError(
                "Mapbox access token is missing; set MAPBOX_ACCESS_TOKEN or pass access_token"
            )
        self._access_token = token
        self._profile = profile.strip("/")
        self._api_base = api_base.rstrip("/")
        self.max_chunk_size = max_chunk_size
        self._session = session or get_default_session()
        self._timeout = timeout

    def match(self, points: Sequence[Point], params: MatchParams) -> List[Segment]:
        points = list(points)
        if len(points) < 2:
            return passthrough(points)
        try:
            payload = self._request(points, params)
            segments = self._classify(points, payload, params.confidence_threshold)
        except RECOVERABLE_ERRORS as exc:
            LOGGER.warning(
                "Mapbox matching failed for %d points; keeping raw coordinates: %s",
                len(points),
                exc,
            )
            return passthrough(points)
        return segments or passthrough(points)

    def _request(self, points: Sequence[Point], params: MatchParams) -> Dict[str, Any]:
        url = f"{self._api_base}/{self._profile}/{_coordinates_path(points)}"
        query: Dict[str, str] = {
            "access_token": self._access_token,
            "geometries": "geojson",
            "overview": "full",
        }
        if params.radius is not None and params.radius > 0:
            radius = _format_number(params.radius)
            query["radiuses"] = ";".join(radius for _ in points)
        LOGGER.debug(
            "Mapbox match request profile=%s points=%d token=%s",
            self._profile,
            len(points),
            mask_secret(self._access_token),
        )
        resp = self._session.get(url, params=query, timeout=self._timeout)
        data = parse_json(resp, "Mapbox map matching")
        matchings = data.get("matchings")
        if data.get("code") != "Ok" or not matchings:
            raise ProviderError(
                f"Mapbox returned no matchings (code={data.get('code')!r})"
            )
        if not isinstance(matchings, list) or not all(
            isinstance(matching, dict) for matching in matchings
        ):
            raise ProviderError("Mapbox matchings are not a list of objects")
        if not isinstance(data.get("tracepoints") or [], list):
            raise ProviderError("Mapbox tracepoints are not a list")
        return data

    def _classify(
        self,
        points: Sequence[Point],
        data: Dict[str, Any],
        threshold: float,
    ) -> List[Segment]:
        matchings: List[Dict[str, Any]] = data["matchings"]
        emitted: set[int] = set()
        segments: List[Segment] = []
        last: Optional[Point] = None
        matched_runs = 0

        for run in _build_runs(points, data.get("tracepoints") or []):
            kind = SegmentKind.RAW
            run_points = run.points
            index = run.matching_index
            if index is not None:
                matching = matchings[index] if 0 <= index < len(matchings) else None
                confidence = (matching or {}).get("confidence") or 0.0
                geometry = _geometry_points(matching) if matching else []
                # A matching touching several runs is only drawn once.
                if geometry and confidence >= threshold and index not in emitted:
                    kind = SegmentKind.MATCHED
                    run_points = geometry
                    emitted.add(index)
                    matched_runs += 1
            run_points = drop_leading_duplicates(run_points, last)
            if not run_points:
                continue
            segments.append(Segment(kind, run_points))
            last = run_points[-1]

        LOGGER.debug(
            "Mapbox classified %d points into %d segments (%d matched)",
            len(points),
            len(segments),
            matched_runs,
        )
        return segments


def _build_runs(points: Sequence[Point], tracepoints: Sequence[Any]) -> List[_Run]:
    runs: List[_Run] = []
    for position, point in enumerate(points):
        tracepoint = tracepoints[position] if position < len(tracepoints) else None
        index = None
        if isinstance(tracepoint, dict):
            raw_index = tracepoint.get("matchings_index")
            if isinstance(raw_index, int) and not isinstance(raw_index, bool):
                index = raw_index
        if runs and runs[-1].matching_index == index:
            runs[-1].points.append(point)
        else:
            runs.append(_Run(matching_index=index, points=[point]))
    return runs


def _geometry_points(matching: Dict[str, Any]) -> List[Point]:
    geometry = matching.get("geometry") or {}
    if not isinstance(geometry, dict):
        raise ProviderError("Mapbox matching geometry is not a GeoJSON object")
    coordinates = geometry.get("coordinates") or []
    if not isinstance(coordinates, list):
        raise ProviderError("Mapbox matching coordinates are not a list")
    return [Point(float(lng), float(lat)) for lng, lat, *_ in coordinates]


__all__ = ["MapboxMatchProvider"]
