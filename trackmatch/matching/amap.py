"""AMap grasproad adapter (single-shot whole-path snapping in GCJ-02)."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from requests import Session

from ..config import (
    AMAP_API_KEY,
    AMAP_DEFAULT_SPEED_KMH,
    AMAP_GRASPROAD_URL,
    AMAP_MAX_POINTS,
    REQUEST_TIMEOUT,
)
from ..errors import ConfigurationError, ProviderError
from ..geo import gcj02_path_to_wgs84, initial_bearing, wgs84_path_to_gcj02
from ..models import MatchParams, Point, Segment
from .base import RECOVERABLE_ERRORS, passthrough
from .response_handling import mask_secret, parse_json
from .session import get_default_session

LOGGER = logging.getLogger(__name__)


class AmapMatchProvider:
    """Snap a whole path through AMap grasproad.

    The service works in GCJ-02 and needs speed, heading and time for every
    point; missing readings are filled in. It returns one snapped path with no
    confidence signal, so a successful call always yields one matched segment.
    """

    name = "amap"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        url: str = AMAP_GRASPROAD_URL,
        max_chunk_size: Optional[int] = AMAP_MAX_POINTS or None,
        default_speed_kmh: float = AMAP_DEFAULT_SPEED_KMH,
        session: Optional[Session] = None,
        timeout: float = REQUEST_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        key = AMAP_API_KEY if api_key is None else api_key
        if not key:
            raise ConfigurationError(
                "AMap API key is missing; set AMAP_API_KEY or pass api_key"
            )
        self._api_key = key
        self._url = url
        self.max_chunk_size = max_chunk_size
        self._default_speed = default_speed_kmh
        self._session = session or get_default_session()
        self._timeout = timeout
        self._clock = clock

    def match(self, points: Sequence[Point], params: MatchParams) -> List[Segment]:
        points = list(points)
        if len(points) < 2:
            return passthrough(points)
        gcj_points = wgs84_path_to_gcj02(points)
        try:
            payload = self.build_payload(gcj_points)
            LOGGER.debug(
                "AMap grasproad request points=%d key=%s",
                len(payload),
                mask_secret(self._api_key),
            )
            resp = self._session.post(
                self._url,
                params={"key": self._api_key},
                json=payload,
                timeout=self._timeout,
            )
            snapped = _snapped_points(parse_json(resp, "AMap grasproad"), gcj_points)
        except RECOVERABLE_ERRORS as exc:
            LOGGER.warning(
                "AMap grasproad failed for %d points; keeping raw coordinates: %s",
                len(points),
                exc,
            )
            return passthrough(points)
        return [Segment.matched(gcj02_path_to_wgs84(snapped))]

    def build_payload(self, gcj_points: Sequence[Point]) -> List[Dict[str, Any]]:
        """Return the grasproad request body for points already in GCJ-02.

        ``tm`` is absolute (seconds) for the first point and an offset from
        the first point for the rest.
        """

        first_ts = gcj_points[0].timestamp
        base = int(first_ts) if first_ts is not None else int(self._clock())
        last = len(gcj_points) - 1
        payload: List[Dict[str, Any]] = []
        for index, point in enumerate(gcj_points):
            if point.heading is not None:
                heading = float(point.heading)
            else:
                prev = gcj_points[index - 1] if index > 0 else point
                nxt = gcj_points[index + 1] if index < last else point
                heading = initial_bearing(prev.lnglat, nxt.lnglat)
            speed = point.speed if point.speed is not None else self._default_speed
            if index == 0:
                tm = base
            elif point.timestamp is not None and first_ts is not None:
                tm = int(round(point.timestamp - first_ts))
            else:
                tm = index
            payload.append(
                {
                    "x": round(point.x, 6),
                    "y": round(point.y, 6),
                    "sp": int(round(speed)),
                    "ag": round(heading, 2),
                    "tm": tm,
                }
            )
        return payload


def _snapped_points(data: Dict[str, Any], gcj_points: Sequence[Point]) -> List[Point]:
    errcode = data.get("errcode")
    if errcode != 0:
        raise ProviderError(
            f"AMap grasproad error errcode={errcode!r} errmsg={data.get('errmsg')!r}"
        )
    body = data.get("data")
    if not isinstance(body, dict):
        raise ProviderError(
            f"AMap grasproad data has unexpected type {type(body).__name__}"
        )
    returned = body.get("points")
    if not isinstance(returned, list) or not returned:
        raise ProviderError("AMap grasproad returned no points")

    snapped: List[Point] = []
    for index, item in enumerate(returned):
        fallback = gcj_points[index] if index < len(gcj_points) else gcj_points[-1]
        item = item if isinstance(item, dict) else {}
        snapped.append(
            Point(
                _number_or(item.get("x"), fallback.x),
                _number_or(item.get("y"), fallback.y),
            )
        )
    return snapped


def _number_or(value: Any, fallback: float) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return fallback


__all__ = ["AmapMatchProvider"]
