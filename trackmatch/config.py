"""Central configuration for the trajectory reduction and map-matching engine.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Credentials are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import os

from dotenv import load_dotenv


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env from the current directory or any parent folder.
load_dotenv()


# ---------------------------------------------------------------------------
# Mapbox Map Matching (tracepoint-indexed provider)
# ---------------------------------------------------------------------------
MAPBOX_API_BASE = os.getenv(
    "MAPBOX_API_BASE", "https://api.mapbox.com/matching/v5"
)
MAPBOX_ACCESS_TOKEN = os.getenv("MAPBOX_ACCESS_TOKEN", "")
MAPBOX_PROFILE = os.getenv("MAPBOX_PROFILE", "mapbox/driving")

# The Matching API rejects requests with more than 100 coordinates.
MAPBOX_MAX_COORDINATES = _env_int("MAPBOX_MAX_COORDINATES", 100)


# ---------------------------------------------------------------------------
# AMap grasproad (whole-path provider, GCJ-02 frame)
# ---------------------------------------------------------------------------
AMAP_GRASPROAD_URL = os.getenv(
    "AMAP_GRASPROAD_URL", "https://restapi.amap.com/v4/grasproad/driving"
)
AMAP_API_KEY = os.getenv("AMAP_API_KEY", "")

# Points per grasproad request. 0 sends the whole trajectory in one call.
AMAP_MAX_POINTS = _env_int("AMAP_MAX_POINTS", 0)

# Speed (km/h) reported for points that carry no speed reading.
AMAP_DEFAULT_SPEED_KMH = _env_float("AMAP_DEFAULT_SPEED_KMH", 20.0)


# ---------------------------------------------------------------------------
# Matching pipeline
# ---------------------------------------------------------------------------
# Points shared between consecutive chunks so results stitch without gaps.
CHUNK_OVERLAP = _env_int("CHUNK_OVERLAP", 3)

# Pause between provider calls to stay under provider rate limits.
INTER_CHUNK_DELAY_SECONDS = _env_float("INTER_CHUNK_DELAY_SECONDS", 0.25)

# Minimum provider confidence for a matched run to replace the raw points.
MATCH_DEFAULT_CONFIDENCE = _env_float("MATCH_DEFAULT_CONFIDENCE", 0.5)

# Two coordinates closer than this (degrees, per axis) are the same point.
COORDINATE_EPSILON = 1e-9


# ---------------------------------------------------------------------------
# Reduction defaults
# ---------------------------------------------------------------------------
# Douglas-Peucker tolerance in degrees (roughly 11 m of latitude).
DEFAULT_SIMPLIFY_TOLERANCE = _env_float("DEFAULT_SIMPLIFY_TOLERANCE", 0.0001)

# Skip the radial-distance pre-pass when True.
DEFAULT_HIGH_QUALITY = _env_bool("DEFAULT_HIGH_QUALITY", True)

# Minimum spacing (seconds) between kept points. 0 disables decimation.
DEFAULT_TIME_INTERVAL_SECONDS = _env_float("DEFAULT_TIME_INTERVAL_SECONDS", 0.0)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------
# Request timeout in seconds.
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 15.0)

# HTTP session pool sizes.
HTTP_POOL_CONNECTIONS = 4
HTTP_POOL_MAXSIZE = 4

# Transport-level retries for 5xx responses before the provider falls back.
HTTP_MAX_RETRIES = _env_int("HTTP_MAX_RETRIES", 2)
