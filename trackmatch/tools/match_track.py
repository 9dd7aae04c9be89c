#!/usr/bin/env python3
"""Reduce a GPS track from CSV and optionally snap it to the road network.

The CSV needs longitude/latitude columns; ``speed``, ``heading`` and
``timestamp`` columns are used when present. Timestamps may be numeric
seconds or any datetime string pandas can parse.

Environment requirements:
- ``MAPBOX_ACCESS_TOKEN`` for ``--provider mapbox``.
- ``AMAP_API_KEY`` for ``--provider amap``.
Both may be stored in ``.env``.

Usage examples:

    # Simplify only, print JSON
    python -m trackmatch.tools.match_track track.csv --tolerance 0.0001

    # Decimate to one point per 5 s, snap with Mapbox, write a polyline
    python -m trackmatch.tools.match_track track.csv \
        --interval 5 \
        --provider mapbox \
        --confidence 0.6 \
        --output-format polyline \
        --output-file track.txt
"""

from __future__ import annotations

import argparse
import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
import polyline

from trackmatch.config import (
    DEFAULT_SIMPLIFY_TOLERANCE,
    DEFAULT_TIME_INTERVAL_SECONDS,
    MATCH_DEFAULT_CONFIDENCE,
)
from trackmatch.errors import ConfigurationError
from trackmatch.matching import create_provider, map_match_trajectory
from trackmatch.matching.pipeline import PROVIDER_NAMES
from trackmatch.models import MatchOutcome, MatchParams, Point
from trackmatch.simplification import ReducedTrajectory, calculate_stats, reduce_trajectory

LOGGER = logging.getLogger("match_track")

_LON_ALIASES = ("lon", "lng", "longitude", "x")
_LAT_ALIASES = ("lat", "latitude", "y")


def _resolve_column(
    frame: pd.DataFrame, requested: Optional[str], aliases: Sequence[str]
) -> str:
    if requested:
        if requested not in frame.columns:
            raise ValueError(f"Column {requested!r} not found in CSV")
        return requested
    lookup = {str(col).lower(): col for col in frame.columns}
    for alias in aliases:
        if alias in lookup:
            return lookup[alias]
    raise ValueError(f"None of the columns {list(aliases)} found in CSV")


def _timestamps_seconds(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        return series.astype(float)
    parsed = pd.to_datetime(series, utc=True, errors="coerce")
    seconds = (parsed - pd.Timestamp(0, tz="UTC")).dt.total_seconds()
    return seconds


def _optional_float(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def load_points(
    csv_path: Path,
    *,
    lon_column: Optional[str] = None,
    lat_column: Optional[str] = None,
) -> List[Point]:
    """Read a CSV track into points, dropping rows with unusable coordinates."""

    frame = pd.read_csv(csv_path)
    lon_col = _resolve_column(frame, lon_column, _LON_ALIASES)
    lat_col = _resolve_column(frame, lat_column, _LAT_ALIASES)
    frame[lon_col] = pd.to_numeric(frame[lon_col], errors="coerce")
    frame[lat_col] = pd.to_numeric(frame[lat_col], errors="coerce")
    before = len(frame)
    frame = frame[frame[lon_col].map(math.isfinite) & frame[lat_col].map(math.isfinite)]
    if len(frame) < before:
        LOGGER.warning("Dropped %d rows with invalid coordinates", before - len(frame))

    lookup = {str(col).lower(): col for col in frame.columns}
    speed_col = lookup.get("speed")
    heading_col = lookup.get("heading") or lookup.get("direction")
    ts_col = lookup.get("timestamp") or lookup.get("time")
    timestamps = _timestamps_seconds(frame[ts_col]) if ts_col is not None else None

    points: List[Point] = []
    for position, (_, row) in enumerate(frame.iterrows()):
        points.append(
            Point(
                x=float(row[lon_col]),
                y=float(row[lat_col]),
                speed=_optional_float(row[speed_col]) if speed_col is not None else None,
                heading=_optional_float(row[heading_col]) if heading_col is not None else None,
                timestamp=(
                    _optional_float(timestamps.iloc[position])
                    if timestamps is not None
                    else None
                ),
            )
        )
    LOGGER.info("Loaded %d points from %s", len(points), csv_path)
    return points


def build_report(
    reduced: ReducedTrajectory, outcome: Optional[MatchOutcome]
) -> Dict[str, Any]:
    stats = reduced.stats
    if outcome is not None:
        stats = calculate_stats(
            stats.original_count,
            len(outcome.trajectory),
            time_filtered_count=stats.time_filtered_count,
            simplified_count=stats.simplified_count,
            matched_count=len(outcome.trajectory),
        )
    report: Dict[str, Any] = {
        "stats": {
            "original_count": stats.original_count,
            "time_filtered_count": stats.time_filtered_count,
            "simplified_count": stats.simplified_count,
            "matched_count": stats.matched_count,
            "final_count": stats.final_count,
            "compression_ratio": stats.compression_ratio,
        },
        "points": [point.to_dict() for point in reduced.points],
    }
    if outcome is not None:
        report["map_matching"] = outcome.to_dict()
    return report


def encode_path(points: Sequence[Point]) -> str:
    """Encode a path as a Google polyline (lat/lng order, precision 5)."""

    return polyline.encode([(p.y, p.x) for p in points], 5)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Reduce a GPS track and optionally map-match it"
    )
    parser.add_argument("input_csv", type=Path, help="CSV file with the GPS track")
    parser.add_argument("--lon-column", help="Longitude column (auto-detected)")
    parser.add_argument("--lat-column", help="Latitude column (auto-detected)")
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_TIME_INTERVAL_SECONDS,
        help="Minimum seconds between kept points (0 disables decimation)",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=DEFAULT_SIMPLIFY_TOLERANCE,
        help="Douglas-Peucker tolerance in degrees",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Run the radial-distance pre-pass before Douglas-Peucker",
    )
    parser.add_argument(
        "--provider",
        choices=["none", *PROVIDER_NAMES],
        default="none",
        help="Map matching provider (default: none)",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        default=MATCH_DEFAULT_CONFIDENCE,
        help="Minimum matching confidence in [0, 1]",
    )
    parser.add_argument(
        "--radius", type=float, help="Search radius in metres for each point"
    )
    parser.add_argument(
        "--output-format",
        choices=["json", "polyline"],
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--output-file", type=Path, help="Write output here instead of stdout"
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )
    return parser


def run(args: argparse.Namespace) -> str:
    """Execute the tool for parsed arguments and return the rendered output."""

    points = load_points(
        args.input_csv, lon_column=args.lon_column, lat_column=args.lat_column
    )
    reduced = reduce_trajectory(
        points,
        interval_seconds=args.interval,
        tolerance=args.tolerance,
        high_quality=not args.fast,
    )
    outcome: Optional[MatchOutcome] = None
    if args.provider != "none":
        provider = create_provider(args.provider)
        params = MatchParams(confidence_threshold=args.confidence, radius=args.radius)

        def _progress(current: int, total: int) -> None:
            LOGGER.info("Matching chunk %d/%d", current, total)

        outcome = map_match_trajectory(
            reduced.points, provider, params, on_progress=_progress
        )

    if args.output_format == "polyline":
        final = outcome.trajectory if outcome is not None else reduced.points
        return encode_path(final)
    return json.dumps(build_report(reduced, outcome), indent=2)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the match_track tool."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    try:
        rendered = run(args)
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return 2
    except (OSError, ValueError) as exc:
        LOGGER.error("Failed to process %s: %s", args.input_csv, exc)
        return 1

    if args.output_file:
        args.output_file.parent.mkdir(parents=True, exist_ok=True)
        args.output_file.write_text(rendered + "\n", encoding="utf-8")
        LOGGER.info("Output written to %s", args.output_file)
    else:
        print(rendered)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
