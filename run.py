#!/usr/bin/env python3
"""Convenience runner for the trajectory matching tool.

Usage:
    python run.py track.csv --provider mapbox
"""
from trackmatch.tools.match_track import main

if __name__ == "__main__":
    raise SystemExit(main())
