"""Global pytest fixtures & helpers.

Adds project root to path and provides reusable fakes for the provider and
pipeline tests to avoid duplication across files.
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Callable, Dict, List

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from trackmatch.models import Point


class FakeResp:
    """Minimal fake response matching needed parts of requests.Response."""

    def __init__(self, status_code=200, data=None, text=None):
        self.status_code = status_code
        self._data = data
        self._text = text
        self.url = "https://example.test"

    def json(self):
        if isinstance(self._data, Exception):
            raise self._data
        if self._data is None:
            raise ValueError("no JSON body")
        return self._data

    @property
    def text(self):
        if self._text is not None:
            return self._text
        try:
            return json.dumps(self._data)
        except Exception:
            return str(self._data)


class FakeSession:
    """Records calls and answers each one through ``responder``."""

    def __init__(self, responder: Callable[..., Any]):
        self.responder = responder
        self.calls: List[Dict[str, Any]] = []

    def _dispatch(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        result = self.responder(method, url, **kwargs)
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._dispatch("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._dispatch("POST", url, **kwargs)


# --- Factory helpers -------------------------------------------------
def make_line(count, *, start=(0.0, 0.0), step=(0.001, 0.0)):
    return [
        Point(start[0] + step[0] * i, start[1] + step[1] * i, timestamp=float(i))
        for i in range(count)
    ]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def fake_session_factory():
    return FakeSession


@pytest.fixture
def straight_line():
    return make_line(5)


@pytest.fixture
def beijing_points():
    return [
        Point(116.3975, 39.9087, speed=30.0, heading=90.0, timestamp=1_700_000_000),
        Point(116.3985, 39.9087, timestamp=1_700_000_005),
        Point(116.3995, 39.9088, timestamp=1_700_000_010),
    ]
