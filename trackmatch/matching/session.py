"""HTTP session factory for map-matching provider calls."""

from __future__ import annotations

import threading
from typing import Optional

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import HTTP_MAX_RETRIES, HTTP_POOL_CONNECTIONS, HTTP_POOL_MAXSIZE

__all__ = ["create_provider_session", "get_default_session"]

USER_AGENT = "trackmatch/0.1"

_RETRY_STATUSES = (500, 502, 503, 504)

_default_session: Optional[Session] = None
_default_lock = threading.Lock()


def create_provider_session(
    max_retries: int = HTTP_MAX_RETRIES,
    pool_size: int = HTTP_POOL_MAXSIZE,
) -> Session:
    """Build a pooled session that retries provider 5xx answers.

    The last 5xx response is returned rather than raised so the provider can
    log its body before falling back to raw points.
    """

    retry = Retry(
        total=max_retries,
        backoff_factor=0.5,
        status_forcelist=_RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "POST"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(
        pool_connections=HTTP_POOL_CONNECTIONS,
        pool_maxsize=pool_size,
        max_retries=retry,
    )
    session = requests.Session()
    for prefix in ("https://", "http://"):
        session.mount(prefix, adapter)
    session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
    return session


def get_default_session() -> Session:
    """Return the session shared by providers built without one."""

    global _default_session
    with _default_lock:
        if _default_session is None:
            _default_session = create_provider_session()
        return _default_session
