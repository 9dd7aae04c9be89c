"""Shared HTTP response helpers for provider interactions."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..errors import ProviderError

LOGGER = logging.getLogger(__name__)

_MAX_DETAIL_CHARS = 300

_NOT_JSON = object()

__all__ = [
    "describe_failure",
    "parse_json",
    "mask_secret",
]


def parse_json(resp: requests.Response, context: str) -> Dict[str, Any]:
    """Return the JSON object body of a 2xx response or raise ``ProviderError``."""

    body = _decode(resp)
    status = resp.status_code
    if not 200 <= status < 300:
        detail = describe_failure(resp, body)
        message = f"{context} request failed (status {status})"
        raise ProviderError(f"{message} | {detail}" if detail else message)
    if body is _NOT_JSON:
        raise ProviderError(f"{context} returned a non-JSON body")
    if not isinstance(body, dict):
        raise ProviderError(f"{context} returned an unexpected payload type")
    return body


def describe_failure(resp: requests.Response, body: Any = _NOT_JSON) -> Optional[str]:
    """Summarise a provider error body (message plus codes) for logs.

    Mapbox answers ``{"code", "message"}`` and AMap ``{"errcode", "errmsg",
    "errdetail"}``; anything that is not JSON falls back to trimmed text.
    """

    if body is _NOT_JSON:
        text = getattr(resp, "text", "")
        if not isinstance(text, str) or not text.strip():
            return None
        text = text.strip()
        if len(text) > _MAX_DETAIL_CHARS:
            text = text[: _MAX_DETAIL_CHARS - 3] + "..."
        return text
    if not isinstance(body, dict):
        return None
    parts: List[str] = [
        str(body[key]) for key in ("message", "errmsg", "errdetail") if body.get(key)
    ]
    parts.extend(
        f"{key}:{body[key]}"
        for key in ("code", "errcode")
        if body.get(key) not in (None, "", 0, "Ok")
    )
    return " | ".join(parts) if parts else None


def mask_secret(secret: str) -> str:
    """Return the secret reduced to its last four characters for logs."""

    return f"****{secret[-4:]}" if secret else ""


def _decode(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        LOGGER.debug("Non-JSON body from %s: %s", getattr(resp, "url", "?"), exc)
        return _NOT_JSON
