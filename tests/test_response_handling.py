"""Tests for provider response parsing and error summaries."""

from __future__ import annotations

import pytest

from conftest import FakeResp
from trackmatch.errors import ProviderError
from trackmatch.matching.response_handling import (
    describe_failure,
    mask_secret,
    parse_json,
)


def test_parse_json_returns_object_body():
    assert parse_json(FakeResp(200, {"code": "Ok"}), "ctx") == {"code": "Ok"}


def test_parse_json_error_carries_provider_detail():
    resp = FakeResp(422, {"code": "InvalidInput", "message": "Too many coordinates"})
    with pytest.raises(ProviderError) as excinfo:
        parse_json(resp, "Mapbox map matching")
    message = str(excinfo.value)
    assert "status 422" in message
    assert "Too many coordinates" in message
    assert "code:InvalidInput" in message


def test_amap_error_codes_are_summarised():
    resp = FakeResp(400, {"errcode": 10001, "errmsg": "INVALID_USER_KEY", "errdetail": "bad key"})
    assert describe_failure(resp, resp.json()) == "INVALID_USER_KEY | bad key | errcode:10001"


def test_non_json_failure_uses_trimmed_text():
    resp = FakeResp(502, text="  " + "x" * 400)
    detail = describe_failure(resp)
    assert detail.endswith("...")
    assert len(detail) == 300


@pytest.mark.parametrize(
    "resp",
    [FakeResp(200, ValueError("bad json"), text="<html>"), FakeResp(200, [1, 2])],
)
def test_parse_json_rejects_unusable_bodies(resp):
    with pytest.raises(ProviderError):
        parse_json(resp, "AMap grasproad")


def test_mask_secret_keeps_last_four():
    assert mask_secret("pk.abcdef1234") == "****1234"
    assert mask_secret("") == ""
