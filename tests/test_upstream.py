from __future__ import annotations

import httpx
import pytest

from storefront_core.api.errors import classify
from storefront_core.clients.upstream import request_json, translate_upstream_error
from storefront_core.core.exceptions import (
    RateLimitError,
    ServiceUnavailableError,
    UpstreamError,
    UpstreamTimeoutError,
)


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://member")


async def _call(handler):
    async with _client(handler) as client:
        return await request_json(
            client, "GET", "/members/m-1", service="member-service", operation="get_member"
        )


@pytest.mark.asyncio
async def test_success_returns_json():
    result = await _call(lambda request: httpx.Response(200, json={"id": "m-1"}))
    assert result == {"id": "m-1"}


@pytest.mark.asyncio
async def test_rate_limited_upstream():
    with pytest.raises(RateLimitError) as info:
        await _call(lambda request: httpx.Response(429))
    assert info.value.status_code == 429
    assert info.value.details["service"] == "member-service"
    assert isinstance(info.value.cause, httpx.HTTPStatusError)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [500, 502, 503, 504])
async def test_server_failures_mean_unavailable(status):
    with pytest.raises(ServiceUnavailableError) as info:
        await _call(lambda request: httpx.Response(status))
    assert info.value.status_code == 503
    assert info.value.service == "member-service"


@pytest.mark.asyncio
async def test_rejected_credentials_are_bad_gateway():
    with pytest.raises(UpstreamError) as info:
        await _call(lambda request: httpx.Response(401))
    assert type(info.value) is UpstreamError
    assert info.value.status_code == 502


@pytest.mark.asyncio
async def test_other_statuses_are_kept():
    with pytest.raises(UpstreamError) as info:
        await _call(lambda request: httpx.Response(404))
    assert info.value.status_code == 404
    assert classify(info.value).error == "UpstreamError"


@pytest.mark.asyncio
async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamTimeoutError) as info:
        await _call(handler)
    assert info.value.status_code == 504
    assert "get_member" in info.value.message


@pytest.mark.asyncio
async def test_connection_refused():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ServiceUnavailableError):
        await _call(handler)


@pytest.mark.asyncio
async def test_invalid_json_body():
    with pytest.raises(UpstreamError) as info:
        await _call(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
    assert "invalid response format" in info.value.message


def test_app_errors_pass_through():
    err = RateLimitError("already classified")
    assert translate_upstream_error(err, service="s", operation="o") is err


def test_unknown_failure_becomes_internal_upstream_error():
    err = translate_upstream_error(RuntimeError("weird"), service="auth", operation="login")
    assert isinstance(err, UpstreamError)
    assert err.status_code == 500
    assert isinstance(err.cause, RuntimeError)
