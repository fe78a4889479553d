"""Tests for the HTTP marketplace backend."""

import json

import httpx
import pytest

from tradeflow.backends import HttpBackend
from tradeflow.errors import AssetUploadError, BackendError, EligibilityCheckError, PersistenceError

BASE = "https://api.example.test"


def _backend(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE)
    return HttpBackend(BASE, api_key="anon", client=client)


@pytest.mark.asyncio
async def test_check_eligibility_maps_response():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(
            200,
            json={"can_post": False, "reason": "job_limit_exceeded", "jobs_used": 5, "jobs_limit": 5},
        )

    response = await _backend(handler).check_eligibility("user-1", "job")
    assert seen == {
        "path": "/rest/v1/rpc/can_user_post_job",
        "body": {"user_id_param": "user-1"},
        "auth": "Bearer user-1",
    }
    assert response.allowed is False
    assert response.reason == "job_limit_exceeded"
    assert response.current_usage == 5
    assert response.limit == 5


@pytest.mark.asyncio
async def test_check_eligibility_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    with pytest.raises(EligibilityCheckError, match="boom"):
        await _backend(handler).check_eligibility("user-1", "job")


@pytest.mark.asyncio
async def test_check_eligibility_malformed_answer():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": True})

    with pytest.raises(EligibilityCheckError, match="verify posting permissions"):
        await _backend(handler).check_eligibility("user-1", "job")


@pytest.mark.asyncio
async def test_upload_asset_returns_public_url():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/storage/v1/object/job-photos/user-1/1.jpg"
        assert request.headers["Content-Type"] == "image/jpeg"
        assert request.content == b"jpeg-bytes"
        return httpx.Response(200, json={"Key": "job-photos/user-1/1.jpg"})

    url = await _backend(handler).upload_asset("user-1/1.jpg", b"jpeg-bytes")
    assert url == f"{BASE}/storage/v1/object/public/job-photos/user-1/1.jpg"


@pytest.mark.asyncio
async def test_upload_asset_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"message": "mime type not supported"})

    with pytest.raises(AssetUploadError, match="mime type not supported"):
        await _backend(handler).upload_asset("user-1/1.png", b"x", "image/png")


@pytest.mark.asyncio
async def test_insert_record_returns_stored_row():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/v1/jobs"
        assert request.headers["Prefer"] == "return=representation"
        row = json.loads(request.content)
        return httpx.Response(201, json=[{**row, "id": "job-1"}])

    stored = await _backend(handler).insert_record("jobs", {"title": "Plumber"})
    assert stored == {"title": "Plumber", "id": "job-1"}


@pytest.mark.asyncio
async def test_insert_record_error_message_is_verbatim():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409,
            json={
                "message": 'new row violates check constraint "salary_range"',
                "code": "23514",
                "details": "Failing row contains ...",
                "hint": None,
            },
        )

    with pytest.raises(PersistenceError) as excinfo:
        await _backend(handler).insert_record("jobs", {"title": "Plumber"})
    assert excinfo.value.message == 'new row violates check constraint "salary_range"'
    assert excinfo.value.code == "23514"
    assert excinfo.value.details == {"details": "Failing row contains ..."}


@pytest.mark.asyncio
async def test_insert_record_error_without_body():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    with pytest.raises(PersistenceError, match="HTTP 503"):
        await _backend(handler).insert_record("jobs", {})


@pytest.mark.asyncio
async def test_increment_usage_posts_kind():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, json.loads(request.content)))
        return httpx.Response(204)

    await _backend(handler).increment_usage("user-1", "job")
    assert calls == [
        (
            "/rest/v1/rpc/increment_subscription_usage",
            {"user_id_param": "user-1", "usage_type": "job"},
        )
    ]


@pytest.mark.asyncio
async def test_increment_usage_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "counter locked"})

    with pytest.raises(BackendError, match="counter locked"):
        await _backend(handler).increment_usage("user-1", "job")


@pytest.mark.asyncio
async def test_fetch_pricing_policy():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/v1/rpc/get_job_posting_pricing"
        return httpx.Response(200, json={"is_free": True, "default_price": 0, "prices": {"7_days": 8}})

    policy = await _backend(handler).fetch_pricing_policy()
    assert policy.is_free_by_default is True
    assert policy.free_options == ["3_days"]
    assert str(policy.prices["7_days"]) == "8"
