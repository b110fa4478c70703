import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from src.common.cache import CacheService
from src.common.exceptions import UpstreamError
from src.common.storage import StorageService
from src.common.storage.storage_service import sign_params


def redis_transport(counters):
    """Answer Upstash REST commands from a dict of counters."""

    def handler(request: httpx.Request) -> httpx.Response:
        command = json.loads(request.content)
        name = command[0]
        if name == "INCR":
            counters[command[1]] = counters.get(command[1], 0) + 1
            return httpx.Response(200, json={"result": counters[command[1]]})
        if name == "TTL":
            return httpx.Response(200, json={"result": 42})
        if name == "GET":
            return httpx.Response(200, json={"result": json.dumps({"total_patients": 3})})
        return httpx.Response(200, json={"result": "OK"})

    return httpx.MockTransport(handler)


async def test_rate_limit_counts_requests_in_window():
    counters = {}
    cache = CacheService("https://redis.example.test", "token", client=httpx.AsyncClient(transport=redis_transport(counters)))

    first = await cache.check_rate_limit("suggest:user-1", max_requests=2, window_seconds=60)
    second = await cache.check_rate_limit("suggest:user-1", max_requests=2, window_seconds=60)
    third = await cache.check_rate_limit("suggest:user-1", max_requests=2, window_seconds=60)

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert third.allowed is False
    assert counters == {"rate_limit:suggest:user-1": 3}
    await cache.close()


async def test_cache_get_decodes_json():
    cache = CacheService("https://redis.example.test", "token", client=httpx.AsyncClient(transport=redis_transport({})))
    assert await cache.get("stats:abc") == {"total_patients": 3}
    await cache.close()


async def test_cache_failures_are_swallowed_as_misses():
    failing = httpx.MockTransport(lambda request: httpx.Response(503))
    cache = CacheService("https://redis.example.test", "token", client=httpx.AsyncClient(transport=failing))

    assert await cache.get("stats:abc") is None
    assert await cache.set("stats:abc", {"a": 1}, ttl_seconds=60) is False
    limit = await cache.check_rate_limit("suggest:x", max_requests=5, window_seconds=60)
    assert limit.allowed is True
    await cache.close()


async def test_unconfigured_cache_is_disabled():
    cache = CacheService("", "")
    assert cache.enabled is False
    assert await cache.get("anything") is None
    assert (await cache.check_rate_limit("x", 1, 60)).allowed is True
    await cache.close()


def test_signature_ignores_empty_params():
    with_empty = sign_params({"public_id": "a", "folder": "", "timestamp": 1}, "secret")
    without = sign_params({"public_id": "a", "timestamp": 1}, "secret")
    assert with_empty == without
    assert len(without) == 40


async def test_upload_posts_signed_form():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content
        return httpx.Response(200, json={
            "public_id": "medical_reports/p1/report_1",
            "secure_url": "https://res.example.test/report_1.pdf",
            "format": "pdf",
            "bytes": 5,
        })

    storage = StorageService("demo", "key", "secret", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    stored = await storage.upload(b"%PDF-", "r.pdf", "application/pdf", folder="medical_reports/p1", public_id="report_1")

    assert stored.public_id == "medical_reports/p1/report_1"
    assert stored.format == "pdf"
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/auto/upload"
    assert b'name="signature"' in seen["body"]
    await storage.close()


async def test_upload_failure_becomes_upstream_error():
    storage = StorageService(
        "demo", "key", "secret",
        client=httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500))),
    )
    with pytest.raises(UpstreamError) as exc_info:
        await storage.upload(b"x", "r.pdf", "application/pdf", folder="f", public_id="p")
    assert exc_info.value.message == "Internal server error"
    assert "500" in exc_info.value.detail
    await storage.close()


async def test_signed_download_url_expires():
    storage = StorageService("demo", "key", "secret")
    url = storage.signed_download_url("medical_reports/p1/report_1", file_format="pdf", expires_in=3600)
    parsed = urlparse(url)
    query = parse_qs(parsed.query)

    assert parsed.path == "/v1_1/demo/image/download"
    assert query["public_id"] == ["medical_reports/p1/report_1"]
    assert int(query["expires_at"][0]) > int(query["timestamp"][0])
    assert "signature" in query
    await storage.close()


def test_unconfigured_storage_refuses_to_sign():
    storage = StorageService("", "", "")
    with pytest.raises(UpstreamError):
        storage.signed_download_url("anything")
