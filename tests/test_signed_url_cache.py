"""Tests for signed URL resolution."""

import json
import pytest
import httpx

from healthrecords.core.signed_url_cache import (
    SignedUrlCache,
    extract_file_key,
    is_signed_url,
    is_storage_url,
)

from conftest import make_async_client

ENDPOINT = "http://signer.test/api/upload/getSignedUrl"
STORAGE_URL = "https://bucket.s3.ap-south-1.amazonaws.com/reports/blood%20test.pdf"


def signing_service(status_code=200, body=None, calls=None):
    """Mock signing endpoint recording the JSON payload of each call."""
    def handler(request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        if calls is not None:
            calls.append(payload)
        if body is not None:
            return httpx.Response(status_code, json=body)
        return httpx.Response(status_code, json={"success": True, "url": f"https://signed.test/{payload['fileKey']}?X-Amz-Signature=sig"})
    return handler


class TestUrlHelpers:
    def test_is_signed_url(self):
        assert is_signed_url("https://b.s3.amazonaws.com/k?X-Amz-Algorithm=AWS4&X-Amz-Signature=abc")
        assert is_signed_url("https://b.s3.amazonaws.com/k?AWSAccessKeyId=1&Expires=2")
        assert is_signed_url("https://cdn.test/k?Signature=abc")
        assert not is_signed_url(STORAGE_URL)
        assert not is_signed_url(None)

    def test_is_storage_url(self):
        assert is_storage_url(STORAGE_URL)
        assert is_storage_url("https://s3.us-east-1.wasabisys.test/k")
        assert not is_storage_url("https://cdn.example.com/a.pdf")

    def test_extract_key_virtual_hosted(self):
        assert extract_file_key(STORAGE_URL) == "reports/blood test.pdf"

    def test_extract_key_path_style(self):
        assert extract_file_key("https://s3.ap-south-1.amazonaws.com/bucket/reports/a.jpg?x=1") == "reports/a.jpg"
        assert extract_file_key("https://s3-eu-west-1.amazonaws.com/bucket/a.jpg") == "a.jpg"

    def test_extract_key_bare_key(self):
        assert extract_file_key("reports/a.jpg") == "reports/a.jpg"

    def test_extract_key_failures(self):
        assert extract_file_key("") is None
        assert extract_file_key(None) is None
        assert extract_file_key("https://bucket.s3.amazonaws.com/") is None


class TestResolve:
    @pytest.mark.asyncio
    async def test_already_signed_url_is_returned_unchanged(self):
        calls = []
        url = "https://bucket.s3.amazonaws.com/a.pdf?X-Amz-Signature=abc"
        async with make_async_client(signing_service(calls=calls)) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve(url) == url

        assert cache.cache[url] == url
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_storage_url_passes_through(self):
        async with make_async_client(signing_service()) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve("https://cdn.example.com/a.pdf") == "https://cdn.example.com/a.pdf"
        assert cache.missing == set()

    @pytest.mark.asyncio
    async def test_storage_url_is_signed_and_cached(self):
        calls = []
        async with make_async_client(signing_service(calls=calls)) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, expires_in=3600, client=client)
            first = await cache.resolve(STORAGE_URL)
            second = await cache.resolve(STORAGE_URL)

        assert first == "https://signed.test/reports/blood test.pdf?X-Amz-Signature=sig"
        assert second == first
        assert calls == [{"fileKey": "reports/blood test.pdf", "expiresIn": 3600}]

    @pytest.mark.asyncio
    async def test_not_found_marks_missing(self):
        async with make_async_client(signing_service(404, {"error": "File not found"})) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve(STORAGE_URL) is None

        assert cache.is_missing(STORAGE_URL)
        assert STORAGE_URL not in cache.cache

    @pytest.mark.asyncio
    async def test_access_denied_marks_missing(self):
        async with make_async_client(signing_service(403, {"error": "Access Denied"})) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve(STORAGE_URL) is None
        assert cache.is_missing(STORAGE_URL)

    @pytest.mark.asyncio
    async def test_server_error_marks_missing(self):
        async with make_async_client(signing_service(500, {"error": "boom"})) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve(STORAGE_URL) is None
        assert cache.is_missing(STORAGE_URL)

    @pytest.mark.asyncio
    async def test_response_without_url_marks_missing(self):
        async with make_async_client(signing_service(200, {"success": False})) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve(STORAGE_URL) is None
        assert cache.is_missing(STORAGE_URL)

    @pytest.mark.asyncio
    async def test_transport_error_marks_missing(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_async_client(handler) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve(STORAGE_URL) is None
        assert cache.is_missing(STORAGE_URL)

    @pytest.mark.asyncio
    async def test_empty_and_unextractable_urls(self):
        async with make_async_client(signing_service()) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            assert await cache.resolve("") is None
            assert await cache.resolve("https://bucket.s3.amazonaws.com/") is None
        assert cache.is_missing("https://bucket.s3.amazonaws.com/")

    @pytest.mark.asyncio
    async def test_resolve_many_and_clear(self):
        other = "https://bucket.s3.amazonaws.com/reports/b.png"
        async with make_async_client(signing_service()) as client:
            cache = SignedUrlCache(endpoint=ENDPOINT, client=client)
            resolved = await cache.resolve_many([STORAGE_URL, other, "https://cdn.example.com/c.jpg"])

        assert list(resolved) == [STORAGE_URL, other, "https://cdn.example.com/c.jpg"]
        assert resolved[other] == "https://signed.test/reports/b.png?X-Amz-Signature=sig"
        assert resolved["https://cdn.example.com/c.jpg"] == "https://cdn.example.com/c.jpg"
        assert len(cache.cache) == 2

        cache.clear()
        assert cache.cache == {}
        assert cache.missing == set()
