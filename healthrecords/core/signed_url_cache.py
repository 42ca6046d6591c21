"""Per-session resolution of storage URLs into access-ready signed URLs."""

import asyncio
from typing import Dict, Iterable, Optional, Set
from urllib.parse import unquote, urlparse

import httpx

from ..config import settings
from ..utils.log_utils import storage_logger, log_signed_url_event

SIGNATURE_MARKERS = ("X-Amz-Algorithm", "X-Amz-Signature", "AWSAccessKeyId")
STORAGE_HOST_MARKERS = ("amazonaws.com", "s3.")


def is_signed_url(url: Optional[str]) -> bool:
    """True when the URL already carries storage signing parameters."""
    if not url or not isinstance(url, str):
        return False
    if any(marker in url for marker in SIGNATURE_MARKERS):
        return True
    return "?" in url and "Signature=" in url


def is_storage_url(url: Optional[str]) -> bool:
    if not url or not isinstance(url, str):
        return False
    return any(marker in url for marker in STORAGE_HOST_MARKERS)


def extract_file_key(url: Optional[str]) -> Optional[str]:
    """Object key of a storage URL.

    Virtual-hosted style (``bucket.s3.region.amazonaws.com/key``) keeps the
    whole path; path style (``s3.region.amazonaws.com/bucket/key``) drops the
    bucket segment. A value without a scheme is taken to be the key already.
    Percent-escapes are decoded.
    """
    if not url or not isinstance(url, str):
        storage_logger.error(f"Invalid URL provided for key extraction: {url!r}")
        return None

    base_url = url.split("?")[0]
    if not (base_url.startswith("http://") or base_url.startswith("https://")):
        return base_url or None

    try:
        parsed = urlparse(base_url)
    except ValueError as e:
        storage_logger.error(f"Error extracting file key from URL {base_url}: {e}")
        return None

    file_key = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
    hostname = parsed.hostname or ""
    if hostname.startswith("s3.") or hostname.startswith("s3-"):
        parts = file_key.split("/")
        if len(parts) > 1:
            file_key = "/".join(parts[1:])

    if not file_key or not file_key.strip():
        storage_logger.error(f"Empty file key extracted from URL: {base_url}")
        return None

    return unquote(file_key)


class SignedUrlCache:
    """Cache of raw URL -> signed URL for one viewing session.

    URLs that could not be resolved are remembered in ``missing`` so a
    session does not hammer the signing endpoint for files that are gone.
    Create one per session (or call ``clear()`` when a session starts).
    """

    def __init__(self, endpoint: Optional[str] = None, expires_in: Optional[int] = None, client: Optional[httpx.AsyncClient] = None):
        self.endpoint = endpoint or settings.SIGNED_URL_ENDPOINT
        self.expires_in = expires_in or settings.SIGNED_URL_EXPIRES_IN
        self._client = client
        self.cache: Dict[str, str] = {}
        self.missing: Set[str] = set()

    def clear(self) -> None:
        self.cache.clear()
        self.missing.clear()

    def is_missing(self, url: str) -> bool:
        return url in self.missing

    def _mark_missing(self, url: str, file_key: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.missing.add(url)
        log_signed_url_event(storage_logger, url, "missing", file_key, status_code)

    async def _request_signed_url(self, file_key: str) -> httpx.Response:
        payload = {"fileKey": file_key, "expiresIn": self.expires_in}
        if self._client is not None:
            return await self._client.post(self.endpoint, json=payload)
        async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
            return await client.post(self.endpoint, json=payload)

    async def resolve(self, url: Optional[str]) -> Optional[str]:
        """Access-ready URL for ``url``, or None when it cannot be resolved."""
        if not url or not url.strip():
            storage_logger.error("Empty URL provided for signing")
            self._mark_missing(url or "")
            return None

        if is_signed_url(url):
            self.cache[url] = url
            log_signed_url_event(storage_logger, url, "passthrough")
            return url

        if not is_storage_url(url):
            log_signed_url_event(storage_logger, url, "passthrough")
            return url

        file_key = extract_file_key(url)
        if not file_key:
            self._mark_missing(url)
            return None

        if url in self.cache:
            log_signed_url_event(storage_logger, url, "cached", file_key)
            return self.cache[url]

        try:
            response = await self._request_signed_url(file_key)
        except httpx.HTTPError as e:
            storage_logger.error(f"Error requesting signed URL for {file_key}: {e}")
            self._mark_missing(url, file_key)
            return None

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code == 404 or data.get("error") == "File not found":
            storage_logger.error(f"File not found in storage: {file_key}")
            self._mark_missing(url, file_key, response.status_code)
            return None

        if response.status_code == 403 or data.get("error") == "Access Denied":
            storage_logger.error(f"Access denied to file in storage: {file_key}")
            self._mark_missing(url, file_key, response.status_code)
            return None

        if response.is_error:
            storage_logger.error(f"Unexpected error getting signed URL for {file_key}: HTTP {response.status_code}")
            self._mark_missing(url, file_key, response.status_code)
            return None

        signed_url = data.get("url")
        if not data.get("success") or not signed_url:
            storage_logger.error(f"Invalid response from signing endpoint for {file_key}: {data}")
            self._mark_missing(url, file_key, response.status_code)
            return None

        self.cache[url] = signed_url
        log_signed_url_event(storage_logger, url, "signed", file_key, response.status_code)
        return signed_url

    async def resolve_many(self, urls: Iterable[str]) -> Dict[str, Optional[str]]:
        """Resolve all URLs concurrently; returns once every lookup settles."""
        urls = list(urls)
        results = await asyncio.gather(*(self.resolve(url) for url in urls))
        return dict(zip(urls, results))
