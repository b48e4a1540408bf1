"""
Media fetching for campaign images.
"""

import logging
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import urlparse

import requests

from fundguard.config import settings

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class MediaFetchError(Exception):
    """Image bytes could not be retrieved."""


class MediaFetcher(Protocol):
    def fetch_image_bytes(self, reference: str) -> bytes:
        ...


class HttpMediaFetcher:
    """
    Fetches images over HTTP(S), or from disk for file:// and plain paths
    when local media is allowed (uploads kept on the same host).
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        max_bytes: Optional[int] = None,
        allow_local: Optional[bool] = None,
    ):
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", settings.media_user_agent)
        self.timeout = timeout or settings.media_fetch_timeout
        self.max_bytes = max_bytes or settings.max_image_bytes
        self.allow_local = settings.allow_local_media if allow_local is None else allow_local

    def fetch_image_bytes(self, reference: str) -> bytes:
        if not reference:
            raise MediaFetchError("empty image reference")

        scheme = urlparse(reference).scheme.lower()
        if scheme in ("http", "https"):
            return self._fetch_remote(reference)
        if scheme in ("", "file") and self.allow_local:
            return self._read_local(reference)
        raise MediaFetchError(f"unsupported image reference: {reference}")

    def _fetch_remote(self, url: str) -> bytes:
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as resp:
                resp.raise_for_status()
                buffer = bytearray()
                for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                    buffer.extend(chunk)
                    if len(buffer) > self.max_bytes:
                        raise MediaFetchError(f"image exceeds {self.max_bytes} bytes: {url}")
                return bytes(buffer)
        except requests.RequestException as e:
            logger.warning(f"Image download failed for {url}: {e}")
            raise MediaFetchError(str(e)) from e

    def _read_local(self, reference: str) -> bytes:
        path = Path(urlparse(reference).path if reference.startswith("file://") else reference)
        try:
            if path.stat().st_size > self.max_bytes:
                raise MediaFetchError(f"image exceeds {self.max_bytes} bytes: {path}")
            return path.read_bytes()
        except OSError as e:
            raise MediaFetchError(str(e)) from e
