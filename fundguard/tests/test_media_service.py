"""Tests for the image fetcher."""

import pytest
import requests

from fundguard.services.media_service import HttpMediaFetcher, MediaFetchError


class FakeResponse:
    def __init__(self, chunks, status_code=200):
        self.chunks = chunks
        self.status_code = status_code

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        yield from self.chunks


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, timeout=None, stream=False):
        self.requests.append((url, timeout, stream))
        if self.error:
            raise self.error
        return self.response


class TestRemoteFetch:
    """Tests for http(s) references."""

    def test_streams_body(self):
        """Chunks are joined and the request is streamed with a timeout."""
        session = FakeSession(FakeResponse([b"abc", b"def"]))
        fetcher = HttpMediaFetcher(session=session, timeout=3)

        assert fetcher.fetch_image_bytes("https://img.example/a.png") == b"abcdef"
        assert session.requests == [("https://img.example/a.png", 3, True)]
        assert "User-Agent" in session.headers

    def test_size_limit(self):
        """Bodies over max_bytes are rejected."""
        session = FakeSession(FakeResponse([b"x" * 10, b"x" * 10]))
        fetcher = HttpMediaFetcher(session=session, max_bytes=15)

        with pytest.raises(MediaFetchError):
            fetcher.fetch_image_bytes("https://img.example/big.png")

    def test_http_error(self):
        """Error status codes become MediaFetchError."""
        fetcher = HttpMediaFetcher(session=FakeSession(FakeResponse([], status_code=404)))

        with pytest.raises(MediaFetchError):
            fetcher.fetch_image_bytes("https://img.example/missing.png")

    def test_connection_error(self):
        """Transport errors become MediaFetchError."""
        session = FakeSession(error=requests.ConnectionError("refused"))
        fetcher = HttpMediaFetcher(session=session)

        with pytest.raises(MediaFetchError):
            fetcher.fetch_image_bytes("http://img.example/a.png")


class TestLocalFetch:
    """Tests for file references."""

    def test_plain_path(self, tmp_path):
        """Filesystem paths are read directly."""
        path = tmp_path / "cover.png"
        path.write_bytes(b"pngdata")
        fetcher = HttpMediaFetcher(session=FakeSession(), allow_local=True)

        assert fetcher.fetch_image_bytes(str(path)) == b"pngdata"

    def test_file_url(self, tmp_path):
        """file:// references are read from disk."""
        path = tmp_path / "cover.png"
        path.write_bytes(b"pngdata")
        fetcher = HttpMediaFetcher(session=FakeSession(), allow_local=True)

        assert fetcher.fetch_image_bytes(path.as_uri()) == b"pngdata"

    def test_missing_file(self, tmp_path):
        """A missing file raises MediaFetchError."""
        fetcher = HttpMediaFetcher(session=FakeSession(), allow_local=True)

        with pytest.raises(MediaFetchError):
            fetcher.fetch_image_bytes(str(tmp_path / "nope.png"))

    def test_local_disabled(self, tmp_path):
        """Local references are refused when local media is off."""
        path = tmp_path / "cover.png"
        path.write_bytes(b"pngdata")
        fetcher = HttpMediaFetcher(session=FakeSession(), allow_local=False)

        with pytest.raises(MediaFetchError):
            fetcher.fetch_image_bytes(str(path))

    @pytest.mark.parametrize("reference", ["", "ftp://img.example/a.png"])
    def test_unsupported_reference(self, reference):
        """Empty and unknown-scheme references are rejected."""
        with pytest.raises(MediaFetchError):
            HttpMediaFetcher(session=FakeSession()).fetch_image_bytes(reference)
