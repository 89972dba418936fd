"""
Tests for confload.sources package.

Tests byte fetching including:
- Fetcher registry
- Local file reads (regular files and FIFOs)
- HTTP GET status handling and transport errors
- file:// fallback through the HTTP transport
- Google Cloud Storage reads (mocked client)
"""

from __future__ import annotations

import os
from pathlib import Path
import threading
from unittest.mock import MagicMock

from google.api_core.exceptions import NotFound
from google.auth.exceptions import DefaultCredentialsError
import pytest
import requests
import requests_mock

from confload.config import FetchSettings
from confload.exceptions import (
    FetchError,
    LoadFailedError,
    LocalReadError,
    StorageError,
)
from confload.locator import Locator, SourceKind
from confload.logging import SilentLogger
from confload.sources import (
    Fetcher,
    HttpFetcher,
    LocalFileFetcher,
    ObjectStorageFetcher,
    get_fetcher,
    make_session,
    register_fetcher,
)


def _file_locator(path: Path) -> Locator:
    return Locator.parse(path.resolve().as_uri())


class TestFetcherRegistry:
    """Tests for fetcher registration and lookup."""

    @pytest.mark.parametrize(
        "kind,cls",
        [
            (SourceKind.LOCAL_FILE, LocalFileFetcher),
            (SourceKind.HTTP, HttpFetcher),
            (SourceKind.OBJECT_STORAGE, ObjectStorageFetcher),
        ],
    )
    def test_builtin_fetchers_registered(self, kind, cls):
        """Test that importing confload.sources registers every backend."""
        assert isinstance(get_fetcher(kind), cls)

    def test_register_replaces_backend(self):
        """Test that a registration can be overridden and restored."""

        class CannedFetcher:
            def __init__(self, settings, logger):
                pass

            def fetch(self, locator):
                return b"canned"

        register_fetcher(SourceKind.HTTP, CannedFetcher)
        try:
            fetcher = Fetcher()
            assert fetcher.fetch(Locator.parse("https://h/x.yaml")) == b"canned"
        finally:
            register_fetcher(SourceKind.HTTP, HttpFetcher)

    def test_explicit_backends_win(self):
        """Test that backends passed to Fetcher bypass the registry."""
        backend = MagicMock()
        backend.fetch.return_value = b"from backend"
        fetcher = Fetcher(backends={SourceKind.OBJECT_STORAGE: backend})

        assert fetcher.fetch(Locator.parse("gs://b/o.yaml")) == b"from backend"


class TestLocalFile:
    """Tests for LocalFileFetcher."""

    def test_reads_file(self, tmp_test_dir):
        """Test that a regular file is read in full."""
        path = tmp_test_dir / "app.yaml"
        path.write_bytes(b"name: app\n")

        fetcher = LocalFileFetcher(FetchSettings(), SilentLogger())
        assert fetcher.fetch(_file_locator(path)) == b"name: app\n"

    def test_reads_percent_encoded_path(self, tmp_test_dir):
        """Test that escaped characters in the URL path are decoded."""
        path = tmp_test_dir / "my app.yaml"
        path.write_bytes(b"x: 1\n")

        fetcher = LocalFileFetcher(FetchSettings(), SilentLogger())
        assert fetcher.fetch(_file_locator(path)) == b"x: 1\n"

    def test_missing_file_raises(self, tmp_test_dir):
        """Test that read failures raise LocalReadError chaining the OSError."""
        fetcher = LocalFileFetcher(FetchSettings(), SilentLogger())

        with pytest.raises(LocalReadError) as exc_info:
            fetcher.fetch(_file_locator(tmp_test_dir / "missing.yaml"))

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="requires named pipes")
    def test_reads_named_pipe(self, tmp_test_dir):
        """Test that non-regular files such as FIFOs can be read."""
        fifo = tmp_test_dir / "config.fifo"
        os.mkfifo(fifo)

        def writer() -> None:
            with open(fifo, "wb") as f:
                f.write(b"from: pipe\n")

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            fetcher = LocalFileFetcher(FetchSettings(), SilentLogger())
            assert fetcher.fetch(_file_locator(fifo)) == b"from: pipe\n"
        finally:
            thread.join(timeout=5)


class TestHttp:
    """Tests for HttpFetcher."""

    @pytest.fixture
    def fetcher(self, recording_logger) -> HttpFetcher:
        return HttpFetcher(FetchSettings(), recording_logger)

    def test_fetch_success(self, fetcher):
        """Test that a 200 response returns the body."""
        url = "https://cfg.example.com/app.yaml"

        with requests_mock.Mocker() as m:
            m.get(url, content=b"name: app\n")
            data = fetcher.fetch(Locator.parse(url))

        assert data == b"name: app\n"

    def test_empty_body_succeeds(self, fetcher):
        """Test that a 200 with no body returns empty bytes."""
        url = "https://cfg.example.com/empty.yaml"

        with requests_mock.Mocker() as m:
            m.get(url, content=b"")
            data = fetcher.fetch(Locator.parse(url))

        assert data == b""

    def test_not_found_raises_load_failed(self, fetcher):
        """Test that a 404 carries the status code and locator."""
        locator = Locator.parse("https://cfg.example.com/missing.yaml")

        with requests_mock.Mocker() as m:
            m.get(str(locator), status_code=404, text="not here")
            with pytest.raises(LoadFailedError) as exc_info:
                fetcher.fetch(locator)

        assert exc_info.value.status_code == 404
        assert exc_info.value.locator == locator
        assert "404" in str(exc_info.value)

    @pytest.mark.parametrize("status", [201, 204, 500])
    def test_only_200_is_success(self, fetcher, status):
        """Test that other 2xx codes are failures too."""
        url = "https://cfg.example.com/app.yaml"

        with requests_mock.Mocker() as m:
            m.get(url, status_code=status)
            with pytest.raises(LoadFailedError) as exc_info:
                fetcher.fetch(Locator.parse(url))

        assert exc_info.value.status_code == status

    def test_follows_redirects(self, fetcher):
        """Test that redirects are followed to the final 200."""
        start = "https://cfg.example.com/start.yaml"
        final = "https://cdn.example.com/app.yaml"

        with requests_mock.Mocker() as m:
            m.get(start, status_code=302, headers={"Location": final})
            m.get(final, content=b"moved: true\n")
            data = fetcher.fetch(Locator.parse(start))

        assert data == b"moved: true\n"

    def test_connection_error_raises_fetch_error(self, fetcher):
        """Test that transport errors are wrapped and chained."""
        url = "https://cfg.example.com/app.yaml"

        with requests_mock.Mocker() as m:
            m.get(url, exc=requests.exceptions.ConnectTimeout)
            with pytest.raises(FetchError) as exc_info:
                fetcher.fetch(Locator.parse(url))

        assert isinstance(exc_info.value.__cause__, requests.exceptions.ConnectTimeout)

    def test_sends_user_agent(self, fetcher):
        """Test that the configured User-Agent is sent."""
        url = "https://cfg.example.com/app.yaml"

        with requests_mock.Mocker() as m:
            m.get(url, content=b"x: 1")
            fetcher.fetch(Locator.parse(url))
            sent = m.request_history[0].headers["User-Agent"]

        assert sent == FetchSettings().user_agent

    def test_close_error_is_logged_not_raised(self, fetcher, recording_logger, monkeypatch):
        """Test that a failing close only produces a warning."""
        url = "https://cfg.example.com/app.yaml"

        def broken_close(self):
            raise OSError("socket already gone")

        monkeypatch.setattr(requests.Response, "close", broken_close)

        with requests_mock.Mocker() as m:
            m.get(url, content=b"x: 1")
            data = fetcher.fetch(Locator.parse(url))

        assert data == b"x: 1"
        assert any("closing response body" in w for w in recording_logger.warnings())

    def test_serves_file_urls(self, fetcher, tmp_test_dir):
        """Test that the transport understands file:// URLs."""
        path = tmp_test_dir / "app.yaml"
        path.write_bytes(b"via: transport\n")

        assert fetcher.fetch(_file_locator(path)) == b"via: transport\n"

    def test_file_url_missing_is_404(self, fetcher, tmp_test_dir):
        """Test that a missing file:// target looks like an HTTP 404."""
        with pytest.raises(LoadFailedError) as exc_info:
            fetcher.fetch(_file_locator(tmp_test_dir / "missing.yaml"))

        assert exc_info.value.status_code == 404


class TestMakeSession:
    """Tests for the HTTP session configuration."""

    def test_pool_and_retries(self):
        """Test that the adapter pools connections and never retries."""
        settings = FetchSettings(max_idle_connections=7)
        with make_session(settings) as session:
            adapter = session.get_adapter("https://example.com/")

            assert adapter._pool_maxsize == 7
            assert adapter.max_retries.total == 0
            assert session.trust_env

    def test_mounts_file_adapter(self):
        """Test that file:// has its own adapter."""
        from requests_file import FileAdapter

        with make_session() as session:
            assert isinstance(session.get_adapter("file:///etc/hosts"), FileAdapter)


class TestLocalFallback:
    """Tests for the file:// fallback in Fetcher."""

    def test_fallback_to_transport(self, tmp_test_dir, recording_logger):
        """Test that a failed local read is retried through HTTP."""
        locator = _file_locator(tmp_test_dir / "missing.yaml")
        fetcher = Fetcher(FetchSettings(local_fallback=True), recording_logger)

        with pytest.raises(LoadFailedError) as exc_info:
            fetcher.fetch(locator)

        assert exc_info.value.status_code == 404
        assert any(
            "trying" in m for level, _, m in recording_logger.messages if level == "verbose"
        )

    def test_fallback_uses_http_backend(self):
        """Test that the HTTP backend receives the same locator."""
        local = MagicMock()
        local.fetch.side_effect = LocalReadError("nope")
        http = MagicMock()
        http.fetch.return_value = b"from http"
        fetcher = Fetcher(
            FetchSettings(local_fallback=True),
            SilentLogger(),
            backends={SourceKind.LOCAL_FILE: local, SourceKind.HTTP: http},
        )
        locator = Locator.parse("file:///etc/app.yaml")

        assert fetcher.fetch(locator) == b"from http"
        http.fetch.assert_called_once_with(locator)

    def test_fallback_disabled_surfaces_local_error(self, tmp_test_dir):
        """Test that local_fallback=False raises the local error."""
        fetcher = Fetcher(FetchSettings(local_fallback=False), SilentLogger())

        with pytest.raises(LocalReadError):
            fetcher.fetch(_file_locator(tmp_test_dir / "missing.yaml"))

    def test_http_locator_never_reads_locally(self):
        """Test that only file:// locators try the local backend."""
        local = MagicMock()
        http = MagicMock()
        http.fetch.return_value = b"remote"
        fetcher = Fetcher(
            backends={SourceKind.LOCAL_FILE: local, SourceKind.HTTP: http},
        )

        assert fetcher.fetch(Locator.parse("https://h/app.yaml")) == b"remote"
        local.fetch.assert_not_called()


class TestObjectStorage:
    """Tests for ObjectStorageFetcher with a mocked client."""

    @pytest.fixture
    def client(self) -> MagicMock:
        client = MagicMock()
        reader = client.bucket.return_value.blob.return_value.open.return_value
        reader.read.return_value = b"from: bucket\n"
        return client

    def _fetcher(self, client, logger=None) -> ObjectStorageFetcher:
        return ObjectStorageFetcher(
            FetchSettings(), logger or SilentLogger(), client_factory=lambda: client
        )

    def _reader(self, client) -> MagicMock:
        return client.bucket.return_value.blob.return_value.open.return_value

    def test_reads_object(self, client):
        """Test that bucket and object come from host and path."""
        data = self._fetcher(client).fetch(Locator.parse("gs://my-bucket/dir/app.yaml"))

        assert data == b"from: bucket\n"
        client.bucket.assert_called_once_with("my-bucket")
        client.bucket.return_value.blob.assert_called_once_with("dir/app.yaml")
        client.bucket.return_value.blob.return_value.open.assert_called_once_with("rb")
        self._reader(client).close.assert_called_once()

    def test_client_error(self):
        """Test that client construction failures are wrapped."""

        def no_credentials():
            raise DefaultCredentialsError("no credentials")

        fetcher = ObjectStorageFetcher(
            FetchSettings(), SilentLogger(), client_factory=no_credentials
        )
        with pytest.raises(StorageError, match="storage client") as exc_info:
            fetcher.fetch(Locator.parse("gs://b/o.yaml"))

        assert isinstance(exc_info.value.__cause__, DefaultCredentialsError)
        assert exc_info.value.bucket is None

    def test_open_error_names_bucket_and_object(self, client):
        """Test that open failures name bucket and object."""
        client.bucket.return_value.blob.return_value.open.side_effect = NotFound("gone")

        with pytest.raises(StorageError, match="unable to open") as exc_info:
            self._fetcher(client).fetch(Locator.parse("gs://b/dir/o.yaml"))

        assert exc_info.value.bucket == "b"
        assert exc_info.value.object_name == "dir/o.yaml"
        assert isinstance(exc_info.value.__cause__, NotFound)

    def test_read_error_still_closes_reader(self, client):
        """Test that the reader is closed when the read fails."""
        self._reader(client).read.side_effect = OSError("connection reset")

        with pytest.raises(StorageError, match="unable to read"):
            self._fetcher(client).fetch(Locator.parse("gs://b/o.yaml"))

        self._reader(client).close.assert_called_once()

    def test_close_error_is_logged(self, client, recording_logger):
        """Test that a close failure is a warning, not an error."""
        self._reader(client).close.side_effect = OSError("close failed")

        data = self._fetcher(client, recording_logger).fetch(Locator.parse("gs://b/o.yaml"))

        assert data == b"from: bucket\n"
        assert any("closing the bucket reader" in w for w in recording_logger.warnings())
