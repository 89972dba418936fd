# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""HTTP(S) fetcher for confload.

Fetches a locator with a single GET and returns the whole body. This is the
default backend: any scheme other than ``file`` and ``gs`` ends up here, and
so does a ``file://`` locator whose direct read failed (see
confload.sources.fetcher).

Transport:

- **Connection pool** - HTTPAdapter with ``pool_maxsize`` from
  FetchSettings.max_idle_connections.
- **TCP keep-alive** - SO_KEEPALIVE plus idle/interval probes set to
  FetchSettings.keep_alive where the platform supports them.
- **Timeouts** - ``(dial_timeout, read_timeout)`` on every request. The TLS
  handshake counts against the dial timeout.
- **No retries** - urllib3 Retry(total=0). A failure is reported at once.
- **Proxies** - taken from the environment (HTTP_PROXY, HTTPS_PROXY,
  NO_PROXY) by requests.
- **file:// URLs** - served from the filesystem by requests_file.FileAdapter,
  which answers 404 for missing files and 403 for unreadable ones.

Status Handling:
    Only 200 is success. Any other final status raises LoadFailedError with
    the status code and locator. A 200 with an empty body returns ``b""``.

Example:
    Fetch a URL:
        ```python
        from confload.config import FetchSettings
        from confload.locator import Locator
        from confload.logging import get_logger
        from confload.sources.http_get import HttpFetcher

        fetcher = HttpFetcher(FetchSettings(), get_logger(verbose=True))
        data = fetcher.fetch(Locator.parse("https://example.com/app.yaml"))
        ```
"""

from __future__ import annotations

import socket

import requests
from requests.adapters import HTTPAdapter
from requests_file import FileAdapter
from urllib3.connection import HTTPConnection
from urllib3.util.retry import Retry

from confload.config import FetchSettings
from confload.exceptions import FetchError, LoadFailedError
from confload.locator import Locator, SourceKind
from confload.logging import Logger

from .base import register_fetcher


def _keep_alive_options(interval: float) -> list[tuple[int, int, int]]:
    seconds = max(1, int(interval))
    options = list(HTTPConnection.default_socket_options)
    options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))
    if hasattr(socket, "TCP_KEEPIDLE"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, seconds))
    if hasattr(socket, "TCP_KEEPINTVL"):
        options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, seconds))
    return options


class KeepAliveAdapter(HTTPAdapter):
    """HTTPAdapter whose connections (direct and proxied) use TCP keep-alive."""

    def __init__(self, keep_alive: float, **kwargs) -> None:
        # Set before super().__init__, which builds the pool manager
        self.keep_alive = keep_alive
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs) -> None:
        kwargs["socket_options"] = _keep_alive_options(self.keep_alive)
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        proxy_kwargs.setdefault("socket_options", _keep_alive_options(self.keep_alive))
        return super().proxy_manager_for(proxy, **proxy_kwargs)


def make_session(settings: FetchSettings | None = None) -> requests.Session:
    """
    Create a requests.Session configured from FetchSettings.

    - Pools up to max_idle_connections connections per host.
    - Enables TCP keep-alive.
    - Never retries.
    - Mounts a file:// adapter rooted at the filesystem root.
    """
    settings = settings or FetchSettings()
    s = requests.Session()
    retries = Retry(total=0, raise_on_status=False)
    s.headers.update({"User-Agent": settings.user_agent})
    adapter = KeepAliveAdapter(
        settings.keep_alive,
        pool_maxsize=settings.max_idle_connections,
        max_retries=retries,
    )
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    s.mount("file://", FileAdapter())
    return s


class HttpFetcher:
    """Fetcher for SourceKind.HTTP (and file:// fallback)."""

    def __init__(self, settings: FetchSettings, logger: Logger) -> None:
        self.settings = settings
        self.logger = logger

    def fetch(self, locator: Locator) -> bytes:
        """GET the locator and return the body.

        Raises:
            LoadFailedError: If the response status is not 200.
            FetchError: On connection errors, timeouts or invalid URLs.
        """
        url = str(locator)
        timeout = (self.settings.dial_timeout, self.settings.read_timeout)
        self.logger.verbose("HTTP", f"GET {url}")

        with make_session(self.settings) as session:
            try:
                resp = session.get(url, stream=True, timeout=timeout)
            except (requests.exceptions.RequestException, ValueError) as err:
                raise FetchError(f"failed to load url {url}: {err}") from err

            try:
                data = resp.content
            except requests.exceptions.RequestException as err:
                raise FetchError(f"failed to read response from {url}: {err}") from err
            finally:
                self._close(resp)

        self.logger.verbose("HTTP", f"Response: {resp.status_code} ({len(data)} bytes)")

        if resp.status_code != requests.codes.ok:
            raise LoadFailedError(resp.status_code, locator)

        return data

    def _close(self, resp: requests.Response) -> None:
        try:
            resp.close()
        except OSError as err:
            self.logger.warning("HTTP", f"error when closing response body: {err}")


register_fetcher(SourceKind.HTTP, HttpFetcher)
