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

"""Dispatch of locators to the fetcher for their scheme.

Fetcher picks a backend from Locator.kind and delegates to it. Backends are
looked up in the registry (confload.sources.base) on first use and then
reused for the lifetime of the Fetcher; they hold no connection state, so
reuse is safe.

Local File Fallback:
    A ``file://`` locator is first read directly from disk. When that read
    fails and FetchSettings.local_fallback is True (the default), the same
    URL is fetched through the HTTP backend, whose file:// adapter turns a
    missing file into LoadFailedError(404). With local_fallback False the
    LocalReadError is raised as-is, so permission problems and the like
    surface with their real cause.
"""

from __future__ import annotations

from collections.abc import Mapping

from confload.config import FetchSettings
from confload.exceptions import LocalReadError
from confload.locator import Locator, SourceKind
from confload.logging import Logger, get_global_logger

from .base import SourceFetcher, get_fetcher


class Fetcher:
    """Fetch any locator by dispatching on its kind.

    Args:
        settings: Settings passed to every backend. Defaults to FetchSettings().
        logger: Logger passed to every backend. Defaults to the global logger.
        backends: Pre-built fetchers keyed by kind. Kinds not listed come
            from the registry.
    """

    def __init__(
        self,
        settings: FetchSettings | None = None,
        logger: Logger | None = None,
        backends: Mapping[SourceKind, SourceFetcher] | None = None,
    ) -> None:
        self.settings = settings or FetchSettings()
        self.logger = logger or get_global_logger()
        self._backends: dict[SourceKind, SourceFetcher] = dict(backends or {})

    def backend(self, kind: SourceKind) -> SourceFetcher:
        if kind not in self._backends:
            self._backends[kind] = get_fetcher(kind, self.settings, self.logger)
        return self._backends[kind]

    def fetch(self, locator: Locator) -> bytes:
        """Return the raw bytes behind ``locator``.

        Raises:
            FetchError: Or one of its subclasses, from the selected backend.
        """
        kind = locator.kind
        self.logger.debug("FETCH", f"{locator} -> {kind.name}")

        if kind is SourceKind.LOCAL_FILE:
            try:
                return self.backend(SourceKind.LOCAL_FILE).fetch(locator)
            except LocalReadError as err:
                if not self.settings.local_fallback:
                    raise
                self.logger.verbose(
                    "FETCH", f"Local read failed ({err.__cause__}), trying {locator} as a URL"
                )
            return self.backend(SourceKind.HTTP).fetch(locator)

        return self.backend(kind).fetch(locator)


def fetch(locator: Locator, settings: FetchSettings | None = None) -> bytes:
    """Fetch one locator with a fresh Fetcher."""
    return Fetcher(settings).fetch(locator)
