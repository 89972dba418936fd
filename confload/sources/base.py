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

"""Source fetcher protocol and registry for confload.

This module defines the foundational components for fetching bytes:

- SourceFetcher protocol: Interface that every backend must implement
- Fetcher registry: Global dict mapping SourceKind to a fetcher class
- Registration and lookup functions: register_fetcher() and get_fetcher()

Each backend module registers itself at import time:

- local: Direct read from the local filesystem (SourceKind.LOCAL_FILE)
- http: HTTP(S) GET, also serving ``file://`` URLs (SourceKind.HTTP)
- storage: Google Cloud Storage objects (SourceKind.OBJECT_STORAGE)

Design Philosophy:
    - Fetchers are Protocol classes (structural subtyping, not inheritance)
    - Registration happens at module import time (fetchers self-register)
    - A fetcher is constructed from FetchSettings and a Logger only
    - Fetchers keep no connection state between fetch() calls

Example:
    Replacing a backend (e.g., in tests):
        ```python
        from confload.locator import SourceKind
        from confload.sources.base import register_fetcher

        class CannedFetcher:
            def __init__(self, settings, logger):
                pass

            def fetch(self, locator):
                return b"includes: []"

        register_fetcher(SourceKind.HTTP, CannedFetcher)
        ```
"""

from __future__ import annotations

from typing import Protocol

from confload.config import FetchSettings
from confload.exceptions import FetchError
from confload.locator import Locator, SourceKind
from confload.logging import Logger, get_global_logger

# -------------------------------
# Fetcher Protocol
# -------------------------------


class SourceFetcher(Protocol):
    """Protocol for byte fetchers.

    Each fetcher must implement fetch(), returning the complete payload
    behind a locator. Any handle opened by fetch() must be closed before
    it returns, on success and on failure.
    """

    def fetch(self, locator: Locator) -> bytes:
        """Fetch the raw bytes behind a locator.

        Args:
            locator: Absolute locator whose kind matches this fetcher.

        Returns:
            The full payload, possibly empty.

        Raises:
            FetchError: On any failure to obtain the bytes.

        """
        ...


class SourceFetcherFactory(Protocol):
    def __call__(self, settings: FetchSettings, logger: Logger) -> SourceFetcher: ...


# -------------------------------
# Fetcher Registry
# -------------------------------

_FETCHER_REGISTRY: dict[SourceKind, SourceFetcherFactory] = {}


def register_fetcher(kind: SourceKind, factory: SourceFetcherFactory) -> None:
    """Register a fetcher class for a source kind.

    Registering the same kind twice overwrites the previous registration
    (allows monkey-patching for tests).

    Args:
        kind: The source kind this fetcher serves.
        factory: Class (or callable) taking ``(settings, logger)`` and
            returning an object with a ``fetch(locator)`` method.
    """
    _FETCHER_REGISTRY[kind] = factory


def get_fetcher(
    kind: SourceKind,
    settings: FetchSettings | None = None,
    logger: Logger | None = None,
) -> SourceFetcher:
    """Get a new fetcher instance for a source kind.

    Args:
        kind: The source kind to fetch from.
        settings: Settings to construct the fetcher with. Defaults to
            FetchSettings().
        logger: Logger for the fetcher. Defaults to the global logger.

    Returns:
        A new fetcher instance.

    Raises:
        FetchError: If no fetcher is registered for the kind. The message
            lists the registered kinds.
    """
    if kind not in _FETCHER_REGISTRY:
        available = ", ".join(k.value for k in _FETCHER_REGISTRY)
        raise FetchError(
            f"No fetcher registered for {kind.value!r}. "
            f"Available: {available or '(none)'}"
        )
    return _FETCHER_REGISTRY[kind](
        settings or FetchSettings(), logger or get_global_logger()
    )
