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

"""Byte sources for confload.

Importing this package registers every built-in backend:

- local: LocalFileFetcher for ``file://`` locators
- http_get: HttpFetcher for ``http://``, ``https://`` and everything else
- storage: ObjectStorageFetcher for ``gs://`` locators

Public API:

- Fetcher: Dispatches a locator to the backend for its kind
- fetch: Fetch one locator with default settings
- SourceFetcher: Protocol every backend implements
- register_fetcher / get_fetcher: Backend registry
- make_session: The requests.Session used for HTTP fetches

Example:
    from confload.locator import Locator
    from confload.sources import fetch

    data = fetch(Locator.parse("file:///etc/app/config.yaml"))

"""

from .base import SourceFetcher, get_fetcher, register_fetcher
from .fetcher import Fetcher, fetch
from .http_get import HttpFetcher, make_session
from .local import LocalFileFetcher
from .storage import ObjectStorageFetcher

__all__ = [
    "Fetcher",
    "fetch",
    "SourceFetcher",
    "get_fetcher",
    "register_fetcher",
    "make_session",
    "HttpFetcher",
    "LocalFileFetcher",
    "ObjectStorageFetcher",
]
