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

"""Local filesystem fetcher.

Reads ``file://`` locators straight from disk. The read is a plain open and
read rather than a stat-then-read, so named pipes and other non-regular
files work.
"""

from __future__ import annotations

from urllib.parse import unquote

from confload.config import FetchSettings
from confload.exceptions import LocalReadError
from confload.locator import Locator, SourceKind
from confload.logging import Logger
from confload.paths import PathNormalizer

from .base import register_fetcher


class LocalFileFetcher:
    """Fetcher for SourceKind.LOCAL_FILE."""

    def __init__(self, settings: FetchSettings, logger: Logger) -> None:
        self.normalizer = PathNormalizer(settings.os_name)
        self.logger = logger

    def native_path(self, locator: Locator) -> str:
        return self.normalizer.to_native_path(unquote(locator.path))

    def fetch(self, locator: Locator) -> bytes:
        path = self.native_path(locator)
        self.logger.verbose("FETCH", f"Reading local file: {path}")
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as err:
            raise LocalReadError(f"unable to read local file {path}: {err}") from err


register_fetcher(SourceKind.LOCAL_FILE, LocalFileFetcher)
