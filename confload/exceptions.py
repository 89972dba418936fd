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

"""Exception hierarchy for confload.

This module defines a custom exception hierarchy that allows library users
to distinguish between the different ways an include graph can fail to load:

- LocatorError: A path or URL could not be turned into a locator
  (BlankPathError, ParseError)
- IncludeError: The include graph itself is invalid (RecursiveIncludeError)
- FetchError: Bytes could not be fetched (LoadFailedError, StorageError,
  LocalReadError)
- DocumentError: Fetched bytes could not be parsed into a document
- ConfigError: The settings file is invalid

All exceptions inherit from ConfloadError, allowing users to catch every
confload error with a single except clause if needed.

Example:
    Catching specific error types:
        ```python
        from confload import load_files
        from confload.exceptions import LoadFailedError, RecursiveIncludeError

        try:
            documents = load_files("config/app.yaml")
        except RecursiveIncludeError as e:
            print(f"Include cycle at {e.locator}")
        except LoadFailedError as e:
            print(f"HTTP {e.status_code} for {e.locator}")
        ```

    Catching all confload errors:
        ```python
        from confload.exceptions import ConfloadError

        try:
            documents = load_files("config/app.yaml")
        except ConfloadError as e:
            print(f"confload error: {e}")
        ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from confload.locator import Locator

__all__ = [
    "ConfloadError",
    "LocatorError",
    "BlankPathError",
    "ParseError",
    "IncludeError",
    "RecursiveIncludeError",
    "FetchError",
    "LoadFailedError",
    "StorageError",
    "LocalReadError",
    "DocumentError",
    "ConfigError",
]


class ConfloadError(Exception):
    """Base exception for all confload errors."""


class LocatorError(ConfloadError):
    """Raised when a path or URL string cannot be turned into a locator."""


class BlankPathError(LocatorError):
    """Raised when an input path or include entry is empty."""

    def __init__(self, message: str = "the file path is blank") -> None:
        super().__init__(message)


class ParseError(LocatorError):
    """Raised when a path or URL string is malformed.

    The underlying parser error is chained as ``__cause__``.

    Attributes:
        raw_path: The string that failed to parse.
    """

    def __init__(self, raw_path: str, reason: str) -> None:
        super().__init__(f"could not parse path {raw_path!r}: {reason}")
        self.raw_path = raw_path


class IncludeError(ConfloadError):
    """Raised for structural problems in an include graph."""


class RecursiveIncludeError(IncludeError):
    """Raised when a locator appears again in its own ancestor chain.

    Attributes:
        locator: The locator that closes the cycle.
    """

    def __init__(self, locator: Locator) -> None:
        super().__init__(f"the url recursively includes itself ({locator})")
        self.locator = locator


class FetchError(ConfloadError):
    """Raised when the bytes behind a locator cannot be fetched.

    This covers transport failures (connection refused, timeouts, invalid
    URLs) as well as the more specific subclasses below.
    """


class LoadFailedError(FetchError):
    """Raised when an HTTP fetch returns anything other than 200 OK.

    Attributes:
        status_code: The HTTP status code of the response.
        locator: The locator that was requested.
    """

    def __init__(self, status_code: int, locator: Locator) -> None:
        super().__init__(f"failed to load url : {status_code} : {locator}")
        self.status_code = status_code
        self.locator = locator


class StorageError(FetchError):
    """Raised when an object-storage client, open or read fails.

    The client library error is chained as ``__cause__``.

    Attributes:
        bucket: Bucket name, or None when the client itself failed.
        object_name: Object key, or None when the client itself failed.
    """

    def __init__(
        self,
        message: str,
        *,
        bucket: str | None = None,
        object_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.bucket = bucket
        self.object_name = object_name


class LocalReadError(FetchError):
    """Raised when a local file cannot be read and HTTP fallback is disabled.

    The OSError is chained as ``__cause__``.
    """


class DocumentError(ConfloadError):
    """Raised by document factories for bytes they cannot parse."""


class ConfigError(ConfloadError):
    """Raised for invalid settings files.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Unknown settings keys
    - Settings values of the wrong type
    - Missing settings files
    """
