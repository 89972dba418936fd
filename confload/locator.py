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

"""Locators and their resolution against a base.

A Locator is an absolute, scheme-tagged reference to a byte source. Include
entries in a document are usually relative ("common.yaml", "../base.yaml")
and are resolved against the locator of the document that declares them.
When there is no such document (a top-level path given by the caller, or
raw bytes) the base is the current working directory as a ``file://`` URL.

Resolution Rules:
    - An empty string is rejected with BlankPathError.
    - The string is first converted with PathNormalizer.to_canonical_path so
      Windows paths become URL paths.
    - An absolute string (one with a scheme) is used as-is.
    - Anything else is resolved against the base following RFC 3986 section
      5.2, then takes the base's query string. This carries parameters such
      as ``?env=prod`` down an include chain.

Schemes:
    - file: local filesystem (SourceKind.LOCAL_FILE)
    - gs: object storage, host is the bucket (SourceKind.OBJECT_STORAGE)
    - anything else: HTTP(S) (SourceKind.HTTP)

Example:
    Resolve include entries:
        ```python
        from confload.locator import Locator, LocatorResolver

        resolver = LocatorResolver()
        base = Locator.parse("https://config.example.com/app/main.yaml?env=prod")
        resolver.resolve(base, "db.yaml")
        # Locator('https://config.example.com/app/db.yaml?env=prod')
        ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import os
import re
from urllib.parse import urlsplit

from confload.exceptions import BlankPathError, ParseError
from confload.logging import Logger, get_global_logger
from confload.paths import PathNormalizer

__all__ = [
    "EMPTY_LOCATOR",
    "Locator",
    "LocatorResolver",
    "SourceKind",
    "resolve",
    "resolve_all",
]

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2}).{0,2}")


class SourceKind(Enum):
    """Which backend serves a locator."""

    LOCAL_FILE = "file"
    OBJECT_STORAGE = "gs"
    HTTP = "http"


@dataclass(frozen=True)
class Locator:
    """An immutable URL split into its parts.

    Two locators are equal only if every field matches; no normalization is
    applied, so ``file:///a/b.yaml`` and ``file:///a/./b.yaml`` differ.

    Attributes:
        scheme: Lower-cased scheme, empty for relative references.
        host: Network location (host, port, userinfo), or bucket for ``gs``.
        path: Percent-encoded path as written.
        query: Query string without the leading ``?``.
        fragment: Fragment without the leading ``#``.
    """

    scheme: str = ""
    host: str = ""
    path: str = ""
    query: str = ""
    fragment: str = ""

    @classmethod
    def parse(cls, text: str) -> Locator:
        """Parse a URL or URL path into a Locator.

        Leading spaces are kept as part of the path (percent-encoded) rather
        than stripped, so ``" a.yaml"`` never names ``a.yaml``.

        Raises:
            ParseError: If the text contains control characters or a
                malformed ``%`` escape outside the query, or urllib rejects
                it (for example an unterminated IPv6 host).
        """
        for char in text:
            if ord(char) < 0x20 or ord(char) == 0x7F:
                raise ParseError(text, "invalid control character in URL")
        stripped = text.lstrip(" ")
        try:
            parts = urlsplit("%20" * (len(text) - len(stripped)) + stripped)
        except ValueError as err:
            raise ParseError(text, str(err)) from err
        for component in (parts.netloc, parts.path, parts.fragment):
            bad = _BAD_ESCAPE.search(component)
            if bad:
                raise ParseError(text, f"invalid URL escape {bad.group()!r}")
        return cls(
            scheme=parts.scheme,
            host=parts.netloc,
            path=parts.path,
            query=parts.query,
            fragment=parts.fragment,
        )

    @property
    def is_absolute(self) -> bool:
        return bool(self.scheme)

    @property
    def is_empty(self) -> bool:
        return self == EMPTY_LOCATOR

    @property
    def kind(self) -> SourceKind:
        if self.scheme == "file":
            return SourceKind.LOCAL_FILE
        if self.scheme == "gs":
            return SourceKind.OBJECT_STORAGE
        return SourceKind.HTTP

    def resolve_reference(self, ref: Locator) -> Locator:
        """Resolve ``ref`` against this locator (RFC 3986, section 5.2).

        Unlike ``urllib.parse.urljoin`` this treats every scheme as
        hierarchical, so ``gs://bucket/a/`` + ``b.yaml`` works.
        """
        if ref.scheme:
            return Locator(
                ref.scheme,
                ref.host,
                _remove_dot_segments(ref.path),
                ref.query,
                ref.fragment,
            )
        if ref.host:
            return Locator(
                self.scheme,
                ref.host,
                _remove_dot_segments(ref.path),
                ref.query,
                ref.fragment,
            )
        if not ref.path:
            return Locator(
                self.scheme,
                self.host,
                self.path,
                ref.query or self.query,
                ref.fragment,
            )
        if ref.path.startswith("/"):
            path = ref.path
        else:
            path = self.path[: self.path.rfind("/") + 1] + ref.path
        return Locator(
            self.scheme,
            self.host,
            _remove_dot_segments(path),
            ref.query,
            ref.fragment,
        )

    def __str__(self) -> str:
        url = ""
        if self.scheme:
            url += self.scheme + ":"
        if (self.scheme or self.host) and (self.host or self.path):
            url += "//" + self.host
            if self.path and not self.path.startswith("/"):
                url += "/"
        url += self.path
        if self.query:
            url += "?" + self.query
        if self.fragment:
            url += "#" + self.fragment
        return url

    def __repr__(self) -> str:
        return f"Locator({str(self)!r})"


EMPTY_LOCATOR = Locator()


def _remove_dot_segments(path: str) -> str:
    if not path:
        return path
    if not path.startswith("/"):
        path = "/" + path

    segments = path.split("/")
    output: list[str] = []
    for segment in segments:
        if segment == ".":
            continue
        if segment == "..":
            # Never pop the empty segment that anchors the leading "/"
            if len(output) > 1:
                output.pop()
            continue
        output.append(segment)

    if segments[-1] in (".", ".."):
        output.append("")

    return "/".join(output)


class LocatorResolver:
    """Turn path and URL strings into absolute locators.

    Args:
        normalizer: Path normalizer used for Windows paths. Defaults to one
            for the running OS.
        getcwd: Working-directory accessor used when no base is given.
        logger: Logger for debug output. Defaults to the global logger.
    """

    def __init__(
        self,
        normalizer: PathNormalizer | None = None,
        getcwd: Callable[[], str] = os.getcwd,
        logger: Logger | None = None,
    ) -> None:
        self.normalizer = normalizer or PathNormalizer()
        self.getcwd = getcwd
        self.logger = logger or get_global_logger()

    def working_dir(self) -> Locator:
        """Return the working directory as a ``file://`` locator.

        Raises:
            OSError: If the working directory cannot be determined.
        """
        root_path = self.normalizer.to_canonical_path(self.getcwd())
        return Locator.parse("file://" + root_path.rstrip("/") + "/")

    def resolve(self, base: Locator | None, raw_path: str) -> Locator:
        """Resolve a path or URL string against ``base``.

        Args:
            base: Locator to resolve relative paths against. None means the
                working directory.
            raw_path: The path, URL or include entry.

        Returns:
            An absolute locator.

        Raises:
            BlankPathError: If raw_path is empty.
            ParseError: If raw_path is malformed.
            OSError: If base is None and the working directory is unavailable.
        """
        if raw_path == "":
            raise BlankPathError()

        if base is None:
            base = self.working_dir()

        locator = Locator.parse(self.normalizer.to_canonical_path(raw_path))
        if not locator.is_absolute:
            resolved = base.resolve_reference(locator)
            locator = Locator(
                resolved.scheme,
                resolved.host,
                resolved.path,
                base.query,
                resolved.fragment,
            )

        self.logger.debug("RESOLVE", f"{raw_path!r} -> {locator}")
        return locator

    def resolve_all(self, base: Locator | None, *raw_paths: str) -> list[Locator]:
        """Resolve every path against ``base``, stopping at the first failure."""
        return [self.resolve(base, raw_path) for raw_path in raw_paths]


def resolve(base: Locator | None, raw_path: str) -> Locator:
    """Resolve one path with a resolver for the running OS."""
    return LocatorResolver().resolve(base, raw_path)


def resolve_all(base: Locator | None, *raw_paths: str) -> list[Locator]:
    """Resolve several paths with a resolver for the running OS."""
    return LocatorResolver().resolve_all(base, *raw_paths)
