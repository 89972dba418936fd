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

"""Recursive include resolution.

IncludeLoader walks an include graph depth first and returns every document
it reaches as a flat list, ready to be merged by the caller.

Traversal
---------
For each node (a document, plus the locator it came from if any):

1. An empty document contributes nothing; its includes are never read.
2. If the locator is already in the ancestor chain, the graph has a cycle
   and RecursiveIncludeError is raised.
3. Include entries are resolved against the node's locator (or the working
   directory for documents without one).
4. Each child is fetched, parsed and loaded in declaration order with the
   ancestor chain extended by the node's locator.
5. The node's children come first in the result, then the node itself.

The walk keeps its own stack, one frame per open node carrying that node's
ancestor chain, so deep include chains are not limited by Python's
recursion limit.

Ordering
--------
For ``R includes [X, Y]`` and ``X includes [Z]`` the result is
``[Z, X, Y, R]``. Merging the list front to back therefore applies every
document after everything it includes.

The ancestor chain only holds the current path from the root, so a diamond
(two siblings including the same leaf) is not a cycle; the leaf is loaded
once per path and appears once per path in the result. Cycle detection
compares locators exactly; two spellings of one resource are different
locators.

Errors
------
The first failure at any depth aborts the whole load and propagates to the
caller. No partial result is returned and later siblings are not touched.

Example
-------
    >>> from confload import load_files
    >>> documents = load_files("config/app.yaml")
    >>> [str(d.origin) for d in documents]
    ['file:///srv/config/common.yaml', 'file:///srv/config/app.yaml']
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from confload.config import FetchSettings
from confload.document import Document, DocumentFactory, YamlDocumentFactory
from confload.exceptions import RecursiveIncludeError
from confload.locator import EMPTY_LOCATOR, Locator, LocatorResolver
from confload.logging import Logger, get_global_logger
from confload.paths import PathNormalizer
from confload.sources import Fetcher
from confload.sources.base import SourceFetcher

Ancestors = Sequence[Locator]


@dataclass
class _Frame:
    """A node on the traversal stack whose includes are still being loaded."""

    ancestors: tuple[Locator, ...]
    document: Document
    pending: Iterator[Locator]


class IncludeLoader:
    """Load documents and everything they include.

    Args:
        factory: Parses fetched bytes into documents.
        fetcher: Fetches bytes for a locator. Defaults to a Fetcher built
            from ``settings``.
        resolver: Resolves include entries. Defaults to a LocatorResolver
            for ``settings.os_name``.
        settings: Settings for the default fetcher and resolver.
        logger: Logger for progress output. Defaults to the global logger.
    """

    def __init__(
        self,
        factory: DocumentFactory,
        fetcher: SourceFetcher | None = None,
        resolver: LocatorResolver | None = None,
        settings: FetchSettings | None = None,
        logger: Logger | None = None,
    ) -> None:
        settings = settings or FetchSettings()
        self.logger = logger or get_global_logger()
        self.factory = factory
        self.fetcher = fetcher or Fetcher(settings, self.logger)
        self.resolver = resolver or LocatorResolver(
            PathNormalizer(settings.os_name), logger=self.logger
        )

    # -------------------------------
    # Entry points
    # -------------------------------

    def load_locators(self, ancestors: Ancestors, *locators: Locator) -> list[Document]:
        """Fetch, parse and recursively load each locator in order."""
        documents: list[Document] = []
        for locator in locators:
            document = self._fetch_document(locator)
            documents.extend(self._walk(ancestors, locator, document))
        return documents

    def load_documents(self, ancestors: Ancestors, *documents: Document) -> list[Document]:
        """Recursively load documents that have no originating locator."""
        loaded: list[Document] = []
        for document in documents:
            loaded.extend(self._walk(ancestors, None, document))
        return loaded

    def wrap(self, *blobs: bytes) -> list[Document]:
        """Parse raw bytes into documents without loading their includes."""
        return [self.factory.parse(blob, EMPTY_LOCATOR) for blob in blobs]

    def from_data(self, *blobs: bytes) -> list[Document]:
        """Load raw payloads (e.g. a config passed on the command line)."""
        return self.load_documents((), *self.wrap(*blobs))

    def from_files(self, *paths: str) -> list[Document]:
        """Load files given as native paths relative to the working directory."""
        return self.load_locators((), *self.resolver.resolve_all(None, *paths))

    def from_urls(self, *urls: Locator | str) -> list[Document]:
        """Load URLs.

        Locators are used as given. Strings are resolved like include
        entries, against the working directory.
        """
        locators = [
            url if isinstance(url, Locator) else self.resolver.resolve(None, url)
            for url in urls
        ]
        return self.load_locators((), *locators)

    # -------------------------------
    # Traversal
    # -------------------------------

    def _fetch_document(self, locator: Locator) -> Document:
        self.logger.verbose("INCLUDE", f"Loading {locator}")
        data = self.fetcher.fetch(locator)
        return self.factory.parse(data, locator)

    def _enter(
        self,
        ancestors: tuple[Locator, ...],
        locator: Locator | None,
        document: Document,
    ) -> _Frame | None:
        """Check a node and resolve its includes; None if it is empty."""
        if document.is_empty():
            self.logger.debug("INCLUDE", f"Skipping empty document {locator or '<data>'}")
            return None

        if locator is not None and locator in ancestors:
            raise RecursiveIncludeError(locator)

        includes = document.includes()
        children = self.resolver.resolve_all(locator, *includes)
        if children:
            self.logger.verbose(
                "INCLUDE", f"{locator or '<data>'} includes {len(children)} document(s)"
            )

        if locator is not None:
            ancestors += (locator,)
        return _Frame(ancestors, document, iter(children))

    def _walk(
        self,
        ancestors: Ancestors,
        locator: Locator | None,
        document: Document,
    ) -> list[Document]:
        # Depth first over an explicit stack
        loaded: list[Document] = []
        root = self._enter(tuple(ancestors), locator, document)
        stack = [root] if root is not None else []
        while stack:
            frame = stack[-1]
            child = next(frame.pending, None)
            if child is None:
                stack.pop()
                loaded.append(frame.document)
                continue
            child_document = self._fetch_document(child)
            child_frame = self._enter(frame.ancestors, child, child_document)
            if child_frame is not None:
                stack.append(child_frame)
        return loaded


# -------------------------------
# Module-level helpers
# -------------------------------


def _default_loader(settings: FetchSettings | None = None) -> IncludeLoader:
    return IncludeLoader(YamlDocumentFactory(), settings=settings)


def load_files(*paths: str, settings: FetchSettings | None = None) -> list[Document]:
    """Load YAML files and their includes.

    Args:
        *paths: Native file paths, relative to the working directory.
        settings: Optional fetch settings.

    Returns:
        Documents in merge order: includes before the documents that
            include them, siblings in declaration order.

    Raises:
        ConfloadError: Any subclass, from the first failure encountered.
        OSError: If the working directory cannot be determined.
    """
    return _default_loader(settings).from_files(*paths)


def load_urls(*urls: Locator | str, settings: FetchSettings | None = None) -> list[Document]:
    """Load YAML documents by URL (file, http(s), gs) and their includes."""
    return _default_loader(settings).from_urls(*urls)


def load_data(*blobs: bytes, settings: FetchSettings | None = None) -> list[Document]:
    """Load raw YAML payloads and their includes.

    Includes declared by a payload resolve against the working directory.
    """
    return _default_loader(settings).from_data(*blobs)
