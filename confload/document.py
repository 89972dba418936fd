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

"""Documents and document factories.

The include loader knows nothing about configuration formats. It hands each
fetched payload to a DocumentFactory and only asks the resulting Document
two things: is it empty, and which include references does it declare.

YamlDocumentFactory is the built-in factory. It reads the include list from
a top-level key (``includes`` by default) of a YAML or JSON document:

    ```yaml
    includes:
      - common.yaml
      - https://config.example.com/shared/db.yaml
    service:
      port: 8080
    ```

A single string is accepted in place of a list. The bytes are kept
untouched on the document; turning them into merged configuration values is
left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

import yaml

from confload.exceptions import DocumentError
from confload.locator import EMPTY_LOCATOR, Locator

DEFAULT_INCLUDES_KEY = "includes"


class Document(Protocol):
    """Protocol for parsed payloads."""

    def is_empty(self) -> bool:
        """True if the payload has no meaningful content."""
        ...

    def includes(self) -> list[str]:
        """Include references in declaration order."""
        ...


class DocumentFactory(Protocol):
    """Protocol for turning fetched bytes into a Document."""

    def parse(self, data: bytes, origin: Locator) -> Document:
        """Parse ``data`` fetched from ``origin``.

        Args:
            data: Raw payload.
            origin: Where the payload came from; EMPTY_LOCATOR for bytes
                supplied directly by the caller.

        Raises:
            DocumentError: If the payload cannot be parsed.
        """
        ...


@dataclass(frozen=True)
class RawDocument:
    """A payload together with the include references it declares.

    Attributes:
        data: The payload exactly as fetched.
        origin: Locator the payload came from.
        include_refs: Include references in declaration order.
    """

    data: bytes
    origin: Locator = EMPTY_LOCATOR
    include_refs: tuple[str, ...] = field(default_factory=tuple)

    def is_empty(self) -> bool:
        return not self.data.strip()

    def includes(self) -> list[str]:
        return list(self.include_refs)


class YamlDocumentFactory:
    """Build RawDocuments from YAML (or JSON) payloads.

    Args:
        key: Top-level key holding the include list.
    """

    def __init__(self, key: str = DEFAULT_INCLUDES_KEY) -> None:
        self.key = key

    def parse(self, data: bytes, origin: Locator) -> RawDocument:
        where = str(origin) or "<data>"
        try:
            obj = yaml.safe_load(data) if data.strip() else None
        except yaml.YAMLError as err:
            raise DocumentError(f"Error parsing YAML from {where}: {err}") from err

        return RawDocument(
            data=data,
            origin=origin,
            include_refs=tuple(self._include_refs(obj, where)),
        )

    def _include_refs(self, obj: Any, where: str) -> list[str]:
        if not isinstance(obj, dict):
            return []

        refs = obj.get(self.key)
        if refs is None:
            return []
        if isinstance(refs, str):
            refs = [refs]
        if not isinstance(refs, list):
            raise DocumentError(
                f"'{self.key}' must be a string or a list of strings in {where}"
            )
        for ref in refs:
            if not isinstance(ref, str):
                raise DocumentError(
                    f"'{self.key}' entries must be strings, got {type(ref).__name__} "
                    f"in {where}"
                )
        return refs
