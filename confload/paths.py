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

"""Translation between native filesystem paths and file-URL paths.

File URLs always use forward slashes, and a Windows drive-letter path is
written with a leading slash (``file:///C:/dir/app.yaml``). Native APIs want
``C:\\dir\\app.yaml`` instead, and a path without a drive letter is a UNC
share (``\\\\server\\share``). On every other OS both directions are identity.

The OS is injected rather than read from the process so Windows behavior
can be exercised on any host:

    >>> PathNormalizer("nt").to_canonical_path("C:\\\\a\\\\b")
    '/C:/a/b'
    >>> PathNormalizer("nt").to_native_path("/C:/a/b")
    'C:\\\\a\\\\b'
    >>> PathNormalizer("posix").to_native_path("/C:/a/b")
    '/C:/a/b'

See https://blogs.msdn.microsoft.com/ie/2006/12/06/file-uris-in-windows/
"""

from __future__ import annotations

import os
import re

WINDOWS_OS_NAMES = frozenset({"nt", "windows"})

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:")


class PathNormalizer:
    """Convert paths between their native and canonical (URL) forms.

    Args:
        os_name: OS identifier. ``"nt"`` or ``"windows"`` (any case) selects
            Windows translation; anything else is a no-op. Defaults to
            ``os.name`` of the running interpreter.
    """

    def __init__(self, os_name: str | None = None) -> None:
        self.os_name = os.name if os_name is None else os_name

    @property
    def is_windows(self) -> bool:
        return self.os_name.lower() in WINDOWS_OS_NAMES

    def to_canonical_path(self, native_path: str) -> str:
        """Convert a native path into the path component of a file URL."""
        if not self.is_windows:
            return native_path

        path = native_path.replace("\\", "/").lstrip("/")
        if _DRIVE_LETTER.match(path):
            path = "/" + path
        return path

    def to_native_path(self, canonical_path: str) -> str:
        """Convert the path component of a file URL into a native path."""
        if not self.is_windows:
            return canonical_path

        path = canonical_path.lstrip("/")
        if not _DRIVE_LETTER.match(path):
            path = "//" + path
        return path.replace("/", "\\")

    def __repr__(self) -> str:
        return f"PathNormalizer(os_name={self.os_name!r})"
