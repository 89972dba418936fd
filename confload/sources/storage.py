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

"""Google Cloud Storage fetcher.

A ``gs://bucket/path/to/object.yaml`` locator names bucket ``bucket`` and
object ``path/to/object.yaml`` (leading slash stripped, percent-escapes
decoded). Credentials come from the environment as usual for
google-cloud-storage (GOOGLE_APPLICATION_CREDENTIALS, metadata server, ...).

A new client is created for every fetch. The object reader is closed on
every exit path; a failure to close is logged, not raised, since the payload
has been read by then.
"""

from __future__ import annotations

from collections.abc import Callable
from urllib.parse import unquote

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from confload.config import FetchSettings
from confload.exceptions import StorageError
from confload.locator import Locator, SourceKind
from confload.logging import Logger

from .base import register_fetcher


class ObjectStorageFetcher:
    """Fetcher for SourceKind.OBJECT_STORAGE.

    Args:
        settings: Fetch settings (unused by this backend beyond logging).
        logger: Logger for verbose output and close warnings.
        client_factory: Zero-argument callable returning a storage client.
            Defaults to ``google.cloud.storage.Client``.
    """

    def __init__(
        self,
        settings: FetchSettings,
        logger: Logger,
        client_factory: Callable[[], storage.Client] = storage.Client,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.client_factory = client_factory

    def fetch(self, locator: Locator) -> bytes:
        bucket = locator.host
        object_name = unquote(locator.path).lstrip("/")
        self.logger.verbose("STORAGE", f"Reading gs://{bucket}/{object_name}")

        try:
            client = self.client_factory()
        except (GoogleAuthError, GoogleAPIError, OSError) as err:
            raise StorageError(f"unable to create gcp storage client: {err}") from err

        try:
            reader = client.bucket(bucket).blob(object_name).open("rb")
        except (GoogleAPIError, OSError, ValueError) as err:
            raise StorageError(
                f"unable to open file from bucket {bucket!r}, file {object_name!r}: {err}",
                bucket=bucket,
                object_name=object_name,
            ) from err

        try:
            return reader.read()
        except (GoogleAPIError, OSError) as err:
            raise StorageError(
                f"unable to read data from bucket {bucket!r}, file {object_name!r}: {err}",
                bucket=bucket,
                object_name=object_name,
            ) from err
        finally:
            try:
                reader.close()
            except (GoogleAPIError, OSError) as err:
                self.logger.warning(
                    "STORAGE", f"error when closing the bucket reader: {err}"
                )


register_fetcher(SourceKind.OBJECT_STORAGE, ObjectStorageFetcher)
